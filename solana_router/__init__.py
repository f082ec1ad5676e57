"""Solana query router.

This package answers natural-language questions about Solana accounts, tokens,
programs and transactions by classifying the query, resolving referenced
addresses, dispatching read-only ledger tools and synthesizing an answer.
"""

import logging

__version__ = "0.2.0"
__author__ = "Solana Router Contributors"
__email__ = "dev@solana-router.example"

logger = logging.getLogger(__name__)
