"""Utility helpers shared across the Solana router."""
