"""
Intent classification.

One scoring pass adds up weighted keyword matches, address evidence and,
when a model client is available, a single model vote. Debugging vocabulary
pushes a query to ``hybrid`` ahead of any other category.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from solana_router.clients.llm_client import ModelClient
from solana_router.models.entities import ClassificationResult, EntityType
from solana_router.services.base_service import BaseService
from solana_router.services.entity_classifier import EntityClassifier
from solana_router.utils.errors import UpstreamServiceError
from solana_router.utils.validation import extract_addresses


class Intent(str, Enum):
    LIVE_DATA = "live_data"
    KNOWLEDGE = "knowledge"
    HYBRID = "hybrid"
    GENERAL = "general"


LIVE_KEYWORDS = (
    "balance", "tokens", "holders", "transactions", "last transfer", "recent activity",
    "current price", "volume", "liquidity", "what tokens does", "show me", "analyze", "check",
)
KNOWLEDGE_KEYWORDS = (
    "how to", "what is", "explain", "how does", "what are", "tutorial", "guide",
    "documentation", "learn", "pda", "program derived address", "anchor", "rust",
    "account structure", "transaction lifecycle",
)
HYBRID_KEYWORDS = (
    "error", "failed", "why", "fix", "debug", "problem", "transaction failed", "instruction failed",
)

LIVE_WEIGHT = 0.3
KNOWLEDGE_WEIGHT = 0.4
HYBRID_WEIGHT = 0.5
ADDRESS_WEIGHT = 0.8
MODEL_VOTE_WEIGHT = 0.6

HYBRID_THRESHOLD = 0.4
DECISION_THRESHOLD = 0.5

# Score boosts per classified entity: (category, weight)
ENTITY_BOOSTS = {
    EntityType.TOKEN: (Intent.LIVE_DATA, 0.3),
    EntityType.NFT: (Intent.LIVE_DATA, 0.3),
    EntityType.WALLET: (Intent.LIVE_DATA, 0.4),
    EntityType.TRANSACTION: (Intent.LIVE_DATA, 0.5),
    EntityType.PROGRAM: (Intent.HYBRID, 0.3),
    EntityType.PDA: (Intent.HYBRID, 0.4),
}

MODEL_LABELS = {
    "on_chain_query": Intent.LIVE_DATA,
    "doc_query": Intent.KNOWLEDGE,
    "hybrid_query": Intent.HYBRID,
    "general": Intent.GENERAL,
}


def _keyword_pattern(keyword: str) -> re.Pattern:
    return re.compile(r"\b" + re.escape(keyword) + r"\b")


_LIVE_PATTERNS = [(k, _keyword_pattern(k)) for k in LIVE_KEYWORDS]
_KNOWLEDGE_PATTERNS = [(k, _keyword_pattern(k)) for k in KNOWLEDGE_KEYWORDS]
_HYBRID_PATTERNS = [(k, _keyword_pattern(k)) for k in HYBRID_KEYWORDS] + [("0x", re.compile(r"\b0x[0-9a-f]+\b"))]


def normalize(text: str) -> str:
    """Lowercase and treat hyphens as spaces, so "program-derived" matches "program derived"."""
    return re.sub(r"[-_]", " ", text.lower())


@dataclass
class IntentScores:
    """Per-category scores and the evidence behind them."""

    live_data: float = 0.0
    knowledge: float = 0.0
    hybrid: float = 0.0
    matched: Dict[str, List[str]] = field(default_factory=dict)
    addresses: List[str] = field(default_factory=list)
    entities: List[ClassificationResult] = field(default_factory=list)
    model_label: Optional[Intent] = None

    def add(self, intent: Intent, weight: float, evidence: str) -> None:
        if intent == Intent.GENERAL:
            return
        setattr(self, intent.value, getattr(self, intent.value) + weight)
        self.matched.setdefault(intent.value, []).append(evidence)

    def decide(self) -> Intent:
        """Pick the intent; hybrid evidence wins over everything else."""
        if self.hybrid > HYBRID_THRESHOLD:
            return Intent.HYBRID
        if self.live_data > self.knowledge and self.live_data > DECISION_THRESHOLD:
            return Intent.LIVE_DATA
        if self.knowledge > self.live_data and self.knowledge > DECISION_THRESHOLD:
            return Intent.KNOWLEDGE
        return Intent.GENERAL


def keyword_scores(text: str, addresses: Sequence[str] = (),
                   entities: Sequence[ClassificationResult] = ()) -> IntentScores:
    """Score a query from its wording and the addresses it mentions."""
    normalized = normalize(text)
    scores = IntentScores(addresses=list(addresses), entities=list(entities))

    for category, patterns, weight in (
        (Intent.LIVE_DATA, _LIVE_PATTERNS, LIVE_WEIGHT),
        (Intent.KNOWLEDGE, _KNOWLEDGE_PATTERNS, KNOWLEDGE_WEIGHT),
        (Intent.HYBRID, _HYBRID_PATTERNS, HYBRID_WEIGHT),
    ):
        for keyword, pattern in patterns:
            if pattern.search(normalized):
                scores.add(category, weight, keyword)

    if addresses:
        scores.add(Intent.LIVE_DATA, ADDRESS_WEIGHT, "address")
    for entity in entities:
        boost = ENTITY_BOOSTS.get(entity.type)
        if boost is not None:
            scores.add(boost[0], boost[1], f"entity:{entity.type.value}")
    return scores


class IntentClassifier(BaseService):
    """Labels a query as live_data, knowledge, hybrid or general."""

    def __init__(
        self,
        model_client: Optional[ModelClient] = None,
        entity_classifier: Optional[EntityClassifier] = None,
        max_addresses: int = 3,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(logger=logger)
        self.model_client = model_client
        self.entity_classifier = entity_classifier
        self.max_addresses = max_addresses

    async def _model_vote(self, query: str) -> Intent:
        if self.model_client is None:
            return Intent.GENERAL
        try:
            label = await self.model_client.classify_intent(query)
        except UpstreamServiceError as e:
            self.logger.warning(f"Model intent vote unavailable: {e}")
            return Intent.GENERAL
        return MODEL_LABELS.get(label, Intent.GENERAL)

    async def score(self, query: str, known_address: Optional[str] = None) -> IntentScores:
        """
        Score a query.

        Args:
            query: Question text
            known_address: Address supplied alongside the query, if any

        Returns:
            Scores with their evidence
        """
        addresses = extract_addresses(query)
        to_classify = list(addresses)
        if known_address and known_address not in to_classify:
            to_classify.append(known_address)

        entities: List[ClassificationResult] = []
        if self.entity_classifier is not None and to_classify:
            entities = await self.entity_classifier.classify_many(to_classify[:self.max_addresses])

        # Only addresses written into the question count as address evidence
        scores = keyword_scores(query, addresses, entities)
        vote = await self._model_vote(query)
        scores.model_label = vote
        scores.add(vote, MODEL_VOTE_WEIGHT, "model")
        return scores

    async def classify(self, query: str, known_address: Optional[str] = None) -> Intent:
        """Classify a query into exactly one intent; never raises for collaborator failures."""
        scores = await self.score(query, known_address)
        intent = scores.decide()
        self.logger.debug(
            f"Intent {intent.value} (live={scores.live_data:.2f}, knowledge={scores.knowledge:.2f}, "
            f"hybrid={scores.hybrid:.2f}, model={scores.model_label})"
        )
        return intent
