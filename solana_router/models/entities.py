"""Entity classification result types."""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class EntityType(str, Enum):
    """What kind of ledger entity an address or signature refers to."""

    TRANSACTION = "transaction"
    PROGRAM = "program"
    TOKEN = "token"
    NFT = "nft"
    PDA = "pda"
    WALLET = "wallet"
    UNKNOWN = "unknown"


class ClassificationStage(str, Enum):
    """Where in the precedence chain a classification was decided.

    Members are declared in precedence order. ``VALIDATION`` sits outside the
    chain: it only ever produces ``unknown`` results.
    """

    VALIDATION = "validation"
    SIGNATURE = "signature"
    KNOWN_PROGRAM = "known_program"
    ON_CHAIN = "on_chain"
    HEURISTIC = "heuristic"

    @property
    def ceiling(self) -> float:
        """Highest confidence a result from this stage may carry."""
        return _STAGE_CEILINGS[self]


_STAGE_CEILINGS = {
    ClassificationStage.VALIDATION: 0.0,
    ClassificationStage.SIGNATURE: 1.0,
    ClassificationStage.KNOWN_PROGRAM: 1.0,
    ClassificationStage.ON_CHAIN: 1.0,
    ClassificationStage.HEURISTIC: 0.8,
}


def _utc_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one address or signature.

    Results are produced fresh per call and never mutated.
    """

    address: str
    type: EntityType
    confidence: float
    stage: ClassificationStage
    evidence: str
    details: Dict[str, Any] = field(default_factory=dict)
    source: str = "static"
    rpc_endpoint: Optional[str] = None
    timestamp: str = field(default_factory=_utc_now)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")
        if self.type != EntityType.UNKNOWN and self.confidence <= 0.0:
            raise ValueError(f"{self.type.value} classification requires a positive confidence")
        if self.confidence > self.stage.ceiling:
            raise ValueError(
                f"confidence {self.confidence} exceeds the {self.stage.value} ceiling of {self.stage.ceiling}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "type": self.type.value,
            "confidence": self.confidence,
            "stage": self.stage.value,
            "evidence": self.evidence,
            "details": dict(self.details),
            "metadata": {
                "source": self.source,
                "rpcEndpoint": self.rpc_endpoint,
                "timestamp": self.timestamp,
            },
        }
