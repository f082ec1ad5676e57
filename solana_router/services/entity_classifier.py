"""
Entity classification for Solana addresses and transaction signatures.

Classification runs a fixed precedence chain and stops at the first
confident answer:

1. Signature-length check (no network)
2. Known-program table (no network)
3. Name and curve heuristics, which only adjust confidence later on
4. On-chain account lookup through the failover executor

Only when no RPC client is configured do the heuristics decide the result.
"""

import asyncio
import base64
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import base58

from solana_router.clients.rpc_client import SolanaRpcClient
from solana_router.constants import (
    KNOWN_OWNER_PROGRAMS,
    KNOWN_PROGRAMS,
    MINT_ACCOUNT_SIZE,
    MINT_DECIMALS_OFFSET,
    MINT_SUPPLY_OFFSET,
    OFF_CURVE_CONFIDENCE,
    PDA_NAME_PATTERNS,
    PROGRAM_LOADERS,
    SYSTEM_PROGRAM_ID,
    TOKEN_2022_ACCOUNT_TYPE,
    TOKEN_2022_ACCOUNT_TYPE_OFFSET,
    TOKEN_2022_MINT_TYPE,
    TOKEN_2022_PROGRAM_ID,
    TOKEN_ACCOUNT_SIZE,
    TOKEN_PROGRAM_IDS,
)
from solana_router.models.entities import ClassificationResult, ClassificationStage, EntityType
from solana_router.services.base_service import BaseService
from solana_router.utils.errors import ClassificationIndeterminate, RouterError
from solana_router.utils.validation import is_base58, is_off_curve, looks_like_pubkey, looks_like_signature

# Confidence levels for on-chain outcomes
NOT_FOUND_CONFIDENCE = 0.7
NOT_FOUND_PDA_HINT_CONFIDENCE = 0.6
TOKEN_ACCOUNT_CONFIDENCE = 0.8
OWNED_PDA_CONFIDENCE = 0.9
DEFAULT_WALLET_CONFIDENCE = 0.6

PdaHint = Tuple[str, float]


def detect_pda_hint(address: str) -> Optional[PdaHint]:
    """Soft signal that an address may be program-derived.

    Returns:
        ``(evidence, confidence)`` for the strongest matching signal, or None
    """
    lowered = address.lower()
    for fragment, confidence in PDA_NAME_PATTERNS:
        if fragment in lowered:
            return f"name_pattern:{fragment}", confidence
    if is_off_curve(address):
        return "off_curve", OFF_CURVE_CONFIDENCE
    return None


def _read_u64(raw: bytes, offset: int) -> int:
    return int.from_bytes(raw[offset:offset + 8], "little")


def _read_coption_pubkey(raw: bytes, offset: int) -> Optional[str]:
    """Decode a ``COption<Pubkey>``: a u32 tag followed by 32 key bytes."""
    if int.from_bytes(raw[offset:offset + 4], "little") != 1:
        return None
    return base58.b58encode(raw[offset + 4:offset + 36]).decode("ascii")


def _decode_account_data(account: Dict[str, Any]) -> bytes:
    data = account.get("data")
    if isinstance(data, list) and data:
        encoded, encoding = data[0], (data[1] if len(data) > 1 else "base64")
    else:
        encoded, encoding = data or "", "base64"
    if encoding != "base64":
        raise ValueError(f"Unsupported account data encoding: {encoding}")
    return base64.b64decode(encoded)


class EntityClassifier(BaseService):
    """Decides what kind of ledger entity an address or signature is."""

    def __init__(
        self,
        rpc_client: Optional[SolanaRpcClient] = None,
        fanout: int = 3,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the classifier.

        Args:
            rpc_client: RPC client for on-chain lookups; None classifies offline
            fanout: Maximum concurrent classifications in ``classify_many``
            logger: Optional logger instance
        """
        super().__init__(logger=logger)
        self.rpc_client = rpc_client
        self.fanout = fanout

    def _result(self, address: str, entity_type: EntityType, confidence: float,
                stage: ClassificationStage, evidence: str, source: str = "static",
                **details: Any) -> ClassificationResult:
        endpoint = None
        if source == "rpc" and self.rpc_client is not None:
            endpoint = self.rpc_client.current_endpoint
        return ClassificationResult(
            address=address,
            type=entity_type,
            confidence=confidence,
            stage=stage,
            evidence=evidence,
            details=details,
            source=source,
            rpc_endpoint=endpoint,
        )

    async def classify(self, value: str) -> ClassificationResult:
        """
        Classify an address-like string.

        Args:
            value: Any string; malformed input yields ``unknown`` without a network call

        Returns:
            A fresh classification result
        """
        address = value.strip() if isinstance(value, str) else ""

        if not is_base58(address):
            return self._result(address, EntityType.UNKNOWN, 0.0, ClassificationStage.VALIDATION,
                                "invalid_characters")

        if looks_like_signature(address):
            return self._result(address, EntityType.TRANSACTION, 1.0, ClassificationStage.SIGNATURE,
                                "signature_length")

        if not looks_like_pubkey(address):
            return self._result(address, EntityType.UNKNOWN, 0.0, ClassificationStage.VALIDATION,
                                "invalid_length", length=len(address))

        program_name = KNOWN_PROGRAMS.get(address)
        if program_name is not None:
            return self._result(address, EntityType.PROGRAM, 1.0, ClassificationStage.KNOWN_PROGRAM,
                                "known_program", name=program_name, recognized=True)

        hint = detect_pda_hint(address)

        if self.rpc_client is None:
            if hint is not None:
                evidence, confidence = hint
                return self._result(address, EntityType.PDA, confidence, ClassificationStage.HEURISTIC,
                                    evidence, source="heuristic")
            return self._result(address, EntityType.UNKNOWN, 0.0, ClassificationStage.HEURISTIC,
                                "no_network")

        try:
            account = await self.rpc_client.get_account_info(address)
            return self._classify_account(address, account, hint)
        except asyncio.CancelledError:
            raise
        except RouterError as e:
            return self._indeterminate(address, "network_error", str(e))
        except Exception as e:
            return self._indeterminate(address, "unreadable_account", f"{type(e).__name__}: {e}")

    def _indeterminate(self, address: str, evidence: str, reason: str) -> ClassificationResult:
        failure = ClassificationIndeterminate(address, reason)
        self.logger.warning(failure.message)
        return self._result(address, EntityType.UNKNOWN, 0.0, ClassificationStage.ON_CHAIN,
                            evidence, source="rpc", error=failure.to_dict())

    def _classify_account(self, address: str, account: Optional[Dict[str, Any]],
                          hint: Optional[PdaHint]) -> ClassificationResult:
        on_chain = ClassificationStage.ON_CHAIN
        pda_hint = hint[0] if hint else None

        if account is None:
            confidence = NOT_FOUND_PDA_HINT_CONFIDENCE if hint else NOT_FOUND_CONFIDENCE
            return self._result(address, EntityType.WALLET, confidence, on_chain, "account_not_found",
                                source="rpc", exists=False, pda_hint=pda_hint)

        owner = account.get("owner")
        lamports = account.get("lamports", 0)

        if account.get("executable"):
            label, upgradeable = PROGRAM_LOADERS.get(owner, ("Custom Program", None))
            return self._result(address, EntityType.PROGRAM, 1.0, on_chain, "executable",
                                source="rpc", program_type=label, upgradeable=upgradeable,
                                loader=owner, lamports=lamports)

        if owner in TOKEN_PROGRAM_IDS:
            token_result = self._classify_token_account(address, account, owner)
            if token_result is not None:
                return token_result

        owner_name = KNOWN_OWNER_PROGRAMS.get(owner) or (
            KNOWN_PROGRAMS.get(owner) if owner in TOKEN_PROGRAM_IDS else None
        )
        if owner_name is not None:
            return self._result(address, EntityType.PDA, OWNED_PDA_CONFIDENCE, on_chain, "owner_program",
                                source="rpc", owner=owner, owner_name=owner_name, lamports=lamports)

        return self._result(address, EntityType.WALLET, DEFAULT_WALLET_CONFIDENCE, on_chain,
                            "system_owned" if owner == SYSTEM_PROGRAM_ID else "unrecognized_owner",
                            source="rpc", owner=owner, lamports=lamports, pda_hint=pda_hint)

    def _classify_token_account(self, address: str, account: Dict[str, Any],
                                owner: str) -> Optional[ClassificationResult]:
        raw = _decode_account_data(account)
        size = len(raw)
        extended_type = None
        if owner == TOKEN_2022_PROGRAM_ID and size > TOKEN_2022_ACCOUNT_TYPE_OFFSET:
            extended_type = raw[TOKEN_2022_ACCOUNT_TYPE_OFFSET]

        if size == MINT_ACCOUNT_SIZE or extended_type == TOKEN_2022_MINT_TYPE:
            supply = _read_u64(raw, MINT_SUPPLY_OFFSET)
            decimals = raw[MINT_DECIMALS_OFFSET]
            entity_type = EntityType.NFT if supply == 1 and decimals == 0 else EntityType.TOKEN
            return self._result(address, entity_type, 1.0, ClassificationStage.ON_CHAIN, "mint_layout",
                                source="rpc", supply=supply, decimals=decimals, token_program=owner,
                                mint_authority=_read_coption_pubkey(raw, 0),
                                freeze_authority=_read_coption_pubkey(raw, 46))

        if size == TOKEN_ACCOUNT_SIZE or extended_type == TOKEN_2022_ACCOUNT_TYPE:
            return self._result(address, EntityType.WALLET, TOKEN_ACCOUNT_CONFIDENCE,
                                ClassificationStage.ON_CHAIN, "token_account_layout", source="rpc",
                                token_account=True,
                                mint=base58.b58encode(raw[0:32]).decode("ascii"),
                                holder=base58.b58encode(raw[32:64]).decode("ascii"),
                                amount=_read_u64(raw, 64), token_program=owner)
        return None

    async def classify_many(self, values: Iterable[str]) -> List[ClassificationResult]:
        """Classify several addresses with bounded concurrency, preserving order."""
        return await self.gather_with_concurrency(
            self.fanout, *[self.classify(value) for value in values]
        )
