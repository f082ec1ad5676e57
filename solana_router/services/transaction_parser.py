"""Parsing helpers for jsonParsed Solana transactions.

These are pure functions over RPC records; they never touch the network.
"""

import datetime
from typing import Any, Dict, List, Optional

from solana_router.constants import KNOWN_PROGRAMS, LAMPORTS_PER_SOL

# Parsed instruction labels keyed by (program, instruction type)
INSTRUCTION_LABELS = {
    ("system", "transfer"): "SOL Transfer",
    ("system", "transferWithSeed"): "SOL Transfer",
    ("spl-token", "transfer"): "Token Transfer",
    ("spl-token", "transferChecked"): "Token Transfer (Checked)",
    ("spl-associated-token-account", "create"): "Create Token Account",
    ("spl-associated-token-account", "createIdempotent"): "Create Token Account",
}


def block_time_to_iso(block_time: Optional[int]) -> Optional[str]:
    """Convert a Unix block time to an ISO-8601 UTC string."""
    if block_time is None:
        return None
    return datetime.datetime.fromtimestamp(block_time, tz=datetime.timezone.utc).isoformat()


def _account_keys(transaction: Dict[str, Any]) -> List[Dict[str, Any]]:
    message = (transaction.get("transaction") or {}).get("message") or {}
    keys = []
    for key in message.get("accountKeys", []):
        if isinstance(key, str):
            keys.append({"pubkey": key, "signer": False, "writable": False})
        else:
            keys.append(key)
    return keys


def label_instruction(instruction: Dict[str, Any]) -> str:
    """Human-readable label for one instruction."""
    program = instruction.get("program")
    parsed = instruction.get("parsed")
    if isinstance(parsed, dict) and program:
        instruction_type = parsed.get("type", "unknown")
        return INSTRUCTION_LABELS.get((program, instruction_type), f"{program}: {instruction_type}")
    program_id = instruction.get("programId", "")
    return KNOWN_PROGRAMS.get(program_id, f"Program {program_id[:8]}...")


def account_roles(transaction: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Signer/writable roles of every account in the transaction."""
    roles = []
    for index, key in enumerate(_account_keys(transaction)):
        if key.get("signer") and key.get("writable"):
            role = "fee payer" if index == 0 else "signer"
        elif key.get("signer"):
            role = "signer (read-only)"
        elif key.get("writable"):
            role = "writable"
        else:
            role = "read-only"
        pubkey = key.get("pubkey")
        roles.append({
            "account": pubkey,
            "role": role,
            "program": KNOWN_PROGRAMS.get(pubkey),
        })
    return roles


def balance_changes(transaction: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Per-account SOL balance changes, skipping unchanged accounts."""
    meta = transaction.get("meta") or {}
    pre = meta.get("preBalances") or []
    post = meta.get("postBalances") or []
    changes = []
    for index, key in enumerate(_account_keys(transaction)):
        if index >= len(pre) or index >= len(post):
            break
        delta = post[index] - pre[index]
        if delta:
            changes.append({
                "account": key.get("pubkey"),
                "change_sol": delta / LAMPORTS_PER_SOL,
                "pre_sol": pre[index] / LAMPORTS_PER_SOL,
                "post_sol": post[index] / LAMPORTS_PER_SOL,
            })
    return changes


def _instruction_transfers(instructions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    transfers = []
    for instruction in instructions:
        parsed = instruction.get("parsed")
        if not isinstance(parsed, dict):
            continue
        info = parsed.get("info") or {}
        label = INSTRUCTION_LABELS.get((instruction.get("program"), parsed.get("type")))
        if label == "SOL Transfer":
            transfers.append({
                "type": "SOL",
                "from": info.get("source"),
                "to": info.get("destination"),
                "amount": (info.get("lamports") or 0) / LAMPORTS_PER_SOL,
            })
        elif label in ("Token Transfer", "Token Transfer (Checked)"):
            token_amount = info.get("tokenAmount") or {}
            amount = token_amount.get("uiAmount")
            if amount is None:
                amount = info.get("amount")
            transfers.append({
                "type": "TOKEN",
                "from": info.get("source"),
                "to": info.get("destination"),
                "amount": amount,
                "mint": info.get("mint"),
            })
    return transfers


def _inferred_transfer(changes: List[Dict[str, Any]], fee_sol: float, fee_payer: Optional[str]) -> Optional[Dict[str, Any]]:
    """Pair the largest outflow with the largest inflow when no transfer was parsed."""
    senders = []
    for change in changes:
        outflow = -change["change_sol"]
        if change["account"] == fee_payer:
            outflow -= fee_sol
        if outflow > 0:
            senders.append((outflow, change["account"]))
    receivers = [(c["change_sol"], c["account"]) for c in changes if c["change_sol"] > 0]
    if not senders or not receivers:
        return None
    sent, sender = max(senders)
    received, receiver = max(receivers)
    return {
        "type": "SOL",
        "from": sender,
        "to": receiver,
        "amount": min(sent, received),
        "inferred": True,
    }


def summarize_transaction(transaction: Dict[str, Any], subject: Optional[str] = None) -> Dict[str, Any]:
    """Build a readable summary of a jsonParsed transaction.

    Args:
        transaction: ``getTransaction`` result in jsonParsed encoding
        subject: Optional address whose perspective is reported

    Returns:
        Summary with instructions, account roles, balance changes and transfers
    """
    meta = transaction.get("meta") or {}
    message = (transaction.get("transaction") or {}).get("message") or {}
    signatures = (transaction.get("transaction") or {}).get("signatures") or [None]
    instructions = message.get("instructions") or []
    fee_sol = (meta.get("fee") or 0) / LAMPORTS_PER_SOL

    keys = _account_keys(transaction)
    fee_payer = keys[0].get("pubkey") if keys else None
    changes = balance_changes(transaction)
    transfers = _instruction_transfers(instructions)
    if not transfers:
        inferred = _inferred_transfer(changes, fee_sol, fee_payer)
        if inferred:
            transfers.append(inferred)

    summary: Dict[str, Any] = {
        "signature": signatures[0],
        "slot": transaction.get("slot"),
        "block_time": transaction.get("blockTime"),
        "timestamp": block_time_to_iso(transaction.get("blockTime")),
        "status": "failed" if meta.get("err") else "success",
        "error": meta.get("err"),
        "fee_sol": fee_sol,
        "fee_payer": fee_payer,
        "instructions": [
            {
                "label": label_instruction(instruction),
                "program_id": instruction.get("programId"),
            }
            for instruction in instructions
        ],
        "accounts": account_roles(transaction),
        "balance_changes": changes,
        "transfers": transfers,
    }

    if subject:
        net = sum(c["change_sol"] for c in changes if c["account"] == subject)
        if net < 0:
            direction = "sent"
        elif net > 0:
            direction = "received"
        else:
            direction = "involved"
        summary["subject"] = {"address": subject, "net_change_sol": net, "direction": direction}

    return summary
