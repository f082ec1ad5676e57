"""Unit tests for transaction parsing helpers."""

import pytest

from solana_router.constants import SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID
from solana_router.services.transaction_parser import (
    account_roles,
    balance_changes,
    block_time_to_iso,
    label_instruction,
    summarize_transaction,
)
from tests.fixtures.common import OTHER_WALLET, SIGNATURE, WALLET_ADDRESS, parsed_transaction


class TestLabels:
    """Test suite for instruction and account labels."""

    def test_parsed_system_transfer(self):
        instruction = {"program": "system", "parsed": {"type": "transfer", "info": {}}}
        assert label_instruction(instruction) == "SOL Transfer"

    def test_unlisted_parsed_instruction(self):
        instruction = {"program": "spl-token", "parsed": {"type": "burn", "info": {}}}
        assert label_instruction(instruction) == "spl-token: burn"

    def test_unparsed_known_program(self):
        assert label_instruction({"programId": TOKEN_PROGRAM_ID, "data": "3Bxs"}) == "SPL Token Program"

    def test_unparsed_unknown_program(self):
        assert label_instruction({"programId": OTHER_WALLET}) == f"Program {OTHER_WALLET[:8]}..."

    def test_account_roles(self):
        roles = account_roles(parsed_transaction())

        assert [r["role"] for r in roles] == ["fee payer", "writable", "read-only"]
        assert roles[2]["program"] == "System Program"

    def test_block_time(self):
        assert block_time_to_iso(None) is None
        assert block_time_to_iso(0) == "1970-01-01T00:00:00+00:00"


class TestSummarizeTransaction:
    """Test suite for summarize_transaction."""

    def test_parsed_transfer(self):
        # Execute
        summary = summarize_transaction(parsed_transaction())

        # Verify
        assert summary["signature"] == SIGNATURE
        assert summary["status"] == "success"
        assert summary["fee_payer"] == WALLET_ADDRESS
        assert summary["fee_sol"] == pytest.approx(0.000005)
        assert summary["transfers"] == [{
            "type": "SOL",
            "from": WALLET_ADDRESS,
            "to": OTHER_WALLET,
            "amount": 0.25,
        }]
        assert summary["instructions"][0]["program_id"] == SYSTEM_PROGRAM_ID

    def test_transfer_inferred_from_balances(self):
        summary = summarize_transaction(parsed_transaction(with_transfer_instruction=False))

        transfer = summary["transfers"][0]
        assert transfer["inferred"] is True
        assert transfer["from"] == WALLET_ADDRESS
        assert transfer["to"] == OTHER_WALLET
        assert transfer["amount"] == pytest.approx(0.25)

    def test_failed_transaction(self):
        summary = summarize_transaction(parsed_transaction(err={"InstructionError": [0, "Custom"]}))

        assert summary["status"] == "failed"
        assert summary["error"] == {"InstructionError": [0, "Custom"]}

    @pytest.mark.parametrize("subject,direction", [
        (WALLET_ADDRESS, "sent"),
        (OTHER_WALLET, "received"),
        (SYSTEM_PROGRAM_ID, "involved"),
    ])
    def test_subject_direction(self, subject, direction):
        summary = summarize_transaction(parsed_transaction(), subject=subject)

        assert summary["subject"]["direction"] == direction

    def test_unchanged_accounts_skipped(self):
        changes = balance_changes(parsed_transaction())

        assert [c["account"] for c in changes] == [WALLET_ADDRESS, OTHER_WALLET]

    def test_empty_record(self):
        summary = summarize_transaction({})

        assert summary["signature"] is None
        assert summary["transfers"] == []
        assert summary["accounts"] == []
