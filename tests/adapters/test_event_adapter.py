"""Event records mapped onto Transactions (split_kernel/adapters/event.py)."""

import pytest

from split_kernel.adapters import (
    MemberResolver,
    event_ledger,
    event_ledger_from_config,
    event_record_to_transaction,
)
from split_kernel.adapters.event import REMINDER_CATEGORY, SETTLEMENT_CATEGORY
from split_kernel.config import KernelConfig
from split_kernel.domain.balances import compute_balances
from split_kernel.domain.history import PairState, pair_status
from split_kernel.domain.planner import plan_settlements
from split_kernel.domain.transactions import TransactionKind
from split_kernel.domain.values import Money
from split_kernel.exceptions import UnsupportedRecordError
from tests.helpers import instructions, units

MEMBERS = ["host", "dj", "chef"]
RESOLVE = MemberResolver("host")


class TestRecordMapping:

    def test_ordinary_expense_shared_by_all_members(self):
        tx = event_record_to_transaction(
            {"id": "x1", "name": "Venue", "amount": "500.00", "category": "Venue",
             "date": "2024-05-02", "paid_by": "dj"},
            MEMBERS,
            RESOLVE,
        )
        assert tx.kind is TransactionKind.EXPENSE
        assert tx.payer_id == "dj"
        assert {m: s.minor_units for m, s in tx.shares.items()} == {"host": 16666, "dj": 16667, "chef": 16667}
        assert tx.description == "Venue"

    def test_payer_defaults_to_local_member(self):
        tx = event_record_to_transaction(
            {"id": "x1", "amount": "30.00", "category": "Food", "date": "2024-05-02"},
            MEMBERS,
            RESOLVE,
        )
        assert tx.payer_id == "host"

    def test_settlement_uses_receiver_field(self):
        tx = event_record_to_transaction(
            {"id": "s1", "amount": "20.00", "category": SETTLEMENT_CATEGORY, "date": "2024-05-03",
             "paid_by": "chef", "receiver_id": "host", "vendor_id": "catering-co"},
            MEMBERS,
            RESOLVE,
        )
        assert tx.kind is TransactionKind.SETTLEMENT
        assert (tx.payer_id, tx.receiver_id) == ("chef", "host")

    def test_settlement_without_receiver(self):
        with pytest.raises(UnsupportedRecordError):
            event_record_to_transaction(
                {"id": "s1", "amount": "20.00", "category": SETTLEMENT_CATEGORY, "date": "2024-05-03",
                 "paid_by": "chef", "vendor_id": "host"},
                MEMBERS,
                RESOLVE,
            )

    def test_reminder(self):
        tx = event_record_to_transaction(
            {"id": "r1", "amount": "10.00", "category": REMINDER_CATEGORY, "date": "2024-05-04",
             "target_id": "dj"},
            MEMBERS,
            RESOLVE,
        )
        assert tx.kind is TransactionKind.REMINDER
        assert (tx.payer_id, tx.target_id) == ("host", "dj")
        assert tx.amount == Money(1000)

    def test_event_without_members(self):
        with pytest.raises(UnsupportedRecordError):
            event_record_to_transaction(
                {"id": "x1", "amount": "30.00", "category": "Food", "date": "2024-05-02"},
                [],
                RESOLVE,
            )

    def test_no_local_member_and_no_payer(self):
        with pytest.raises(UnsupportedRecordError):
            event_record_to_transaction(
                {"id": "x1", "amount": "30.00", "category": "Food", "date": "2024-05-02"},
                MEMBERS,
                MemberResolver(None),
            )


class TestEventLedger:

    @pytest.fixture
    def event(self) -> dict:
        return {
            "id": "ev1",
            "members": [{"id": "me", "name": "Host"}, {"id": "dj"}, {"id": "chef"}],
            "expenses": [
                {"id": "x2", "amount": "60.00", "category": "Food", "date": "2024-05-02", "paid_by": "chef"},
                {"id": "x1", "amount": "300.00", "category": "Venue", "date": "2024-05-01"},
                {"id": "r1", "amount": "100.00", "category": REMINDER_CATEGORY, "date": "2024-05-05",
                 "target_id": "dj"},
            ],
        }

    def test_balances_and_plan(self, event):
        ledger = event_ledger(event, local_member_id="host")
        assert [tx.id for tx in ledger] == ["x1", "x2", "r1"]
        balances = compute_balances(ledger)
        assert units(balances) == {"host": 18000, "dj": -12000, "chef": -6000}
        assert instructions(plan_settlements(balances)) == [
            ("dj", "host", 12000),
            ("chef", "host", 6000),
        ]

    def test_member_names(self, event):
        ledger = event_ledger(event, local_member_id="host")
        assert ledger.member("host").display_name == "Host"
        assert ledger.member("dj").display_name == "dj"

    def test_reminder_status(self, event):
        ledger = event_ledger(event, local_member_id="host")
        assert pair_status(ledger, "dj", "host").state is PairState.REMINDED
        assert pair_status(ledger, "chef", "host").state is PairState.PENDING

    def test_settlement_row_pays_down(self, event):
        event["expenses"].append(
            {"id": "s1", "amount": "120.00", "category": SETTLEMENT_CATEGORY, "date": "2024-05-06",
             "paid_by": "dj", "receiver_id": "me"}
        )
        ledger = event_ledger(event, local_member_id="host")
        assert pair_status(ledger, "dj", "host").state is PairState.SETTLED
        assert instructions(plan_settlements(compute_balances(ledger))) == [("chef", "host", 6000)]

    def test_from_config_uses_decimal_places_and_currency(self, event):
        config = KernelConfig(currency="KWD", decimal_places=3, local_member_alias="me")
        ledger = event_ledger_from_config(event, config, local_member_id="host")

        assert ledger.currency == "KWD"
        assert units(compute_balances(ledger)) == {"host": 180000, "dj": -120000, "chef": -60000}

    def test_from_config_alias(self, event):
        config = KernelConfig(local_member_alias="host-user")
        for member in event["members"]:
            if member["id"] == "me":
                member["id"] = "host-user"
        event["expenses"][1]["paid_by"] = "host-user"

        ledger = event_ledger_from_config(event, config, local_member_id="host")

        assert ledger.member_ids() == ("host", "dj", "chef")
        assert units(compute_balances(ledger))["host"] == 18000
