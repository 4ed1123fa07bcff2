"""Net balance derivation (split_kernel/domain/balances.py)."""

import pytest

from split_kernel.domain.balances import compute_balances, total_outstanding
from split_kernel.domain.ledger import Ledger
from split_kernel.domain.values import Money
from split_kernel.exceptions import ConservationViolationError
from tests.helpers import expense, reminder, settlement, units


class TestComputeBalances:

    def test_empty_ledger_lists_members_at_zero(self, ledger):
        assert units(compute_balances(ledger)) == {"alice": 0, "bob": 0, "carol": 0}

    def test_empty_memberless_ledger(self):
        assert compute_balances(Ledger("empty")) == {}

    def test_simple_three_way_split(self, ledger):
        ledger = ledger.append(expense("e1", "alice", 9000, ["alice", "bob", "carol"]))
        assert units(compute_balances(ledger)) == {"alice": 6000, "bob": -3000, "carol": -3000}

    def test_settlement_moves_balance(self, ledger):
        ledger = ledger.append(expense("e1", "alice", 9000, ["alice", "bob", "carol"]))
        ledger = ledger.append(settlement("s1", "bob", "alice", 3000))
        assert units(compute_balances(ledger)) == {"alice": 3000, "bob": 0, "carol": -3000}

    def test_reminder_has_no_effect(self, ledger):
        ledger = ledger.append(expense("e1", "alice", 9000, ["alice", "bob", "carol"]))
        before = compute_balances(ledger)
        ledger = ledger.append(reminder("r1", "alice", "bob"))
        assert compute_balances(ledger) == before

    def test_payer_not_participating(self, ledger):
        ledger = ledger.append(expense("e1", "alice", 500, shares={"bob": 500}))
        assert units(compute_balances(ledger)) == {"alice": 500, "bob": -500, "carol": 0}

    def test_remainder_units_conserved(self, ledger):
        ledger = ledger.append(expense("e1", "carol", 1000, ["alice", "bob", "carol"]))
        balances = units(compute_balances(ledger))
        assert balances == {"alice": -334, "bob": -333, "carol": 667}
        assert sum(balances.values()) == 0

    def test_overpayment_flips_sign(self, ledger):
        ledger = ledger.append(expense("e1", "alice", 2000, ["alice", "bob"]))
        ledger = ledger.append(settlement("s1", "bob", "alice", 1500))
        assert units(compute_balances(ledger)) == {"alice": -500, "bob": 500, "carol": 0}

    def test_auto_registered_ids_follow_members(self, open_ledger):
        open_ledger = open_ledger.append(expense("e1", "y", 100, ["x"]))
        assert list(compute_balances(open_ledger)) == ["y", "x"]

    def test_recomputation_is_stable(self, ledger):
        ledger = ledger.append(expense("e1", "bob", 777, ["alice", "bob", "carol"]))
        assert compute_balances(ledger) == compute_balances(ledger)

    def test_always_sums_to_zero(self, ledger):
        txs = [
            expense("e1", "alice", 1001, ["alice", "bob", "carol"]),
            expense("e2", "bob", 50, shares={"carol": 20, "alice": 30}),
            settlement("s1", "carol", "alice", 400),
            expense("e3", "carol", 3, ["alice", "bob"]),
        ]
        for tx in txs:
            ledger = ledger.append(tx)
            assert sum(compute_balances(ledger).values()) == Money(0)


class TestConservationGuard:

    def test_unbalanced_input_raises(self, ledger, monkeypatch):
        from split_kernel.domain import balances as balances_module

        ledger = ledger.append(expense("e1", "alice", 100, ["bob"]))
        monkeypatch.setattr(
            balances_module,
            "_balance_effects",
            lambda tx: [(tx.payer_id, tx.amount.minor_units)],
        )
        with pytest.raises(ConservationViolationError) as exc_info:
            compute_balances(ledger)
        assert exc_info.value.residual == 100


class TestTotalOutstanding:

    def test_sums_debts(self):
        balances = {"a": Money(500), "b": Money(-200), "c": Money(-300)}
        assert total_outstanding(balances) == Money(500)

    def test_settled(self):
        assert total_outstanding({"a": Money(0)}) == Money(0)
