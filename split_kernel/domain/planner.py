"""
Planner -- greedy min-cash-flow settlement planning.

Responsibility:
    Turns net balances into a short list of point-to-point transfers that
    brings every member to zero, instead of having every debtor pay every
    creditor.

Architecture position:
    Kernel > Domain -- pure function, zero I/O.

Algorithm:
    1. Members with a balance below zero are debtors, above zero are
       creditors; members at exactly zero are already settled.
    2. Debtors are ordered most negative first, creditors largest first.
       Ties on amount are broken by member id so equal inputs always give
       equal output, order included.
    3. Two pointers walk both lists. Each step moves
       min(|debtor|, creditor) from the current debtor to the current
       creditor and advances whichever side reached zero (both when the
       transfer clears both).
    4. When one list runs out, everything left on the other must be zero.

Invariants enforced:
    - DETERMINISTIC_PLAN: ordering is fully specified by (amount, id).
    - INSTRUCTION_BOUND: every instruction clears at least one party, so a
      plan has at most debtors + creditors - 1 instructions.
    - CONSERVATION: a non-zero residue after matching raises.

Trade-off:
    This is a heuristic. It keeps the transfer count within the bound above
    in O(D log D + C log C), but it does not search for the true minimum
    number of transfers (a subset-sum style problem). Callers must not
    present the plan as provably minimal.

Plans are never stored. The ledger may change between requests, so a plan
is always recomputed from the current balances.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from split_kernel.domain.values import Money
from split_kernel.exceptions import ConservationViolationError


@dataclass(frozen=True, slots=True)
class SettlementInstruction:
    """``from_id`` should pay ``to_id`` the given ``amount``."""

    from_id: str
    to_id: str
    amount: Money


SettlementPlan = tuple[SettlementInstruction, ...]


def plan_settlements(balances: Mapping[str, Money]) -> SettlementPlan:
    """
    Greedy debtor/creditor matching over ``balances``.

    Postconditions:
        - Applying the returned instructions zeroes every balance.
        - Output depends only on the (member, amount) pairs, not on the
          iteration order of ``balances``.

    Edge cases:
        - No debtors or no creditors (fully settled scope, single member,
          empty scope) -> empty plan.

    Raises:
        ConservationViolationError: If matching leaves a non-zero balance,
            which only happens when ``balances`` does not sum to zero.
    """
    debtors = sorted(
        ((member_id, -b.minor_units) for member_id, b in balances.items() if b.is_negative),
        key=lambda item: (-item[1], item[0]),
    )
    creditors = sorted(
        ((member_id, b.minor_units) for member_id, b in balances.items() if b.is_positive),
        key=lambda item: (-item[1], item[0]),
    )
    if not debtors or not creditors:
        return ()

    owed = [amount for _, amount in debtors]
    due = [amount for _, amount in creditors]
    instructions: list[SettlementInstruction] = []

    i = j = 0
    while i < len(debtors) and j < len(creditors):
        amount = min(owed[i], due[j])
        instructions.append(
            SettlementInstruction(debtors[i][0], creditors[j][0], Money(amount))
        )
        owed[i] -= amount
        due[j] -= amount
        if owed[i] == 0:
            i += 1
        if due[j] == 0:
            j += 1

    leftover = [debtors[k][0] for k in range(i, len(debtors)) if owed[k]]
    leftover += [creditors[k][0] for k in range(j, len(creditors)) if due[k]]
    if leftover:
        residual = sum(due[j:]) - sum(owed[i:])
        raise ConservationViolationError(residual, sorted(leftover))

    return tuple(instructions)


def apply_plan(
    balances: Mapping[str, Money],
    plan: Sequence[SettlementInstruction],
) -> dict[str, Money]:
    """
    Book every instruction as if it had been paid.

    Each instruction credits ``from_id`` and debits ``to_id`` by its amount,
    exactly as a recorded settlement would.
    """
    result = dict(balances)
    for instruction in plan:
        result[instruction.from_id] = result.get(instruction.from_id, Money.zero()) + instruction.amount
        result[instruction.to_id] = result.get(instruction.to_id, Money.zero()) - instruction.amount
    return result


def is_settled(balances: Mapping[str, Money]) -> bool:
    return all(b.is_zero for b in balances.values())
