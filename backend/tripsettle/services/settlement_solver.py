"""
Debt settlement solver.

Greedy matching of the largest remaining debtor against the largest remaining
creditor. Not globally optimal, but produces at most
``#debtors + #creditors - 1`` transfers and is deterministic: ties are broken
by member id.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple, Union

from tripsettle.core.utils import EPSILON, round_money, to_decimal


@dataclass(frozen=True)
class Transfer:
    """Represents a single transfer between members."""
    from_member_id: int
    to_member_id: int
    amount: Decimal


def _as_pair(entry) -> Tuple[int, Decimal]:
    if isinstance(entry, tuple):
        member_id, balance = entry
    else:
        member_id, balance = entry.member_id, entry.balance
    return member_id, to_decimal(balance)


def minimize_transfers(balances: Iterable[Union[tuple, object]]) -> List[Transfer]:
    """
    Minimize the number of transfers needed to settle debts.

    ``balances`` holds ``(member_id, balance)`` tuples or objects with
    ``member_id`` and ``balance`` attributes. Balances within EPSILON of
    zero need no transfer. If the input does not sum to zero the loop still
    terminates, leaving the residue unsettled.
    """
    pairs = [_as_pair(entry) for entry in balances]
    if all(abs(bal) <= EPSILON for _, bal in pairs):
        return []

    # Separate creditors (positive balance) and debtors (negative balance)
    creditors = [[uid, bal] for uid, bal in pairs if bal > 0]
    debtors = [[uid, -bal] for uid, bal in pairs if bal < 0]  # Store as positive magnitude

    # Largest first; member id breaks ties
    creditors.sort(key=lambda x: (-x[1], x[0]))
    debtors.sort(key=lambda x: (-x[1], x[0]))

    transfers = []
    i = 0
    j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]
        amount = min(debtor[1], creditor[1])

        rounded = round_money(amount)
        if rounded > 0:
            transfers.append(Transfer(debtor[0], creditor[0], rounded))

        debtor[1] -= amount
        creditor[1] -= amount

        if debtor[1] <= EPSILON:
            i += 1
        if creditor[1] <= EPSILON:
            j += 1

    return transfers


def apply_transfers(
    balances: Iterable[Union[tuple, object]],
    transfers: Iterable[Transfer],
) -> Dict[int, Decimal]:
    """Residual balance per member after every transfer is paid."""
    residual = dict(_as_pair(entry) for entry in balances)
    for transfer in transfers:
        residual[transfer.from_member_id] = residual.get(transfer.from_member_id, Decimal("0")) + transfer.amount
        residual[transfer.to_member_id] = residual.get(transfer.to_member_id, Decimal("0")) - transfer.amount
    return residual
