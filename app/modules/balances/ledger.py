"""
Balance computation over rows fetched from Supabase.

Sign convention: a positive balance means the user is owed money,
a negative balance means the user owes money.

Expected row shapes (extra keys are ignored):
    expense:    {"id", "amount", "paid_by"}
    split:      {"expense_id", "user_id", "amount"}
    settlement: {"payer_id", "payee_id", "amount"}
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping

from app.core.money import ZERO, from_cents, quantize, to_cents


@dataclass(frozen=True)
class Transfer:
    from_user_id: str
    to_user_id: str
    amount: Decimal


def _payers_by_expense(expenses: Iterable[Mapping]) -> Dict[str, str]:
    return {e["id"]: e["paid_by"] for e in expenses}


def net_balances(
    expenses: Iterable[Mapping],
    splits: Iterable[Mapping],
    settlements: Iterable[Mapping] = (),
) -> Dict[str, Decimal]:
    """Net position per user: paid - owed + settled out - settled in. Sums to zero."""
    expenses = list(expenses)
    balances: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    payers = _payers_by_expense(expenses)
    for expense in expenses:
        balances[expense["paid_by"]] += quantize(expense["amount"])
    for split in splits:
        if split["expense_id"] not in payers:
            continue
        balances[split["user_id"]] -= quantize(split["amount"])
    for settlement in settlements:
        amount = quantize(settlement["amount"])
        balances[settlement["payer_id"]] += amount
        balances[settlement["payee_id"]] -= amount
    return dict(balances)


def counterparty_balances(
    user_id: str,
    expenses: Iterable[Mapping],
    splits: Iterable[Mapping],
    settlements: Iterable[Mapping] = (),
) -> Dict[str, Decimal]:
    """Balance between user_id and every user they share an expense or settlement with.
    Positive: the counterparty owes user_id."""
    payers = _payers_by_expense(expenses)
    result: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for split in splits:
        payer = payers.get(split["expense_id"])
        debtor = split["user_id"]
        if payer is None or payer == debtor:
            continue
        amount = quantize(split["amount"])
        if payer == user_id:
            result[debtor] += amount
        elif debtor == user_id:
            result[payer] -= amount
    for settlement in settlements:
        amount = quantize(settlement["amount"])
        payer, payee = settlement["payer_id"], settlement["payee_id"]
        if payer == user_id and payee != user_id:
            result[payee] += amount
        elif payee == user_id and payer != user_id:
            result[payer] -= amount
    return dict(result)


def pairwise_balance(
    user_id: str,
    other_id: str,
    expenses: Iterable[Mapping],
    splits: Iterable[Mapping],
    settlements: Iterable[Mapping] = (),
) -> Decimal:
    """Positive when other_id owes user_id"""
    return counterparty_balances(user_id, expenses, splits, settlements).get(other_id, ZERO)


def simplify_debts(balances: Mapping[str, Decimal]) -> List[Transfer]:
    """
    Greedy settlement plan: repeatedly match the largest debtor with the largest
    creditor. Produces at most n - 1 transfers and zeros every balance when applied.
    """
    debtors = []
    creditors = []
    for user_id, balance in balances.items():
        cents = to_cents(balance)
        if cents < 0:
            debtors.append([user_id, -cents])
        elif cents > 0:
            creditors.append([user_id, cents])
    if sum(c for _, c in creditors) != sum(d for _, d in debtors):
        raise ValueError("Balances do not sum to zero")

    debtors.sort(key=lambda d: (-d[1], d[0]))
    creditors.sort(key=lambda c: (-c[1], c[0]))

    transfers = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        cents = min(debtor[1], creditor[1])
        transfers.append(Transfer(debtor[0], creditor[0], from_cents(cents)))
        debtor[1] -= cents
        creditor[1] -= cents
        if debtor[1] == 0:
            i += 1
        if creditor[1] == 0:
            j += 1
    return transfers


def apply_transfers(balances: Mapping[str, Decimal], transfers: Iterable[Transfer]) -> Dict[str, Decimal]:
    result = {user_id: quantize(b) for user_id, b in balances.items()}
    for t in transfers:
        result[t.from_user_id] = result.get(t.from_user_id, ZERO) + t.amount
        result[t.to_user_id] = result.get(t.to_user_id, ZERO) - t.amount
    return result
