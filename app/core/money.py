"""
Money helpers: every amount in the ledger is a Decimal rounded to cents.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, ROUND_DOWN
from typing import Dict, Iterable, List, Tuple, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Parse a number or numeric string (as returned by PostgREST) into a Decimal"""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        # str() avoids binary float artifacts, e.g. 0.1 -> Decimal('0.1')
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


def quantize(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Number) -> int:
    return int(quantize(value) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def _distribute(total_cents: int, weights: List[Tuple[str, Decimal]]) -> List[Tuple[str, Decimal]]:
    """Split total_cents proportionally to weights, rounding down, then hand the
    leftover cents one each to the largest fractional remainders (ties in
    participant order). Zero-weight participants never receive a cent."""
    weight_sum = sum(w for _, w in weights)
    if weight_sum <= 0:
        raise ValueError("Split weights must sum to a positive value")
    shares = []
    fractions = []
    for index, (user_id, weight) in enumerate(weights):
        exact = Decimal(total_cents) * weight / weight_sum
        whole = int(exact.to_integral_value(rounding=ROUND_DOWN))
        shares.append([user_id, whole])
        if weight > 0:
            fractions.append((exact - whole, index))
    remainder = total_cents - sum(s[1] for s in shares)
    fractions.sort(key=lambda f: (-f[0], f[1]))
    for _, index in fractions[:remainder]:
        shares[index][1] += 1
    return [(user_id, from_cents(cents)) for user_id, cents in shares]


def _check_unique(user_ids: Iterable[str]) -> List[str]:
    ids = list(user_ids)
    if len(set(ids)) != len(ids):
        raise ValueError("A participant appears more than once in the split")
    return ids


def split_equally(total: Number, participant_ids: Iterable[str]) -> List[Tuple[str, Decimal]]:
    """Equal shares in cents; the first participants absorb the leftover cents.

    >>> split_equally("10.00", ["a", "b", "c"])
    [('a', Decimal('3.34')), ('b', Decimal('3.33')), ('c', Decimal('3.33'))]
    """
    ids = _check_unique(participant_ids)
    if not ids:
        raise ValueError("At least one participant is required")
    total_cents = to_cents(total)
    if total_cents <= 0:
        raise ValueError("Amount must be greater than zero")
    return _distribute(total_cents, [(user_id, Decimal(1)) for user_id in ids])


def split_by_percentage(total: Number, percents: Dict[str, Number]) -> List[Tuple[str, Decimal]]:
    """Shares proportional to percentages, which must add up to exactly 100"""
    ids = _check_unique(percents.keys())
    if not ids:
        raise ValueError("At least one participant is required")
    weights = []
    for user_id in ids:
        pct = to_decimal(percents[user_id])
        if pct < 0:
            raise ValueError("Percentages cannot be negative")
        weights.append((user_id, pct))
    if sum(w for _, w in weights) != Decimal(100):
        raise ValueError("Percentages must add up to 100")
    total_cents = to_cents(total)
    if total_cents <= 0:
        raise ValueError("Amount must be greater than zero")
    return _distribute(total_cents, weights)


def validate_custom_splits(
    total: Number,
    splits: Dict[str, Number],
    tolerance: Number = CENT,
) -> List[Tuple[str, Decimal]]:
    """
    Check exact splits against the expense total.

    The sum may differ from the total by at most `tolerance`; any such residue
    is folded into the first split so that the stored splits add up exactly.
    """
    ids = _check_unique(splits.keys())
    if not ids:
        raise ValueError("At least one participant is required")
    amount = quantize(total)
    if amount <= ZERO:
        raise ValueError("Amount must be greater than zero")
    result = []
    for user_id in ids:
        share = quantize(splits[user_id])
        if share < ZERO:
            raise ValueError("Split amounts cannot be negative")
        result.append((user_id, share))
    difference = amount - sum(s for _, s in result)
    if abs(difference) > to_decimal(tolerance):
        raise ValueError(
            f"Split amounts add up to {amount - difference} but the expense total is {amount}"
        )
    if difference != ZERO:
        first_id, first_share = result[0]
        if first_share + difference < ZERO:
            raise ValueError("Split amounts cannot be negative")
        result[0] = (first_id, first_share + difference)
    return result
