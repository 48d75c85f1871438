import random
from typing import Protocol, Sequence


class RandomSource(Protocol):
    def random(self) -> float: ...


class HasAmount(Protocol):
    amount: int
    is_best: bool


def calculate_grab_amount(
    remain_amount: int, remain_num: int, rng: RandomSource = random
) -> int:
    """
    Amount (in fen) for the next claimant, using the "double average" method.

    Each draw is uniform in [1, min(2 * average, remain - reserved)), where
    `reserved` keeps 1 fen for every claimant still to come. The last claimant
    takes whatever is left, so a packet always empties exactly.
    """
    if remain_num < 1:
        raise ValueError("remain_num must be at least 1")
    if remain_amount < remain_num:
        raise ValueError("remain_amount must cover 1 fen per remaining claimant")

    if remain_num == 1:
        return remain_amount

    ceiling = remain_amount - (remain_num - 1)
    max_amount = min(remain_amount / remain_num * 2, ceiling)
    min_amount = 1

    if max_amount <= min_amount:
        return min_amount

    amount = round(rng.random() * (max_amount - min_amount) + min_amount)

    return max(min_amount, min(amount, ceiling))


def mark_best_luck(records: Sequence[HasAmount]) -> None:
    """Flag the first record holding the largest amount, clear the rest."""
    if not records:
        return

    best = records[0]
    for record in records[1:]:
        if record.amount > best.amount:
            best = record

    for record in records:
        record.is_best = record is best
