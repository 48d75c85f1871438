import random
from dataclasses import dataclass

import pytest

from plugins.red_packet.allocator import calculate_grab_amount, mark_best_luck


class FixedRandom:
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


@dataclass
class Record:
    amount: int
    is_best: bool = False


def test_last_claimant_takes_remainder():
    assert calculate_grab_amount(777, 1) == 777


def test_lowest_draw_is_one_fen():
    assert calculate_grab_amount(1000, 3, FixedRandom(0.0)) == 1


def test_draw_never_exceeds_double_average():
    # 1000 / 4 * 2 = 500
    assert calculate_grab_amount(1000, 4, FixedRandom(0.999999)) == 500


def test_draw_leaves_one_fen_for_everyone_else():
    # double average is 2.5 but only 2 fen can be spared
    for value in (0.0, 0.5, 0.999999):
        assert 1 <= calculate_grab_amount(5, 4, FixedRandom(value)) <= 2


def test_exact_floor_gives_one_fen_each():
    assert calculate_grab_amount(3, 3, FixedRandom(0.9)) == 1


@pytest.mark.parametrize("remain_amount, remain_num", [(10, 0), (2, 3), (0, 1)])
def test_rejects_unsatisfiable_state(remain_amount, remain_num):
    with pytest.raises(ValueError):
        calculate_grab_amount(remain_amount, remain_num)


def test_full_split_conserves_total():
    rng = random.Random(20240101)
    for _ in range(200):
        total = rng.randint(10, 100000)
        num = rng.randint(1, min(total, 50))
        remain_amount, remain_num = total, num
        amounts = []
        while remain_num:
            amount = calculate_grab_amount(remain_amount, remain_num, rng)
            assert 1 <= amount <= remain_amount - (remain_num - 1)
            amounts.append(amount)
            remain_amount -= amount
            remain_num -= 1
        assert sum(amounts) == total
        assert remain_amount == 0


def test_mark_best_luck_first_maximum_wins():
    records = [Record(100), Record(300), Record(300, is_best=True), Record(50)]
    mark_best_luck(records)
    assert [record.is_best for record in records] == [False, True, False, False]


def test_mark_best_luck_empty():
    mark_best_luck([])
