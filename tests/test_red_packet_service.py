import asyncio
import random

import pytest

from plugins.bank.utils import InvalidAmount
from plugins.red_packet.database import get_session
from plugins.red_packet.models import GrabStatus
from plugins.red_packet.service import (
    create_packet,
    expire_overdue_packets,
    get_active_packets,
    get_channel_packets,
    get_packet,
    get_packet_by_index,
    grab_packet,
    now_ms,
)
from plugins.red_packet.utils import InvalidCount, format_duration


def _create(amount="10.00", num=3, channel_id="c1", wishes=None):
    return create_packet(channel_id, "sender", "发红包的人", "", amount, num, wishes)


def _force_overdue(packet_id: str):
    session = get_session()
    packet = get_packet(packet_id)
    packet.expired_at = now_ms() - 1
    session.commit()


def test_create_packet_stores_fen():
    packet = _create("8.88", 4, wishes="新年快乐")

    assert packet.id.startswith("rp_")
    assert packet.total_amount == 888
    assert packet.remain_amount == 888
    assert packet.total_num == packet.remain_num == 4
    assert packet.wishes == "新年快乐"
    assert packet.records == []
    assert packet.expired_at - packet.created_at == 24 * 3600 * 1000
    assert packet.status(now_ms()) == "available"


def test_create_packet_default_wishes():
    assert _create().wishes == "恭喜发财，大吉大利"


def test_channel_index_is_per_channel():
    assert _create(channel_id="c1").channel_index == 1
    assert _create(channel_id="c1").channel_index == 2
    assert _create(channel_id="c2").channel_index == 1
    assert get_packet_by_index("c1", 2).channel_index == 2
    assert get_packet_by_index("c2", 2) is None


@pytest.mark.parametrize("amount, num", [("0.02", 3), ("0", 1), ("abc", 1), (-5, 1)])
def test_create_packet_rejects_bad_amount(amount, num):
    with pytest.raises(InvalidAmount):
        _create(amount, num)
    assert get_channel_packets("c1") == []


@pytest.mark.parametrize("num", [0, -1, "abc", "1.5", True])
def test_create_packet_rejects_bad_count(num):
    with pytest.raises(InvalidCount):
        _create("10", num)


async def test_three_grabs_empty_the_packet():
    packet = _create("10.00", 3)

    results = [
        await grab_packet(packet.id, f"user{i}", f"用户{i}") for i in range(3)
    ]

    assert all(result.status == GrabStatus.SUCCESS for result in results)
    assert sum(result.amount for result in results) == 1000
    packet = get_packet(packet.id)
    assert packet.remain_num == 0
    assert packet.remain_amount == 0
    assert packet.status(now_ms()) == "finished"


async def test_one_fen_floor():
    packet = _create("0.03", 3)

    amounts = [
        (await grab_packet(packet.id, f"user{i}", f"用户{i}")).amount for i in range(3)
    ]

    assert amounts == [1, 1, 1]


async def test_best_luck_is_set_once_on_completion():
    packet = _create("5.00", 3)

    first = await grab_packet(packet.id, "a", "A")
    second = await grab_packet(packet.id, "b", "B")
    assert first.completion is None and second.completion is None
    assert not any(record.is_best for record in get_packet(packet.id).records)

    last = await grab_packet(packet.id, "c", "C")
    assert last.completion is not None

    records = get_packet(packet.id).records
    best = [record for record in records if record.is_best]
    assert len(best) == 1
    assert best[0].amount == max(record.amount for record in records)
    assert last.completion.best_user_id == best[0].user_id
    assert last.completion.best_amount == best[0].amount
    assert last.completion.sender_name == "发红包的人"


async def test_exhausted_packet_is_not_mutated():
    packet = _create("0.02", 2)
    await grab_packet(packet.id, "a", "A")
    await grab_packet(packet.id, "b", "B")

    result = await grab_packet(packet.id, "c", "C")

    assert result.status == GrabStatus.EXHAUSTED
    assert not result.ok
    packet = get_packet(packet.id)
    assert [record.user_id for record in packet.records] == ["a", "b"]
    assert packet.remain_amount == 0


async def test_second_grab_returns_first_amount():
    packet = _create("10.00", 5)
    first = await grab_packet(packet.id, "a", "A")

    again = await grab_packet(packet.id, "a", "A")

    assert again.status == GrabStatus.ALREADY_CLAIMED
    assert again.ok
    assert again.amount == first.amount
    packet = get_packet(packet.id)
    assert len(packet.records) == 1
    assert packet.remain_num == 4


async def test_already_claimed_wins_over_exhausted():
    packet = _create("0.01", 1)
    await grab_packet(packet.id, "a", "A")

    again = await grab_packet(packet.id, "a", "A")

    assert again.status == GrabStatus.ALREADY_CLAIMED
    assert again.amount == 1
    assert again.is_best


async def test_unknown_packet():
    result = await grab_packet("rp_missing", "a", "A")
    assert result.status == GrabStatus.NOT_FOUND


async def test_overdue_packet_cannot_be_grabbed():
    packet = _create("10.00", 3)
    _force_overdue(packet.id)

    result = await grab_packet(packet.id, "a", "A")

    assert result.status == GrabStatus.EXPIRED
    assert get_packet(packet.id).records == []


async def test_expire_overdue_packets_keeps_remainder():
    packet = _create("10.00", 3)
    await grab_packet(packet.id, "a", "A")
    remain_amount = get_packet(packet.id).remain_amount
    fresh = _create("1.00", 1)
    _force_overdue(packet.id)

    assert expire_overdue_packets() == 1
    assert expire_overdue_packets() == 0

    packet = get_packet(packet.id)
    assert packet.is_expired
    assert packet.remain_amount == remain_amount
    assert packet.status(now_ms()) == "expired"
    assert not get_packet(fresh.id).is_expired


async def test_active_packets_newest_first():
    first = _create("1.00", 1)
    second = _create("1.00", 1)
    third = _create("1.00", 1)
    await grab_packet(second.id, "a", "A")
    _force_overdue(third.id)

    active = get_active_packets("c1")

    assert [packet.id for packet in active] == [first.id]
    assert len(get_channel_packets("c1")) == 3


async def test_concurrent_grabs_never_oversell():
    packet = _create("1.00", 5)

    results = await asyncio.gather(
        *(grab_packet(packet.id, f"user{i}", f"用户{i}") for i in range(12))
    )

    statuses = [result.status for result in results]
    assert statuses.count(GrabStatus.SUCCESS) == 5
    assert statuses.count(GrabStatus.EXHAUSTED) == 7
    assert sum(result.amount for result in results if result.ok) == 100
    assert sum(1 for result in results if result.completion is not None) == 1
    assert get_packet(packet.id).remain_num == 0


async def test_concurrent_duplicate_grab_counts_once():
    packet = _create("10.00", 5)

    results = await asyncio.gather(
        *(grab_packet(packet.id, "same", "同一个人") for _ in range(4))
    )

    statuses = [result.status for result in results]
    assert statuses.count(GrabStatus.SUCCESS) == 1
    assert statuses.count(GrabStatus.ALREADY_CLAIMED) == 3
    assert len({result.amount for result in results}) == 1
    assert len(get_packet(packet.id).records) == 1


async def test_seeded_rng_is_reproducible():
    first = _create("100.00", 4)
    second = _create("100.00", 4)

    amounts = []
    for packet in (first, second):
        rng = random.Random(7)
        amounts.append(
            [
                (await grab_packet(packet.id, f"u{i}", "U", rng=rng)).amount
                for i in range(4)
            ]
        )

    assert amounts[0] == amounts[1]


def test_to_dict_formats_yuan():
    data = _create("12.30", 2).to_dict()

    assert data["total_amount"] == "12.30"
    assert data["remain_amount"] == "12.30"
    assert data["total_num"] == 2
    assert data["records"] == []


@pytest.mark.parametrize(
    "seconds, expected",
    [(5, " 5 秒"), (60, " 1 分钟"), (75, " 1 分 15 秒"), (7200, " 2 小时"), (3660, " 1 小时 1 分钟")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
