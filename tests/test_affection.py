import asyncio
import math

import pytest

from plugins.affection.levels import (
    AFFECTION_LEVELS,
    MAX_SCORE,
    MIN_SCORE,
    calculate_level,
    get_affection_levels,
)
from plugins.affection.models import HISTORY_LIMIT
from plugins.affection.service import (
    clamp_change,
    get_affection,
    get_affection_session_ids,
    get_all_affections,
    reset_character,
    update_affection,
)


def test_levels_cover_the_whole_range():
    levels = get_affection_levels()

    assert levels[0].min == MIN_SCORE
    assert levels[-1].max == MAX_SCORE
    for previous, current in zip(levels, levels[1:]):
        assert current.min == previous.max + 1
        assert current.level == previous.level + 1


def test_level_is_monotonic_in_score():
    levels = [calculate_level(score).level for score in range(MIN_SCORE, MAX_SCORE + 1)]
    assert levels == sorted(levels)
    assert levels[0] == 1
    assert levels[-1] == len(AFFECTION_LEVELS)


@pytest.mark.parametrize(
    "score, level, title",
    [(0, 1, "陌生人"), (50, 1, "陌生人"), (51, 2, "点头之交"), (1000, 9, "挚爱"), (-20, 1, "陌生人"), (2000, 9, "挚爱")],
)
def test_calculate_level(score, level, title):
    result = calculate_level(score)
    assert (result.level, result.title) == (level, title)


@pytest.mark.parametrize(
    "raw, change",
    [(8, 8), (2.5, 3), (-2.5, -2), (15, 10), (-99, -10), ("4", 4), ("abc", 0), (None, 0), (math.nan, 0), (math.inf, 0)],
)
def test_clamp_change(raw, change):
    assert clamp_change(raw) == change


def test_unknown_affection_is_default():
    record = get_affection("u1", "nobody")

    assert record.score == 0
    assert record.level == 1
    assert record.level_title == "陌生人"
    assert record.history == []
    assert get_all_affections("u1") == {}


async def test_first_update():
    result = await update_affection("u1", "charX", 8, "gift", "p1")

    assert result.old_score == 0
    assert result.new_score == 8
    assert result.level == 1
    assert result.level_title == "陌生人"
    assert not result.level_up
    assert not result.level_down
    assert result.to_dict()["charId"] == "charX"


async def test_crossing_a_band_levels_up():
    await update_affection("u1", "charX", 48, "setup", "p1")

    result = await update_affection("u1", "charX", 5, "chat", "p1")

    assert result.old_score == 48
    assert result.new_score == 53
    assert result.level == 2
    assert result.level_title == "点头之交"
    assert result.level_up


async def test_falling_a_band_levels_down():
    await update_affection("u1", "charX", 55)

    result = await update_affection("u1", "charX", -10, "吵架")

    assert result.new_score == 45
    assert result.level_down
    assert not result.level_up


async def test_score_saturates():
    await update_affection("u1", "charX", 990)
    high = await update_affection("u1", "charX", 50)
    assert high.new_score == 1000

    reset_character("u1", "charX")
    low = await update_affection("u1", "charX", -10)
    assert low.new_score == 0
    assert low.old_score == 0


async def test_default_reason_and_history_order():
    await update_affection("u1", "charX", 3)
    await update_affection("u1", "charX", -1, "顶嘴")

    history = get_affection("u1", "charX").history

    assert [entry["reason"] for entry in history] == ["顶嘴", "互动"]
    assert history[0]["oldScore"] == 3
    assert history[0]["newScore"] == 2
    assert history[0]["date"].endswith("Z")


async def test_history_is_capped():
    for i in range(HISTORY_LIMIT + 5):
        await update_affection("u1", "charX", 1, f"第{i}次")

    record = get_affection("u1", "charX")

    assert record.score == HISTORY_LIMIT + 5
    assert len(record.history) == HISTORY_LIMIT
    assert record.history[0]["reason"] == f"第{HISTORY_LIMIT + 4}次"


async def test_sessions_are_isolated():
    await update_affection("u1", "charX", 10, session_id="player")
    await update_affection("u1", "charX", -3, session_id="alt")
    await update_affection("u1", "charY", 7, session_id="player")

    assert get_affection("u1", "charX", "player").score == 10
    assert get_affection("u1", "charX", "alt").score == 0
    assert sorted(get_all_affections("u1", "player")) == ["charX", "charY"]
    assert list(get_all_affections("u1", "alt")) == ["charX"]
    assert get_affection_session_ids("u1") == ["alt", "player"]


def test_session_ids_always_include_player():
    assert get_affection_session_ids("u1") == ["player"]


async def test_concurrent_updates_are_not_lost():
    await asyncio.gather(*(update_affection("u1", "charX", 2) for _ in range(20)))

    record = get_affection("u1", "charX")
    assert record.score == 40
    assert len(record.history) == 20


async def test_reset_character_clears_every_session():
    await update_affection("u1", "charX", 5, session_id="player")
    await update_affection("u1", "charX", 5, session_id="alt")
    await update_affection("u1", "charY", 5)
    await update_affection("u2", "charX", 5)

    assert reset_character("u1", "charX") == 2

    assert get_affection("u1", "charX").score == 0
    assert get_affection("u1", "charY").score == 5
    assert get_affection("u2", "charX").score == 5
    assert reset_character("u1", "charX") == 0
