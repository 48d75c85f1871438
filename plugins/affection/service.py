"""
好感度服务 - 按 (用户, 角色, 人设) 记录好感度分数、等级和变化历史
"""

import math
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from nonebot.log import logger

from utils.locks import KeyedLock

from .database import get_session
from .levels import calculate_level, clamp_score
from .models import Affection, AffectionRecord, AffectionUpdate, HISTORY_LIMIT


DEFAULT_SESSION = "player"
DEFAULT_REASON = "互动"
MAX_CHANGE = 10

affection_locks = KeyedLock()


def _lock_key(user_id: str, character_id: str, session_id: str) -> str:
    return f"{user_id}:{character_id}:{session_id}"


def _now_iso() -> str:
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def clamp_change(raw: Union[int, float, str, None]) -> int:
    """
    将一次评估的好感度变化规整到 [-10, 10] 的整数

    给调用方（例如解析 LLM 回复的地方）使用；无法解析时视为 0。
    """
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value):
        return 0
    # Half rounds up, -2.5 -> -2
    return max(-MAX_CHANGE, min(MAX_CHANGE, math.floor(value + 0.5)))


def _query(session, user_id: str, character_id: str, session_id: str):
    return session.query(Affection).filter(
        Affection.user_id == user_id,
        Affection.character_id == character_id,
        Affection.session_id == session_id,
    )


def get_affection(
    user_id: str, character_id: str, session_id: str = DEFAULT_SESSION
) -> AffectionRecord:
    """获取好感度，没有记录时返回默认值（不写入数据库）"""
    session = get_session()
    row = _query(session, user_id, character_id, session_id).first()
    if row is None:
        return AffectionRecord()
    return AffectionRecord.from_row(row)


def get_all_affections(
    user_id: str, session_id: str = DEFAULT_SESSION
) -> Dict[str, AffectionRecord]:
    """获取某个人设下所有角色的好感度"""
    session = get_session()
    rows = (
        session.query(Affection)
        .filter(Affection.user_id == user_id, Affection.session_id == session_id)
        .order_by(Affection.character_id)
        .all()
    )
    return {row.character_id: AffectionRecord.from_row(row) for row in rows}


def get_affection_session_ids(user_id: str) -> List[str]:
    """有好感度数据的人设 ID 列表，总是包含 player"""
    session = get_session()
    rows = (
        session.query(Affection.session_id)
        .filter(Affection.user_id == user_id)
        .distinct()
        .order_by(Affection.session_id)
        .all()
    )
    session_ids = [row[0] for row in rows]
    if DEFAULT_SESSION not in session_ids:
        session_ids.insert(0, DEFAULT_SESSION)
    return session_ids


async def update_affection(
    user_id: str,
    character_id: str,
    change: int,
    reason: Optional[str] = None,
    session_id: str = DEFAULT_SESSION,
) -> AffectionUpdate:
    """
    调整好感度

    change 应由调用方预先规整（见 clamp_change），这里只保证分数落在 0-1000；
    同一 (用户, 角色, 人设) 的更新串行执行，并且总是基于数据库中的最新记录。
    """
    reason = reason or DEFAULT_REASON

    async with affection_locks(_lock_key(user_id, character_id, session_id)):
        session = get_session()
        row = (
            _query(session, user_id, character_id, session_id)
            .populate_existing()
            .first()
        )
        if row is None:
            row = Affection(
                user_id=user_id,
                character_id=character_id,
                session_id=session_id,
                score=0,
                level=1,
                level_title=calculate_level(0).title,
                history="[]",
            )
            session.add(row)

        old_score = row.score
        old_level = row.level
        new_score = clamp_score(old_score + change)
        level = calculate_level(new_score)

        history = row.get_history()
        history.insert(
            0,
            {
                "date": _now_iso(),
                "change": change,
                "reason": reason,
                "oldScore": old_score,
                "newScore": new_score,
            },
        )

        try:
            row.score = new_score
            row.level = level.level
            row.level_title = level.title
            row.set_history(history[:HISTORY_LIMIT])
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"更新好感度时发生错误: {e}")
            raise

    logger.info(
        f"[好感度] {character_id} ({session_id}) user={user_id}: "
        f"{change:+} ({reason}) {old_score} -> {new_score} 等级: {level.title}"
    )
    return AffectionUpdate(
        character_id=character_id,
        session_id=session_id,
        old_score=old_score,
        new_score=new_score,
        change=change,
        reason=reason,
        level=level.level,
        level_title=level.title,
        level_up=level.level > old_level,
        level_down=level.level < old_level,
    )


def reset_character(user_id: str, character_id: str) -> int:
    """删除角色在所有人设下的好感度记录，返回删除条数"""
    session = get_session()
    try:
        count = (
            session.query(Affection)
            .filter(
                Affection.user_id == user_id,
                Affection.character_id == character_id,
            )
            .delete()
        )
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"重置角色好感度时发生错误: {e}")
        raise

    logger.info(f"[好感度] 已重置 {character_id} user={user_id} 共 {count} 条")
    return count
