from typing import Optional, Tuple

from nonebot import get_driver, get_plugin_config, on_command
from nonebot.adapters.satori import Message, MessageEvent
from nonebot.log import logger
from nonebot.params import CommandArg
from nonebot.permission import SUPERUSER

from utils import PassiveGenerator

from .. import group
from .config import Config
from .database import init_database
from .levels import AffectionLevel, calculate_level, get_affection_levels
from .messages import Messages
from .models import AffectionRecord, AffectionUpdate
from .service import (
    clamp_change,
    get_affection,
    get_affection_session_ids,
    get_all_affections,
    reset_character,
    update_affection,
)


plugin_config = get_plugin_config(Config)


@get_driver().on_startup
async def init():
    init_database()
    logger.info("好感度插件初始化完成")


query_cmd = on_command("好感度", aliases={"affection"}, priority=10, block=True)
levels_cmd = on_command("好感度等级", priority=9, block=True)
sessions_cmd = on_command("好感度人设", priority=9, block=True)
adjust_cmd = on_command(
    "调整好感度", permission=SUPERUSER, priority=9, block=True
)
reset_cmd = on_command("重置角色", permission=SUPERUSER, priority=9, block=True)


def _resolve_character(event: MessageEvent, text: str) -> Tuple[str, str]:
    """Map a name typed in chat to (character_id, display name).

    Names of simulated members in the current channel resolve to their id;
    anything else is used as the character id directly.
    """
    channel = getattr(event, "channel", None)
    if channel is not None:
        member = group.get_member(channel.id, text)
        if member is not None:
            return member.member_id, member.name
    return text, text


def _history_lines(record: AffectionRecord, limit: int = 5) -> str:
    return "\n".join(
        Messages.HISTORY_ITEM.format(
            change=entry["change"],
            reason=entry["reason"],
            old=entry["oldScore"],
            new=entry["newScore"],
        )
        for entry in record.history[:limit]
    )


@query_cmd.handle()
async def handle_query(event: MessageEvent, arg: Message = CommandArg()):
    passive_generator = PassiveGenerator(event)
    user_id = event.get_user_id()
    parts = arg.extract_plain_text().split()
    if len(parts) > 2:
        await query_cmd.finish(Messages.QUERY_USAGE + passive_generator.element)

    session_id = parts[1] if len(parts) == 2 else plugin_config.affection_default_session

    if not parts:
        affections = get_all_affections(user_id, session_id)
        if not affections:
            await query_cmd.finish(
                Messages.EMPTY.format(session=session_id) + passive_generator.element
            )
        lines = [Messages.LIST_HEADER.format(session=session_id, count=len(affections))]
        for character_id, record in affections.items():
            lines.append(
                Messages.LIST_ITEM.format(
                    character=character_id,
                    score=record.score,
                    level=record.level,
                    title=record.level_title,
                )
            )
        await query_cmd.finish("\n".join(lines) + passive_generator.element)

    character_id, name = _resolve_character(event, parts[0])
    record = get_affection(user_id, character_id, session_id)
    text = Messages.DETAIL.format(
        character=name,
        score=record.score,
        level=record.level,
        title=record.level_title,
    )
    if record.history:
        text += "\n" + Messages.DETAIL_HISTORY + "\n" + _history_lines(record)
    await query_cmd.finish(text + passive_generator.element)


@levels_cmd.handle()
async def handle_levels(event: MessageEvent):
    passive_generator = PassiveGenerator(event)
    lines = [Messages.LEVELS_HEADER]
    for level in get_affection_levels():
        lines.append(
            Messages.LEVELS_ITEM.format(
                level=level.level, title=level.title, min=level.min, max=level.max
            )
        )
    await levels_cmd.finish("\n".join(lines) + passive_generator.element)


@sessions_cmd.handle()
async def handle_sessions(event: MessageEvent):
    passive_generator = PassiveGenerator(event)
    session_ids = get_affection_session_ids(event.get_user_id())
    await sessions_cmd.finish(
        Messages.SESSIONS.format(sessions="、".join(session_ids))
        + passive_generator.element
    )


@adjust_cmd.handle()
async def handle_adjust(event: MessageEvent, arg: Message = CommandArg()):
    passive_generator = PassiveGenerator(event)
    parts = arg.extract_plain_text().split(maxsplit=2)
    if len(parts) < 2:
        await adjust_cmd.finish(Messages.ADJUST_USAGE + passive_generator.element)

    try:
        raw_change = float(parts[1])
    except ValueError:
        await adjust_cmd.finish(Messages.INVALID_CHANGE + passive_generator.element)

    change = clamp_change(raw_change)
    reason: Optional[str] = parts[2] if len(parts) == 3 else None
    character_id, name = _resolve_character(event, parts[0])

    result = await update_affection(
        event.get_user_id(),
        character_id,
        change,
        reason,
        plugin_config.affection_default_session,
    )

    text = Messages.UPDATED.format(
        character=name, change=result.change, reason=result.reason, score=result.new_score
    )
    if result.level_up:
        text += "\n" + Messages.LEVEL_UP.format(character=name, title=result.level_title)
    elif result.level_down:
        text += "\n" + Messages.LEVEL_DOWN.format(
            character=name, title=result.level_title
        )
    await adjust_cmd.finish(text + passive_generator.element)


@reset_cmd.handle()
async def handle_reset(event: MessageEvent, arg: Message = CommandArg()):
    passive_generator = PassiveGenerator(event)
    text = arg.extract_plain_text().strip()
    if not text:
        await reset_cmd.finish(Messages.RESET_USAGE + passive_generator.element)

    character_id, name = _resolve_character(event, text)
    count = reset_character(event.get_user_id(), character_id)
    if count == 0:
        await reset_cmd.finish(
            Messages.RESET_NONE.format(character=name) + passive_generator.element
        )
    await reset_cmd.finish(
        Messages.RESET.format(character=name, count=count) + passive_generator.element
    )


__all__ = [
    "AffectionLevel",
    "AffectionRecord",
    "AffectionUpdate",
    "calculate_level",
    "clamp_change",
    "get_affection",
    "get_affection_levels",
    "get_affection_session_ids",
    "get_all_affections",
    "reset_character",
    "update_affection",
]
