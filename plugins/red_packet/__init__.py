from typing import List, Optional

from nonebot import get_driver, get_plugin_config, on_command, require
from nonebot.adapters import Bot
from nonebot.adapters.satori import Message, MessageEvent
from nonebot.log import logger
from nonebot.params import CommandArg
from nonebot.permission import SUPERUSER

require("nonebot_plugin_localstore")
require("nonebot_plugin_apscheduler")

from nonebot_plugin_apscheduler import scheduler  # noqa: E402

from utils import PassiveGenerator  # noqa: E402
from .. import bank, group  # noqa: E402

from .auto_grab import (  # noqa: E402
    Member,
    Notifier,
    schedule_auto_grab,
    send_character_packet,
)
from .config import Config  # noqa: E402
from .database import init_database  # noqa: E402
from .messages import Messages  # noqa: E402
from .models import GrabResult, GrabStatus, RedPacket  # noqa: E402
from .service import (  # noqa: E402
    create_packet,
    expire_overdue_packets,
    get_active_packets,
    get_packet_by_index,
    grab_packet,
    now_ms,
)
from .utils import InvalidCount, format_duration, parse_count  # noqa: E402


plugin_config = get_plugin_config(Config)


@get_driver().on_startup
async def init():
    init_database()
    logger.info("红包插件初始化完成")


@scheduler.scheduled_job(id="red_packet_expire", trigger="interval", minutes=5)
async def handle_expire_job():
    try:
        count = expire_overdue_packets()
        if count > 0:
            logger.info(f"已处理 {count} 个过期红包")
    except Exception as e:
        logger.exception(f"处理过期红包时发生错误: {e}")


create_cmd = on_command("发红包", aliases={"红包"}, priority=10, block=True)
claim_cmd = on_command("抢红包", aliases={"领红包"}, priority=10, block=True)
list_cmd = on_command("红包列表", aliases={"查看红包"}, priority=10, block=True)
detail_cmd = on_command("红包详情", priority=10, block=True)
character_cmd = on_command(
    "角色发红包", permission=SUPERUSER, priority=10, block=True
)


def _get_channel_id(event: MessageEvent) -> Optional[str]:
    if hasattr(event, "channel") and event.channel:
        return event.channel.id
    return None


def _get_user_name(event: MessageEvent) -> str:
    if getattr(event, "member", None) and event.member.nick:
        return event.member.nick
    if getattr(event, "user", None) and event.user.name:
        return event.user.name
    return event.get_user_id()


def _get_user_avatar(event: MessageEvent) -> str:
    if getattr(event, "user", None) and event.user.avatar:
        return event.user.avatar
    return ""


def _claim_reply(result: GrabResult) -> str:
    if result.status == GrabStatus.NOT_FOUND:
        return Messages.CLAIM_NOT_FOUND
    if result.status == GrabStatus.EXPIRED:
        return Messages.CLAIM_EXPIRED
    if result.status == GrabStatus.EXHAUSTED:
        return Messages.CLAIM_EXHAUSTED
    if result.status == GrabStatus.ALREADY_CLAIMED:
        return Messages.CLAIM_ALREADY.format(amount=bank.format_amount(result.amount))
    if result.status == GrabStatus.SUCCESS:
        return Messages.CLAIM_SUCCESS.format(amount=bank.format_amount(result.amount))
    return Messages.CLAIM_FAILED


def _get_roster(channel_id: str) -> List[Member]:
    return [
        Member(id=member.member_id, name=member.name, avatar=member.avatar)
        for member in group.get_members(channel_id)
    ]


def _thank_notifier(bot: Bot, event: MessageEvent) -> Notifier:
    async def notify(member: Member, text: str):
        await bot.send(event, f"{member.name}: {text}")

    return notify


def _start_auto_grab(bot: Bot, event: MessageEvent, packet: RedPacket, sender_id: str):
    members = _get_roster(packet.channel_id)
    if not members:
        return
    schedule_auto_grab(
        packet.id, members, sender_id, notify=_thank_notifier(bot, event)
    )


@create_cmd.handle()
async def handle_create(bot: Bot, event: MessageEvent, arg: Message = CommandArg()):
    user_id = event.get_user_id()
    channel_id = _get_channel_id(event)
    if not channel_id:
        await create_cmd.finish(Messages.NOT_IN_CHANNEL)

    passive_generator = PassiveGenerator(event)
    parts = arg.extract_plain_text().split(maxsplit=2)
    if len(parts) < 2 or not bank.is_number(parts[0]):
        await create_cmd.finish(Messages.CREATE_USAGE + passive_generator.element)

    try:
        amount = bank.parse_amount(parts[0])
    except bank.InvalidAmount:
        await create_cmd.finish(Messages.INVALID_AMOUNT + passive_generator.element)
    try:
        count = parse_count(parts[1])
    except InvalidCount:
        await create_cmd.finish(Messages.INVALID_COUNT + passive_generator.element)
    if amount < count:
        await create_cmd.finish(Messages.INVALID_AMOUNT + passive_generator.element)
    wishes = parts[2].strip() if len(parts) == 3 else None

    try:
        bank.cost(user_id, amount, "发红包", source="red_packet")
    except bank.InsufficientBalance as e:
        await create_cmd.finish(
            Messages.INSUFFICIENT_BALANCE.format(balance=bank.format_amount(e.balance))
            + passive_generator.element
        )

    try:
        # create_packet takes yuan, amount is already fen
        packet = create_packet(
            channel_id,
            user_id,
            _get_user_name(event),
            _get_user_avatar(event),
            bank.format_amount(amount),
            count,
            wishes,
        )
    except Exception as e:
        logger.error(f"创建红包失败: {e}", exc_info=True)
        bank.add(user_id, amount, "发红包失败退款", source="red_packet")
        await create_cmd.finish(Messages.CREATE_FAILED + passive_generator.element)

    _start_auto_grab(bot, event, packet, user_id)
    await create_cmd.finish(
        Messages.CREATE_SUCCESS.format(
            wishes=packet.wishes,
            index=packet.channel_index,
            amount=bank.format_amount(packet.total_amount),
            count=packet.total_num,
            hours=plugin_config.red_packet_expire_hours,
        )
        + passive_generator.element
    )


@claim_cmd.handle()
async def handle_claim(event: MessageEvent, arg: Message = CommandArg()):
    user_id = event.get_user_id()
    channel_id = _get_channel_id(event)
    if not channel_id:
        await claim_cmd.finish(Messages.NOT_IN_CHANNEL)

    text = arg.extract_plain_text().strip()
    passive_generator = PassiveGenerator(event)

    if text:
        if not text.isdigit():
            await claim_cmd.finish(Messages.CLAIM_USAGE + passive_generator.element)
        packet = get_packet_by_index(channel_id, int(text))
        if packet is None:
            await claim_cmd.finish(Messages.CLAIM_NOT_FOUND + passive_generator.element)
    else:
        active = get_active_packets(channel_id)
        if not active:
            await claim_cmd.finish(Messages.CLAIM_NO_ACTIVE + passive_generator.element)
        packet = active[0]

    try:
        result = await grab_packet(
            packet.id, user_id, _get_user_name(event), _get_user_avatar(event)
        )
    except Exception as e:
        logger.error(f"抢红包时发生错误: {e}", exc_info=True)
        await claim_cmd.finish(Messages.CLAIM_FAILED + passive_generator.element)

    reply = _claim_reply(result)
    if result.status == GrabStatus.SUCCESS:
        # The claim is already settled; a failed credit must not undo it
        try:
            bank.add(user_id, result.amount, "抢红包", source="red_packet")
        except Exception as e:
            logger.error(
                f"抢红包入账失败: packet={packet.id} user={user_id} "
                f"amount={bank.format_amount(result.amount)}: {e}",
                exc_info=True,
            )
            reply += "\n" + Messages.CLAIM_CREDIT_FAILED

    if result.completion is not None:
        completion = result.completion
        reply += "\n" + Messages.CLAIM_COMPLETE.format(
            sender=completion.sender_name,
            duration=format_duration(completion.duration_seconds),
            best_user=completion.best_user_name,
            best_amount=bank.format_amount(completion.best_amount),
        )
    await claim_cmd.finish(reply + passive_generator.element)


@list_cmd.handle()
async def handle_list(event: MessageEvent):
    channel_id = _get_channel_id(event)
    if not channel_id:
        await list_cmd.finish(Messages.NOT_IN_CHANNEL)

    passive_generator = PassiveGenerator(event)
    packets = get_active_packets(channel_id)
    if not packets:
        await list_cmd.finish(Messages.LIST_EMPTY + passive_generator.element)

    items = [
        Messages.LIST_ITEM.format(
            index=packet.channel_index,
            wishes=packet.wishes,
            sender=packet.sender_name,
            remain_amount=bank.format_amount(packet.remain_amount),
            total_amount=bank.format_amount(packet.total_amount),
            remain_num=packet.remain_num,
            total_num=packet.total_num,
        )
        for packet in packets
    ]
    await list_cmd.finish(
        Messages.LIST_HEADER.format(count=len(items))
        + "\n"
        + "\n".join(items)
        + passive_generator.element
    )


@detail_cmd.handle()
async def handle_detail(event: MessageEvent, arg: Message = CommandArg()):
    channel_id = _get_channel_id(event)
    if not channel_id:
        await detail_cmd.finish(Messages.NOT_IN_CHANNEL)

    passive_generator = PassiveGenerator(event)
    text = arg.extract_plain_text().strip()
    if not text.isdigit():
        await detail_cmd.finish(Messages.DETAIL_USAGE + passive_generator.element)

    packet = get_packet_by_index(channel_id, int(text))
    if packet is None:
        await detail_cmd.finish(Messages.CLAIM_NOT_FOUND + passive_generator.element)

    lines = [
        Messages.DETAIL_HEADER.format(
            sender=packet.sender_name,
            wishes=packet.wishes,
            claimed=len(packet.records),
            total_num=packet.total_num,
            claimed_amount=bank.format_amount(
                packet.total_amount - packet.remain_amount
            ),
            total_amount=bank.format_amount(packet.total_amount),
        )
    ]
    if packet.status(now_ms()) == "expired":
        lines[0] += Messages.STATUS_EXPIRED
    for record in packet.records:
        lines.append(
            Messages.DETAIL_RECORD.format(
                user=record.user_name,
                amount=bank.format_amount(record.amount),
                best=Messages.DETAIL_BEST if record.is_best else "",
            )
        )
    await detail_cmd.finish("\n".join(lines) + passive_generator.element)


@character_cmd.handle()
async def handle_character(bot: Bot, event: MessageEvent, arg: Message = CommandArg()):
    channel_id = _get_channel_id(event)
    if not channel_id:
        await character_cmd.finish(Messages.NOT_IN_CHANNEL)

    passive_generator = PassiveGenerator(event)
    parts = arg.extract_plain_text().split(maxsplit=2)
    if len(parts) < 2 or not bank.is_number(parts[1]):
        await character_cmd.finish(Messages.CHARACTER_USAGE + passive_generator.element)

    name, amount_text = parts[0], parts[1]
    wishes = parts[2].strip() if len(parts) == 3 else None

    member = group.get_member(channel_id, name)
    if member is None:
        await character_cmd.finish(
            Messages.CHARACTER_NOT_FOUND.format(name=name) + passive_generator.element
        )

    roster = _get_roster(channel_id)
    sender = Member(id=member.member_id, name=member.name, avatar=member.avatar)
    try:
        packet, _ = send_character_packet(
            channel_id,
            sender,
            roster,
            amount_text,
            wishes,
            notify=_thank_notifier(bot, event),
        )
    except bank.InvalidAmount:
        await character_cmd.finish(
            Messages.CHARACTER_INVALID_AMOUNT.format(
                count=len(roster), minimum=bank.format_amount(len(roster))
            )
            + passive_generator.element
        )
    except Exception as e:
        logger.error(f"{name} 发红包失败: {e}", exc_info=True)
        await character_cmd.finish(Messages.CREATE_FAILED + passive_generator.element)

    await character_cmd.finish(
        Messages.CHARACTER_SUCCESS.format(
            sender=packet.sender_name,
            wishes=packet.wishes,
            index=packet.channel_index,
            amount=bank.format_amount(packet.total_amount),
            count=packet.total_num,
        )
        + passive_generator.element
    )
