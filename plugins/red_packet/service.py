import random
import string
import time
from typing import List, Optional, Union

from nonebot import get_plugin_config
from nonebot.log import logger
from sqlalchemy import func

from utils.locks import KeyedLock

from .allocator import RandomSource, calculate_grab_amount, mark_best_luck
from .config import Config
from .database import get_session
from .models import (
    GrabResult,
    GrabStatus,
    PacketCompletionInfo,
    PacketRecord,
    RedPacket,
)
from ..bank.utils import AmountLike, InvalidAmount, format_amount, parse_amount
from .utils import parse_count


plugin_config = get_plugin_config(Config)

# One lock per packet id; grabs on different packets never wait for each other
packet_locks = KeyedLock()


def now_ms() -> int:
    return int(time.time() * 1000)


def _generate_packet_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"rp_{now_ms()}_{suffix}"


def _get_next_channel_index(session, channel_id: str) -> int:
    """Get the next sequential index for a channel."""
    max_index = (
        session.query(func.max(RedPacket.channel_index))
        .filter(RedPacket.channel_id == channel_id)
        .scalar()
    )
    return (max_index or 0) + 1


def create_packet(
    channel_id: str,
    sender_id: str,
    sender_name: str,
    sender_avatar: Optional[str],
    total_amount: AmountLike,
    total_num: Union[str, int],
    wishes: Optional[str] = None,
) -> RedPacket:
    """
    创建一个拼手气红包

    Args:
        channel_id: 所属群聊
        sender_id: 发送者 ID（玩家或模拟角色）
        sender_name: 发送者名称
        sender_avatar: 发送者头像
        total_amount: 总金额（元），最多两位小数
        total_num: 红包个数
        wishes: 祝福语

    Raises:
        InvalidCount: 个数不是正整数
        InvalidAmount: 金额无效，或不足每个红包 0.01 元
    """
    num = parse_count(total_num)
    amount = parse_amount(total_amount)
    if amount < num:
        raise InvalidAmount(
            f"单个红包金额不能少于 0.01: {format_amount(amount)} / {num}"
        )

    session = get_session()
    created_at = now_ms()
    packet = RedPacket(
        id=_generate_packet_id(),
        channel_id=channel_id,
        channel_index=_get_next_channel_index(session, channel_id),
        sender_id=sender_id,
        sender_name=sender_name,
        sender_avatar=sender_avatar or "",
        wishes=wishes or plugin_config.red_packet_default_wishes,
        total_amount=amount,
        total_num=num,
        remain_amount=amount,
        remain_num=num,
        created_at=created_at,
        expired_at=created_at + plugin_config.red_packet_expire_hours * 3600 * 1000,
        is_expired=False,
    )

    try:
        session.add(packet)
        session.commit()
        logger.info(
            f"红包已创建: id={packet.id} channel={channel_id} sender={sender_id} "
            f"amount={format_amount(amount)} num={num}"
        )
        return packet
    except Exception as e:
        session.rollback()
        logger.error(f"创建红包时发生错误: {e}")
        raise


def get_packet(packet_id: str) -> Optional[RedPacket]:
    session = get_session()
    return session.get(RedPacket, packet_id, populate_existing=True)


def get_packet_by_index(channel_id: str, channel_index: int) -> Optional[RedPacket]:
    session = get_session()
    return (
        session.query(RedPacket)
        .filter(
            RedPacket.channel_id == channel_id,
            RedPacket.channel_index == channel_index,
        )
        .first()
    )


def get_channel_packets(channel_id: str) -> List[RedPacket]:
    session = get_session()
    return (
        session.query(RedPacket)
        .filter(RedPacket.channel_id == channel_id)
        .order_by(RedPacket.created_at.desc(), RedPacket.channel_index.desc())
        .all()
    )


def get_active_packets(channel_id: str) -> List[RedPacket]:
    session = get_session()
    return (
        session.query(RedPacket)
        .filter(
            RedPacket.channel_id == channel_id,
            RedPacket.is_expired == False,  # noqa: E712
            RedPacket.remain_num > 0,
            RedPacket.expired_at >= now_ms(),
        )
        .order_by(RedPacket.created_at.desc(), RedPacket.channel_index.desc())
        .all()
    )


def _completion_info(packet: RedPacket, finished_at: int) -> PacketCompletionInfo:
    best = packet.best_record()
    return PacketCompletionInfo(
        packet_id=packet.id,
        sender_id=packet.sender_id,
        sender_name=packet.sender_name,
        duration_seconds=max(0, (finished_at - packet.created_at) // 1000),
        best_user_id=best.user_id,
        best_user_name=best.user_name,
        best_amount=best.amount,
    )


async def grab_packet(
    packet_id: str,
    user_id: str,
    user_name: str,
    user_avatar: Optional[str] = "",
    rng: RandomSource = random,
) -> GrabResult:
    """
    抢红包

    同一个红包的读取、计算、写入在 packet_locks 下串行执行；
    重复领取不算错误，返回之前领到的金额。

    已领取的判断放在“已抢完”之前：最后一个领到的人再抢一次时，
    得到的是自己的金额而不是“已抢完”，与其他重复领取的结果一致。
    """
    async with packet_locks(packet_id):
        session = get_session()
        packet = session.get(RedPacket, packet_id, populate_existing=True)
        if packet is None:
            return GrabResult(GrabStatus.NOT_FOUND)

        now = now_ms()
        if packet.is_overdue(now):
            return GrabResult(GrabStatus.EXPIRED)

        previous = packet.find_record(user_id)
        if previous is not None:
            return GrabResult(
                GrabStatus.ALREADY_CLAIMED,
                amount=previous.amount,
                is_best=bool(previous.is_best),
            )

        if packet.remain_num <= 0:
            return GrabResult(GrabStatus.EXHAUSTED)

        try:
            amount = calculate_grab_amount(
                packet.remain_amount, packet.remain_num, rng
            )
            record = PacketRecord(
                user_id=user_id,
                user_name=user_name,
                user_avatar=user_avatar or "",
                amount=amount,
                time=now,
                is_best=False,
            )
            packet.records.append(record)
            packet.remain_amount = max(0, packet.remain_amount - amount)
            packet.remain_num = max(0, packet.remain_num - 1)

            completion = None
            if packet.remain_num == 0:
                mark_best_luck(packet.records)
                completion = _completion_info(packet, now)

            is_best = bool(record.is_best)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"领取红包时发生错误: {e}", exc_info=True)
            return GrabResult(GrabStatus.ERROR)

        logger.info(
            f"红包领取成功: id={packet_id} user={user_id} amount={format_amount(amount)} "
            f"remain={packet.remain_num}"
        )
        if completion is not None:
            logger.info(
                f"红包已抢完: id={packet_id} best={completion.best_user_id} "
                f"amount={format_amount(completion.best_amount)}"
            )
        return GrabResult(
            GrabStatus.SUCCESS, amount=amount, is_best=is_best, completion=completion
        )


def expire_overdue_packets() -> int:
    """Flag overdue packets as expired; unclaimed money is forfeited."""
    session = get_session()
    now = now_ms()
    overdue = (
        session.query(RedPacket)
        .filter(
            RedPacket.is_expired == False,  # noqa: E712
            RedPacket.remain_num > 0,
            RedPacket.expired_at < now,
        )
        .all()
    )

    for packet in overdue:
        packet.is_expired = True
        logger.info(
            f"红包已过期: id={packet.id} unclaimed={format_amount(packet.remain_amount)}"
        )

    if overdue:
        session.commit()
    return len(overdue)
