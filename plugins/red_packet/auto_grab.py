"""
模拟群成员自动抢红包

红包发出后，在后台按随机顺序、随机间隔让群里的模拟角色依次去抢，
不阻塞发红包的命令。每一步都会重新读取红包状态，红包被删除、过期
或抢完时安静退出。
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Set, Tuple

from nonebot import get_plugin_config
from nonebot.log import logger

from .config import Config
from .models import GrabStatus, RedPacket
from ..bank.utils import AmountLike, format_amount
from .service import create_packet, get_packet, grab_packet, now_ms


plugin_config = get_plugin_config(Config)

THANK_MESSAGES = [
    "谢谢老板！",
    "老板大气！",
    "发财发财~",
    "谢谢红包！",
    "运气不错嘿嘿",
    "收到！",
    "感谢感谢~",
    "老板威武！",
    "好耶！",
]


@dataclass
class Member:
    id: str
    name: str
    avatar: str = ""


Notifier = Callable[[Member, str], Awaitable[None]]

# Keep references so running tasks are not garbage collected
_running_tasks: Set[asyncio.Task] = set()


def _default_delay_range() -> Tuple[float, float]:
    return (
        plugin_config.red_packet_auto_grab_delay_min,
        plugin_config.red_packet_auto_grab_delay_max,
    )


async def run_auto_grab(
    packet_id: str,
    members: Iterable[Member],
    exclude_user_id: str,
    notify: Optional[Notifier] = None,
    delay_range: Optional[Tuple[float, float]] = None,
    thank_probability: Optional[float] = None,
    rng: random.Random = random,
) -> List[Tuple[str, int]]:
    """
    Let simulated members claim a packet one by one.

    Returns:
        List of (member_id, amount) for the claims made here
    """
    if delay_range is None:
        delay_range = _default_delay_range()
    if thank_probability is None:
        thank_probability = plugin_config.red_packet_thank_probability

    candidates = [member for member in members if member.id != exclude_user_id]
    if not candidates:
        logger.debug(f"[红包] {packet_id} 没有可抢红包的成员")
        return []

    rng.shuffle(candidates)
    claims: List[Tuple[str, int]] = []

    for member in candidates:
        await asyncio.sleep(rng.uniform(*delay_range))

        try:
            packet = get_packet(packet_id)
            if packet is None:
                logger.debug(f"[红包] {packet_id} 不存在，停止")
                return claims
            if packet.is_overdue(now_ms()):
                logger.debug(f"[红包] {packet_id} 已过期，停止")
                return claims
            if packet.remain_num <= 0:
                logger.debug(f"[红包] {packet_id} 已抢完，停止")
                return claims
            if packet.find_record(member.id) is not None:
                logger.debug(f"[红包] {member.name} 已抢过，跳过")
                continue

            result = await grab_packet(packet_id, member.id, member.name, member.avatar)
        except Exception as e:
            logger.error(f"[红包] {member.name} 抢红包失败: {e}", exc_info=True)
            continue

        if result.status in (
            GrabStatus.NOT_FOUND,
            GrabStatus.EXPIRED,
            GrabStatus.EXHAUSTED,
        ):
            return claims
        if result.status != GrabStatus.SUCCESS:
            continue

        claims.append((member.id, result.amount))
        logger.info(f"[红包] {member.name} 抢到 {format_amount(result.amount)} 元")

        if notify is not None and rng.random() < thank_probability:
            text = rng.choice(THANK_MESSAGES)
            try:
                await notify(member, text)
            except Exception as e:
                logger.error(f"[红包] {member.name} 发送感谢消息失败: {e}")

        if result.completion is not None:
            logger.info(f"[红包] {packet_id} 已全部抢完")
            return claims

    return claims


async def _run_safely(packet_id: str, *args, **kwargs) -> List[Tuple[str, int]]:
    try:
        return await run_auto_grab(packet_id, *args, **kwargs)
    except Exception as e:
        logger.exception(f"[红包] 自动抢红包出错: {packet_id}: {e}")
        return []


def schedule_auto_grab(
    packet_id: str,
    members: Iterable[Member],
    exclude_user_id: str,
    notify: Optional[Notifier] = None,
    delay_range: Optional[Tuple[float, float]] = None,
    thank_probability: Optional[float] = None,
    rng: random.Random = random,
) -> asyncio.Task:
    """Start auto-grab in the background and return immediately."""
    task = asyncio.create_task(
        _run_safely(
            packet_id,
            list(members),
            exclude_user_id,
            notify=notify,
            delay_range=delay_range,
            thank_probability=thank_probability,
            rng=rng,
        )
    )
    _running_tasks.add(task)
    task.add_done_callback(_running_tasks.discard)
    return task


def send_character_packet(
    channel_id: str,
    sender: Member,
    members: Sequence[Member],
    total_amount: AmountLike,
    wishes: Optional[str] = None,
    notify: Optional[Notifier] = None,
    delay_range: Optional[Tuple[float, float]] = None,
    thank_probability: Optional[float] = None,
    rng: random.Random = random,
) -> Tuple[RedPacket, asyncio.Task]:
    """
    A simulated member sends a packet to its channel.

    There is one share per roster member, the sender included, and nothing is
    charged to any bank account. Everyone else on the roster starts grabbing
    right away.

    Raises:
        InvalidCount: the roster is empty
        InvalidAmount: amount is invalid or below 0.01 per share
    """
    members = list(members)
    packet = create_packet(
        channel_id,
        sender.id,
        sender.name,
        sender.avatar,
        total_amount,
        len(members),
        wishes,
    )
    logger.info(f"[红包] {sender.name} 发出红包 {packet.id}，共 {len(members)} 个")

    task = schedule_auto_grab(
        packet.id,
        members,
        sender.id,
        notify=notify,
        delay_range=delay_range,
        thank_probability=thank_probability,
        rng=rng,
    )
    return packet, task
