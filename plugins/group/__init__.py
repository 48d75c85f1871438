from typing import Optional

from nonebot import on_command, require
from nonebot.adapters.satori import Message, MessageEvent
from nonebot.log import logger
from nonebot.params import CommandArg

require("nonebot_plugin_localstore")

import nonebot_plugin_localstore as store  # noqa: E402

from utils import PassiveGenerator  # noqa: E402

from .data_source import GroupMember, GroupMemberManager, MemberType  # noqa: E402


member_file = store.get_data_file("group", "members.db")
database_url = f"sqlite:///{member_file.absolute()}"


manager = GroupMemberManager(database_url)

MEMBER_TYPE_NAMES = {
    MemberType.MAIN: "角色卡",
    MemberType.PRESET: "NPC",
    MemberType.CUSTOM: "自建",
}


def _get_channel_id(event: MessageEvent) -> Optional[str]:
    if hasattr(event, "channel") and event.channel:
        return event.channel.id
    return None


add_cmd = on_command("添加群成员", aliases={"加群成员"}, priority=10, block=True)
remove_cmd = on_command("移除群成员", aliases={"删群成员"}, priority=10, block=True)
list_cmd = on_command("群成员", aliases={"群成员列表"}, priority=10, block=True)


@add_cmd.handle()
async def handle_add(event: MessageEvent, arg: Message = CommandArg()):
    passive_generator = PassiveGenerator(event)
    channel_id = _get_channel_id(event)
    if not channel_id:
        await add_cmd.finish("只能在群聊中管理群成员哦")

    parts = arg.extract_plain_text().split()
    if not parts or len(parts) > 2:
        await add_cmd.finish(
            "格式错误！用法：添加群成员 &lt;名字&gt; [main|preset|custom]"
            + passive_generator.element
        )

    name = parts[0]
    try:
        member_type = MemberType(parts[1]) if len(parts) == 2 else MemberType.CUSTOM
    except ValueError:
        await add_cmd.finish(
            "成员类型只能是 main、preset 或 custom" + passive_generator.element
        )

    member = manager.add_member(channel_id, name, member_type=member_type)
    if member is None:
        await add_cmd.finish(f"{name} 已经在群里了" + passive_generator.element)

    logger.info(f"群成员已添加: channel={channel_id} member={member.member_id} name={name}")
    await add_cmd.finish(
        f"{name}（{MEMBER_TYPE_NAMES[member_type]}）加入了群聊" + passive_generator.element
    )


@remove_cmd.handle()
async def handle_remove(event: MessageEvent, arg: Message = CommandArg()):
    passive_generator = PassiveGenerator(event)
    channel_id = _get_channel_id(event)
    if not channel_id:
        await remove_cmd.finish("只能在群聊中管理群成员哦")

    name = arg.extract_plain_text().strip()
    if not name:
        await remove_cmd.finish(
            "格式错误！用法：移除群成员 &lt;名字&gt;" + passive_generator.element
        )

    if not manager.remove_member(channel_id, name):
        await remove_cmd.finish(f"群里没有叫 {name} 的成员" + passive_generator.element)
    await remove_cmd.finish(f"{name} 离开了群聊" + passive_generator.element)


@list_cmd.handle()
async def handle_list(event: MessageEvent):
    passive_generator = PassiveGenerator(event)
    channel_id = _get_channel_id(event)
    if not channel_id:
        await list_cmd.finish("只能在群聊中查看群成员哦")

    members = manager.get_members(channel_id)
    if not members:
        await list_cmd.finish("群里还没有模拟成员" + passive_generator.element)

    lines = [f"群成员（{len(members)} 人）:"]
    for member in members:
        lines.append(f"- {member.name}（{MEMBER_TYPE_NAMES[MemberType(member.type)]}）")
    await list_cmd.finish("\n".join(lines) + passive_generator.element)


get_members = manager.get_members
get_member = manager.get_member


__all__ = [
    "GroupMember",
    "MemberType",
    "get_members",
    "get_member",
]
