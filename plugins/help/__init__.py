from nonebot import on_command
from nonebot.params import CommandArg
from nonebot.adapters import Bot, Message


def escape_text(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


plugin_data = {
    "help": {
        "description": "显示帮助信息",
        "usage": {
            "/help": "显示帮助信息",
            "/help 插件名": "显示特定插件的用法",
        },
        "examples": ["/help", "/help 红包"],
    },
    "红包": {
        "description": "群聊拼手气红包，群里的模拟成员也会来抢",
        "usage": {
            "/发红包|红包 <金额> <个数> [祝福语]": "发一个拼手气红包，金额单位为元，最多两位小数",
            "/抢红包|领红包 [编号]": "抢指定编号的红包，不填编号时抢最新的红包",
            "/红包列表|查看红包": "查看当前群聊中可领取的红包",
            "/红包详情 <编号>": "查看红包的领取记录和手气最佳",
            "/角色发红包 <角色> <金额> [祝福语]": "（管理员）让群成员发红包，个数为群成员数，不扣余额",
        },
        "examples": ["/发红包 10 5", "/发红包 8.88 3 新年快乐", "/抢红包", "/抢红包 2"],
    },
    "银行": {
        "description": "余额与账单",
        "usage": {
            "/余额|balance|钱包": "查看余额",
            "/账单|bill|交易记录 [页码]": "查看交易记录",
            "/充值|recharge <金额> [用户ID]": "为用户充值（仅管理员）",
        },
        "examples": ["/余额", "/账单", "/账单 2", "/充值 100"],
    },
    "好感度": {
        "description": "角色对你的好感度",
        "usage": {
            "/好感度|affection": "查看当前人设下所有角色的好感度",
            "/好感度 <角色> [人设]": "查看某个角色的好感度和最近变化",
            "/好感度等级": "查看好感度等级表",
            "/好感度人设": "查看有好感度记录的人设",
            "/调整好感度 <角色> <变化> [原因]": "调整好感度，变化范围 -10 到 10（仅管理员）",
            "/重置角色 <角色>": "清空角色在所有人设下的好感度（仅管理员）",
        },
        "examples": ["/好感度", "/好感度 香澄", "/好感度等级", "/调整好感度 香澄 5 一起练习"],
    },
    "群成员": {
        "description": "管理群聊中的模拟成员",
        "usage": {
            "/添加群成员|加群成员 <名字> [main|preset|custom]": "添加模拟成员",
            "/移除群成员|删群成员 <名字>": "移除模拟成员",
            "/群成员|群成员列表": "查看当前群聊的模拟成员",
        },
        "examples": ["/添加群成员 香澄", "/添加群成员 有咲 preset", "/移除群成员 香澄", "/群成员"],
    },
}


help = on_command("help", priority=1)


@help.handle()
async def _(bot: Bot, plugin: Message = CommandArg()):
    plugin: str = plugin.extract_plain_text().strip()

    if plugin == "":
        plugin_msg = "\n    ".join(
            [
                f"{plugin_name} -{plugin_info['description']}"
                for plugin_name, plugin_info in plugin_data.items()
            ]
        )
        msg = (
            "当前可用的插件有：\n"
            f"    {plugin_msg}\n"
            "输入“/help 插件名”查看特定插件的语法和使用示例。"
        )

        await help.finish(msg)
    elif plugin in plugin_data:
        msg = (
            f"插件 {plugin} 的使用方法：\n"
            + "\n".join(
                [
                    f"    {command} -{usage}"
                    for command, usage in plugin_data[plugin]["usage"].items()
                ]
            )
            + "\n示例：\n    "
            + "\n    ".join(plugin_data[plugin]["examples"])
        )

        if bot.adapter.get_name() == "Satori":
            msg = escape_text(msg)

        await help.finish(msg)
    else:
        await help.finish("未找到该插件！")
