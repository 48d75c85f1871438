from nonebot import get_driver, get_plugin_config, on_command
from nonebot.adapters.satori import Message, MessageEvent
from nonebot.log import logger
from nonebot.params import CommandArg
from nonebot.permission import SUPERUSER

from utils import PassiveGenerator

from .config import Config
from .database import init_database
from .models import InsufficientBalance, TransactionCategory, TransactionPage
from .account_service import (
    get_account,
    get_balance as get,
    add_balance as add,
    cost_balance as cost,
)
from .transaction_service import get_transactions
from .utils import InvalidAmount, format_amount, is_number, parse_amount


plugin_config = get_plugin_config(Config)


@get_driver().on_startup
async def init():
    init_database()
    logger.info("银行插件初始化完成")


balance_cmd = on_command("余额", aliases={"balance", "钱包"}, priority=10, block=True)
bill_cmd = on_command("账单", aliases={"bill", "交易记录"}, priority=10, block=True)
recharge_cmd = on_command(
    "充值", aliases={"recharge"}, permission=SUPERUSER, priority=10, block=True
)


@balance_cmd.handle()
async def handle_balance(event: MessageEvent):
    passive_generator = PassiveGenerator(event)
    balance = get(event.get_user_id(), plugin_config.bank_default_persona)
    await balance_cmd.finish(
        f"你的余额为 {format_amount(balance)} 元" + passive_generator.element
    )


@bill_cmd.handle()
async def handle_bill(event: MessageEvent, arg: Message = CommandArg()):
    passive_generator = PassiveGenerator(event)
    text = arg.extract_plain_text().strip()
    if text and not text.isdigit():
        await bill_cmd.finish("格式错误！用法：账单 [页码]" + passive_generator.element)

    page = get_transactions(
        event.get_user_id(),
        plugin_config.bank_default_persona,
        page=int(text) if text else 1,
        limit=plugin_config.bank_page_size,
    )
    if not page.transactions:
        await bill_cmd.finish("暂无交易记录" + passive_generator.element)

    lines = [f"交易记录（第 {page.page}/{page.total_pages} 页）:"]
    for transaction in page.transactions:
        sign = "+" if transaction.category == TransactionCategory.INCOME else "-"
        lines.append(
            f"{sign}{format_amount(transaction.amount)} 元 {transaction.note or transaction.source}"
        )
    await bill_cmd.finish("\n".join(lines) + passive_generator.element)


@recharge_cmd.handle()
async def handle_recharge(event: MessageEvent, arg: Message = CommandArg()):
    passive_generator = PassiveGenerator(event)
    parts = arg.extract_plain_text().split()
    if not parts or len(parts) > 2:
        await recharge_cmd.finish(
            "格式错误！用法：充值 &lt;金额&gt; [用户ID]" + passive_generator.element
        )

    try:
        amount = parse_amount(parts[0])
    except InvalidAmount:
        await recharge_cmd.finish("金额无效" + passive_generator.element)

    user_id = parts[1] if len(parts) == 2 else event.get_user_id()
    balance = add(
        user_id,
        amount,
        "充值",
        persona_id=plugin_config.bank_default_persona,
        source="recharge",
    )
    await recharge_cmd.finish(
        f"已为 {user_id} 充值 {format_amount(amount)} 元，当前余额 {format_amount(balance)} 元"
        + passive_generator.element
    )


__all__ = [
    "get",
    "add",
    "cost",
    "get_account",
    "get_transactions",
    "init_database",
    "format_amount",
    "is_number",
    "parse_amount",
    "InvalidAmount",
    "InsufficientBalance",
    "TransactionPage",
]
