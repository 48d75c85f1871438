from nonebot.log import logger

from .database import get_session
from .models import Account, InsufficientBalance, TransactionCategory
from .transaction_service import get_transaction_manager


DEFAULT_PERSONA = "default"


def get_account(user_id: str, persona_id: str = DEFAULT_PERSONA) -> Account:
    """Get or create the account of a user's persona"""
    session = get_session()

    account = (
        session.query(Account)
        .filter(Account.user_id == user_id, Account.persona_id == persona_id)
        .first()
    )
    if not account:
        account = Account(user_id=user_id, persona_id=persona_id, balance=0)
        session.add(account)
        session.commit()
    return account


def get_balance(user_id: str, persona_id: str = DEFAULT_PERSONA) -> int:
    """Get current balance in fen"""
    return get_account(user_id, persona_id).balance


def add_balance(
    user_id: str,
    amount: int,
    note: str = "",
    persona_id: str = DEFAULT_PERSONA,
    source: str = "system",
) -> int:
    """Add fen to an account, returns the new balance"""
    if amount <= 0:
        raise ValueError("Amount must be positive")

    session = get_session()
    account = get_account(user_id, persona_id)
    account.balance += amount
    session.commit()

    get_transaction_manager().add(
        user_id, persona_id, TransactionCategory.INCOME, amount, source, note
    )
    logger.info(f"入账: user={user_id} persona={persona_id} amount={amount} note={note}")
    return account.balance


def cost_balance(
    user_id: str,
    amount: int,
    note: str = "",
    persona_id: str = DEFAULT_PERSONA,
    source: str = "system",
) -> int:
    """Deduct fen from an account, returns the new balance

    Raises:
        InsufficientBalance: balance is lower than amount, nothing is deducted
    """
    if amount <= 0:
        raise ValueError("Amount must be positive")

    session = get_session()
    account = get_account(user_id, persona_id)
    if account.balance < amount:
        raise InsufficientBalance(account.balance, amount)

    account.balance -= amount
    session.commit()

    get_transaction_manager().add(
        user_id, persona_id, TransactionCategory.EXPENSE, amount, source, note
    )
    logger.info(f"支出: user={user_id} persona={persona_id} amount={amount} note={note}")
    return account.balance
