"""
Database models and data structures for the bank plugin.
"""

from enum import StrEnum
from dataclasses import dataclass
from typing import List
from sqlalchemy import BigInteger, Column, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base


# Database table base classes
Base = declarative_base()
TransactionBase = declarative_base()


class TransactionCategory(StrEnum):
    """Transaction categories for bank operations"""

    INCOME = "income"
    EXPENSE = "expense"


class InsufficientBalance(ValueError):
    """余额不足"""

    def __init__(self, balance: int, required: int) -> None:
        super().__init__(f"余额不足: balance={balance} required={required}")
        self.balance = balance
        self.required = required


class Account(Base):
    """Account table model, one per (user, persona)"""

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "persona_id", name="uq_user_persona"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    persona_id = Column(String, nullable=False)
    balance = Column(Integer, nullable=False, default=0)  # fen


class Transaction(TransactionBase):
    """Transaction table model"""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String)
    persona_id = Column(String)
    category = Column(String)
    amount = Column(Integer)  # fen
    source = Column(String)
    note = Column(String)
    time = Column(BigInteger)  # Unix ms


@dataclass
class TransactionPage:
    """One page of a persona's transaction history"""

    transactions: List[Transaction]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit
