import time
from sqlalchemy.orm import Session

from .database import get_transaction_session
from .models import Transaction, TransactionCategory, TransactionPage


class TransactionManager:
    """Manager class for handling transaction logging"""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(
        self,
        user_id: str,
        persona_id: str,
        category: TransactionCategory,
        amount: int,
        source: str,
        note: str,
    ) -> Transaction:
        """Add a transaction record"""
        transaction = Transaction(
            user_id=user_id,
            persona_id=persona_id,
            category=category,
            amount=amount,
            source=source,
            note=note,
            time=int(time.time() * 1000),
        )
        self.session.add(transaction)
        self.session.commit()
        return transaction

    def get_page(
        self, user_id: str, persona_id: str, page: int, limit: int
    ) -> TransactionPage:
        """Get a page of transactions, newest first"""
        query = (
            self.session.query(Transaction)
            .filter(Transaction.user_id == user_id)
            .filter(Transaction.persona_id == persona_id)
        )
        total = query.count()
        transactions = (
            query.order_by(Transaction.time.desc(), Transaction.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return TransactionPage(
            transactions=transactions, page=page, limit=limit, total=total
        )


# Global transaction manager instance
_transaction_manager = None


def get_transaction_manager() -> TransactionManager:
    """Get the global transaction manager instance"""
    global _transaction_manager
    session = get_transaction_session()
    if _transaction_manager is None or _transaction_manager.session is not session:
        _transaction_manager = TransactionManager(session)
    return _transaction_manager


def get_transactions(
    user_id: str, persona_id: str, page: int = 1, limit: int = 20
) -> TransactionPage:
    """
    Get a persona's transaction history

    Args:
        user_id: User ID to get transactions for
        persona_id: Persona whose account is queried
        page: 1-based page number, values below 1 are treated as 1
        limit: Page size, clamped to 1..100

    Returns:
        TransactionPage ordered by time (newest first)
    """
    page = max(1, page)
    limit = min(100, max(1, limit))
    return get_transaction_manager().get_page(user_id, persona_id, page, limit)
