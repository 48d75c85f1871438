from nonebot import require
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

require("nonebot_plugin_localstore")

import nonebot_plugin_localstore as store  # noqa: E402

from .models import Base, TransactionBase  # noqa: E402


# Database paths
database_path = store.get_data_file("bank", "data.db")
transaction_path = store.get_data_file("bank", "transaction.db")

# Global engines and sessions
engine = None
transaction_engine = None
session = None
transaction_session = None


def init_database():
    """Initialize database connections and create tables"""
    global engine, transaction_engine, session, transaction_session

    # Initialize main database
    engine = create_engine(f"sqlite:///{database_path.resolve()}")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()

    # Initialize transaction database
    transaction_engine = create_engine(f"sqlite:///{transaction_path.resolve()}")
    TransactionBase.metadata.create_all(transaction_engine)
    transaction_session = sessionmaker(bind=transaction_engine)()


def get_session():
    """Get the main database session"""
    if session is None:
        init_database()
    return session


def get_transaction_session():
    """Get the transaction database session"""
    if transaction_session is None:
        init_database()
    return transaction_session
