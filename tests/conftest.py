import tempfile
from pathlib import Path

import nonebot
import pytest
from nonebug import NONEBOT_INIT_KWARGS


ROOT = Path(__file__).resolve().parent.parent


def pytest_configure(config: pytest.Config) -> None:
    data_dir = Path(tempfile.mkdtemp(prefix="kasumi-test-"))
    init_kwargs = {
        "driver": "~none",
        "localstore_data_dir": str(data_dir / "data"),
        "localstore_cache_dir": str(data_dir / "cache"),
        "localstore_config_dir": str(data_dir / "config"),
        "superusers": {"admin"},
    }
    config.stash[NONEBOT_INIT_KWARGS] = init_kwargs
    # Plugins are imported at module level by the test files, so the bot has
    # to be ready before collection starts
    nonebot.init(**init_kwargs)
    nonebot.load_plugins(str(ROOT / "plugins"))


def _recreate(base, engine) -> None:
    base.metadata.drop_all(engine)
    base.metadata.create_all(engine)


@pytest.fixture(autouse=True)
def reset_databases():
    from plugins.affection import database as affection_database
    from plugins.affection.models import Base as AffectionBase
    from plugins.bank import database as bank_database
    from plugins.bank.models import Base as BankBase, TransactionBase
    from plugins.group import manager
    from plugins.group.data_source import Base as GroupBase
    from plugins.red_packet import database as red_packet_database
    from plugins.red_packet.models import Base as RedPacketBase

    for database in (red_packet_database, affection_database):
        if database.session is not None:
            database.session.close()
        database.init_database()

    if bank_database.session is not None:
        bank_database.session.close()
        bank_database.transaction_session.close()
    bank_database.init_database()

    manager.Session.remove()

    _recreate(RedPacketBase, red_packet_database.engine)
    _recreate(AffectionBase, affection_database.engine)
    _recreate(BankBase, bank_database.engine)
    _recreate(TransactionBase, bank_database.transaction_engine)
    _recreate(GroupBase, manager.engine)
    yield
