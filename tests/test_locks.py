import asyncio

from utils.locks import KeyedLock


async def test_same_key_is_serialized():
    locks = KeyedLock()
    order = []

    async def worker(name: str):
        async with locks("packet"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order == ["a-in", "a-out", "b-in", "b-out"]


async def test_different_keys_do_not_block():
    locks = KeyedLock()
    entered = asyncio.Event()

    async def holder():
        async with locks("a"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def other():
        async with locks("b"):
            entered.set()

    await asyncio.gather(holder(), other())


async def test_locks_are_released_on_error():
    locks = KeyedLock()
    try:
        async with locks("a"):
            assert locks.locked("a")
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    assert not locks.locked("a")
    assert len(locks) == 0
