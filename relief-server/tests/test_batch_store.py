import asyncio
from contextlib import asynccontextmanager
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from relief.domain.batches import (
    BatchItemNotFound,
    BatchNotFound,
    InvalidBatchId,
    InvalidStatusTransition,
    ItemState,
    ItemStatus,
    OfflineBatchStore,
)
from relief.domain.transactions import MalformedEnvelope, PaymentOperation, ThresholdSignature
from relief.core.config import DatabaseSettings
from relief.infrastructure.database.session import _engine_options, init_db
from relief.infrastructure.storage import FileOfflineBatchRepository

from conftest import keypair


@asynccontextmanager
async def _sql_store(codec):
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_db(engine)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            yield OfflineBatchStore.with_session(session, codec)
    finally:
        await engine.dispose()


@asynccontextmanager
async def _file_store(codec, directory):
    yield OfflineBatchStore(FileOfflineBatchRepository(directory), codec)


@pytest.fixture(params=["sql", "file"])
def open_store(request, codec, tmp_path):
    if request.param == "sql":
        return lambda: _sql_store(codec)
    return lambda: _file_store(codec, tmp_path / "batches")


def _envelopes(builder, sender, count, start=500):
    intents = builder.build_sequence(
        sender.public_key,
        start,
        [[PaymentOperation(destination=keypair(20 + i).public_key, amount=Decimal(i + 1))] for i in range(count)],
        timeout=0,
    )
    return [builder.sign(intent, sender) for intent in intents]


def test_put_then_get_preserves_order_and_pending_status(open_store, builder, ngo):
    envelopes = _envelopes(builder, ngo, 3)

    async def scenario():
        async with open_store() as store:
            await store.put("camp-1", envelopes)
            return await store.get("camp-1")

    batch = asyncio.run(scenario())

    assert [item.index for item in batch.items] == [0, 1, 2]
    assert [item.envelope for item in batch.items] == envelopes
    assert all(item.status == ItemStatus.pending() for item in batch.items)
    assert batch.pending_count == 3


def test_put_replaces_existing_batch(open_store, builder, ngo):
    first = _envelopes(builder, ngo, 3)
    second = _envelopes(builder, ngo, 1, start=900)

    async def scenario():
        async with open_store() as store:
            await store.put("camp-1", first)
            await store.update_status("camp-1", 0, ItemStatus.submitted())
            await store.put("camp-1", second)
            return await store.get("camp-1"), await store.list_batches()

    batch, batch_ids = asyncio.run(scenario())

    assert [item.envelope for item in batch.items] == second
    assert batch.items[0].status.is_pending
    assert batch_ids == ["camp-1"]


def test_status_transitions_only_leave_pending(open_store, builder, ngo):
    envelopes = _envelopes(builder, ngo, 2)

    async def scenario():
        async with open_store() as store:
            await store.put("camp-2", envelopes)
            await store.update_status("camp-2", 0, ItemStatus.submitted())
            await store.update_status("camp-2", 1, ItemStatus.failed("tx_bad_seq"))
            with pytest.raises(InvalidStatusTransition):
                await store.update_status("camp-2", 0, ItemStatus.failed("late"))
            with pytest.raises(InvalidStatusTransition):
                await store.update_status("camp-2", 1, ItemStatus.pending())
            return await store.get("camp-2")

    batch = asyncio.run(scenario())

    assert batch.items[0].status.state is ItemState.SUBMITTED
    assert batch.items[1].status == ItemStatus.failed("tx_bad_seq")
    assert batch.items[1].updated_at is not None


def test_list_pending_skips_terminal_items(open_store, builder, ngo):
    envelopes = _envelopes(builder, ngo, 3)

    async def scenario():
        async with open_store() as store:
            await store.put("camp-3", envelopes)
            await store.update_status("camp-3", 1, ItemStatus.submitted())
            return await store.list_pending("camp-3")

    pending = asyncio.run(scenario())

    assert [index for index, _ in pending] == [0, 2]
    assert pending[1][1] == envelopes[2]


def test_missing_batch_and_item(open_store, builder, ngo):
    envelopes = _envelopes(builder, ngo, 1)

    async def scenario():
        async with open_store() as store:
            with pytest.raises(BatchNotFound):
                await store.get("nope")
            with pytest.raises(BatchNotFound):
                await store.update_status("nope", 0, ItemStatus.submitted())
            await store.put("camp-4", envelopes)
            with pytest.raises(BatchItemNotFound):
                await store.update_status("camp-4", 5, ItemStatus.submitted())
            with pytest.raises(BatchNotFound):
                await store.purge("nope")

    asyncio.run(scenario())


def test_purge_removes_batch(open_store, builder, ngo):
    envelopes = _envelopes(builder, ngo, 2)

    async def scenario():
        async with open_store() as store:
            await store.put("camp-5", envelopes)
            await store.purge("camp-5")
            with pytest.raises(BatchNotFound):
                await store.get("camp-5")
            return await store.list_batches()

    assert asyncio.run(scenario()) == []


def test_threshold_travels_with_item(open_store, builder, codec, ngo, beneficiary, approver):
    threshold = ThresholdSignature(required_weight=2, signers={beneficiary.public_key: 1, approver.public_key: 1})
    intent = builder.build(
        ngo.public_key,
        10,
        [PaymentOperation(destination=beneficiary.public_key, amount=Decimal(3))],
        constraint=threshold,
    )
    envelope = builder.sign(intent, beneficiary)

    async def scenario():
        async with open_store() as store:
            await store.put("escrow-1", [envelope])
            return await store.get("escrow-1")

    batch = asyncio.run(scenario())

    assert batch.items[0].threshold == threshold
    assert batch.items[0].envelope == envelope


def test_put_encoded_rejects_malformed_input_before_writing(open_store, builder, codec, ngo):
    good = codec.encode_envelope(_envelopes(builder, ngo, 1)[0])

    async def scenario():
        async with open_store() as store:
            with pytest.raises(MalformedEnvelope):
                await store.put_encoded("camp-6", [(good, None), ("garbage", None)])
            with pytest.raises(BatchNotFound):
                await store.get("camp-6")
            batch = await store.put_encoded("camp-6", [(good, None)])
            return batch

    batch = asyncio.run(scenario())

    assert batch.items[0].envelope_xdr == good


@pytest.mark.parametrize("batch_id", ["", "../escape", "a" * 101, "with space", "village-1\n"])
def test_invalid_batch_ids(open_store, builder, ngo, batch_id):
    async def scenario():
        async with open_store() as store:
            with pytest.raises(InvalidBatchId):
                await store.put(batch_id, [])

    asyncio.run(scenario())


def test_file_backend_survives_new_repository(builder, codec, ngo, tmp_path):
    envelopes = _envelopes(builder, ngo, 2)

    async def scenario():
        writer = OfflineBatchStore(FileOfflineBatchRepository(tmp_path), codec)
        await writer.put("camp-7", envelopes)
        await writer.update_status("camp-7", 0, ItemStatus.submitted())
        reader = OfflineBatchStore(FileOfflineBatchRepository(tmp_path), codec)
        return await reader.get("camp-7")

    batch = asyncio.run(scenario())

    assert [item.status.state for item in batch.items] == [ItemState.SUBMITTED, ItemState.PENDING]
    assert list(tmp_path.glob("*.tmp")) == []


def test_engine_options_skip_pool_sizing_for_sqlite():
    sqlite = DatabaseSettings(url="sqlite+aiosqlite:///./relief.db", pool_size=5, max_overflow=2)
    postgres = DatabaseSettings(url="postgresql+asyncpg://relief@localhost/relief", pool_size=5, max_overflow=2)

    assert _engine_options(sqlite, debug=True) == {"echo": True}
    assert _engine_options(postgres, debug=False) == {"echo": False, "pool_size": 5, "max_overflow": 2}
