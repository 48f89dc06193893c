import asyncio
import copy

import pytest

from apps.common.exceptions import AlreadyExistsError, NotFoundError, SerializationError, StoreError
from apps.uploader.schema import Blob
from apps.uploader.services import BlobStoreManager, flatten_data


class YieldingDatabase:
    """In-memory store that yields to the event loop on every round trip."""

    def __init__(self, documents=None, find_error=None):
        self.documents = documents or {}
        self.find_error = find_error
        self.inserts = 0

    async def find_one(self, collection, selector):
        await asyncio.sleep(0)
        if self.find_error is not None:
            raise self.find_error
        try:
            return copy.deepcopy(self.documents[selector['id']])
        except KeyError:
            raise NotFoundError('not found') from None

    async def insert(self, collection, document):
        await asyncio.sleep(0)
        self.inserts += 1
        self.documents[document['id']] = copy.deepcopy(dict(document))

    async def update(self, collection, selector, document):
        await asyncio.sleep(0)
        if selector['id'] not in self.documents:
            raise StoreError('no match')
        self.documents[selector['id']] = copy.deepcopy(dict(document))


def test_create_then_get_returns_equal_blob(run_blobs):
    blob = Blob(id='b1', data={'name': 'x', 'tags': ['a', 'b'], 'nested': {'k': None}, 'n': 1.5})

    async def scenario(blobs):
        await blobs.create(blob)
        return await blobs.get('b1')

    assert run_blobs(scenario) == blob


def test_get_missing_blob_raises_not_found(run_blobs):
    async def scenario(blobs):
        await blobs.get('missing')

    with pytest.raises(NotFoundError):
        run_blobs(scenario)


def test_create_existing_blob_fails_without_modifying(run_blobs):
    async def scenario(blobs):
        await blobs.create(Blob(id='b1', data={'a': 1}))
        with pytest.raises(AlreadyExistsError):
            await blobs.create(Blob(id='b1', data={'a': 2}))
        return await blobs.get('b1')

    assert run_blobs(scenario).data == {'a': 1}


def test_create_propagates_store_failures_from_lookup():
    db = YieldingDatabase(find_error=StoreError('connection reset'))
    blobs = BlobStoreManager(db)
    with pytest.raises(StoreError):
        asyncio.run(blobs.create(Blob(id='b1', data={})))
    assert db.inserts == 0


def test_merge_partial_is_shallow_union(run_blobs):
    async def scenario(blobs):
        await blobs.create(Blob(id='b1', data={'a': 1, 'b': 2}))
        await blobs.merge_partial(Blob(id='b1', data={'b': 3, 'c': 4}))
        return await blobs.get('b1')

    assert run_blobs(scenario).data == {'a': 1, 'b': 3, 'c': 4}


def test_merge_partial_replaces_nested_values_whole(run_blobs):
    async def scenario(blobs):
        await blobs.create(Blob(id='b1', data={'profile': {'first': 'Ada', 'last': 'L'}, 'keep': True}))
        await blobs.merge_partial(Blob(id='b1', data={'profile': {'first': 'Grace'}}))
        return await blobs.get('b1')

    assert run_blobs(scenario).data == {'profile': {'first': 'Grace'}, 'keep': True}


def test_merge_partial_missing_blob_inserts_nothing(run_blobs):
    async def scenario(blobs):
        with pytest.raises(NotFoundError, match='Blob does not exist.'):
            await blobs.merge_partial(Blob(id='ghost', data={'a': 1}))
        with pytest.raises(NotFoundError):
            await blobs.get('ghost')

    run_blobs(scenario)


def test_merge_partial_collapses_lookup_failures_into_not_found():
    blobs = BlobStoreManager(YieldingDatabase(find_error=StoreError('timeout')))
    with pytest.raises(NotFoundError, match='Blob does not exist.'):
        asyncio.run(blobs.merge_partial(Blob(id='b1', data={'a': 1})))


def test_merge_partial_rejects_non_json_data():
    db = YieldingDatabase({'b1': {'id': 'b1', 'data': {'a': 1}}})
    blobs = BlobStoreManager(db)
    with pytest.raises(SerializationError):
        asyncio.run(blobs.merge_partial(Blob(id='b1', data={'when': object()})))
    assert db.documents['b1']['data'] == {'a': 1}


def test_replace_supersedes_previous_data(run_blobs):
    async def scenario(blobs):
        await blobs.create(Blob(id='b1', data={'a': 1, 'b': 2}))
        await blobs.replace(Blob(id='b1', data={'c': 3}))
        return await blobs.get('b1')

    assert run_blobs(scenario).data == {'c': 3}


def test_replace_missing_blob_is_store_error(run_blobs):
    async def scenario(blobs):
        await blobs.replace(Blob(id='ghost', data={'a': 1}))

    with pytest.raises(StoreError):
        run_blobs(scenario)


def test_concurrent_partial_updates_can_lose_a_writer():
    db = YieldingDatabase({'b1': {'id': 'b1', 'data': {'base': 0}}})
    blobs = BlobStoreManager(db)

    async def scenario():
        await asyncio.gather(
            blobs.merge_partial(Blob(id='b1', data={'x': 1})),
            blobs.merge_partial(Blob(id='b1', data={'y': 2})),
        )

    asyncio.run(scenario())
    # read-modify-write is not atomic; the last writer's view wins
    assert db.documents['b1']['data'] in ({'base': 0, 'x': 1}, {'base': 0, 'y': 2})


def test_flatten_data():
    assert flatten_data({'a': [1, {'b': None}], 'c': 'd'}) == {'a': [1, {'b': None}], 'c': 'd'}
    with pytest.raises(SerializationError):
        flatten_data({'nan': float('nan')})
    with pytest.raises(SerializationError):
        flatten_data({'set': {1, 2}})


def test_merge_partial_collapses_driver_errors_into_not_found():
    db = YieldingDatabase(find_error=ConnectionError('driver reset'))
    blobs = BlobStoreManager(db)
    with pytest.raises(NotFoundError, match='Blob does not exist.'):
        asyncio.run(blobs.merge_partial(Blob(id='b1', data={'a': 1})))
    assert db.documents == {}


def test_get_propagates_store_error():
    blobs = BlobStoreManager(YieldingDatabase(find_error=StoreError('connection reset')))
    with pytest.raises(StoreError):
        asyncio.run(blobs.get('b1'))


def test_empty_id_is_accepted(run_blobs):
    async def scenario(blobs):
        await blobs.create(Blob(id='', data={'a': 1}))
        return await blobs.get('')

    assert run_blobs(scenario) == Blob(id='', data={'a': 1})
