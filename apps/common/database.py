"""Document-store access over Tortoise models.

A collection name maps to one Tortoise model; selectors are plain equality
filters on model fields. Models registered here expose ``as_document()``.
"""
import logging
from typing import Any, Dict, Mapping, Type

from tortoise.exceptions import BaseORMException
from tortoise.models import Model

from apps.common.exceptions import NotFoundError, StoreError

logger = logging.getLogger(__name__)

QuerySelector = Dict[str, Any]


class Database:
    def __init__(self, collections: Mapping[str, Type[Model]]):
        self._collections = dict(collections)

    def _model(self, collection: str) -> Type[Model]:
        try:
            return self._collections[collection]
        except KeyError:
            raise StoreError(f'Unknown collection: {collection}') from None

    async def find_one(self, collection: str, selector: QuerySelector) -> dict:
        model = self._model(collection)
        try:
            row = await model.filter(**selector).first()
        except BaseORMException as e:
            logger.exception('find_one failed on %s', collection)
            raise StoreError(str(e)) from e
        if row is None:
            raise NotFoundError(f'No document in {collection} matches {selector}')
        return row.as_document()

    async def insert(self, collection: str, document: Mapping[str, Any]) -> None:
        model = self._model(collection)
        try:
            await model.create(**document)
        except (BaseORMException, TypeError, ValueError) as e:
            logger.exception('insert failed on %s', collection)
            raise StoreError(str(e)) from e

    async def update(self, collection: str, selector: QuerySelector,
                     document: Mapping[str, Any]) -> None:
        """Overwrite the document matching ``selector`` with ``document``.

        The write is blind: a selector that matches nothing is a store
        failure, not a lookup miss.
        """
        model = self._model(collection)
        fields = {k: v for k, v in document.items() if k not in selector}
        try:
            updated = await model.filter(**selector).update(**fields)
        except (BaseORMException, TypeError, ValueError) as e:
            logger.exception('update failed on %s', collection)
            raise StoreError(str(e)) from e
        if not updated:
            raise StoreError(f'Update matched no document in {collection} for {selector}')
