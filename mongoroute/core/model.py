from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Type

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from mongoroute.core.errors import UnknownModelError, translate_errors
from mongoroute.core.query import Query
from mongoroute.local_typing import DBDeleteResult, DBInsertManyResult, DBInsertOneResult, DBUpdateResult
from mongoroute.schemas.fields import FieldSpec, resolve_paths
from mongoroute.schemas.mongo import Document

_ID_OPERATORS = ("$in", "$nin", "$ne", "$eq", "$all")


def _cast_ids(value: Any) -> Any:
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    if isinstance(value, list):
        return [_cast_ids(item) for item in value]
    if isinstance(value, Mapping):
        return {op: _cast_ids(arg) if op in _ID_OPERATORS else arg for op, arg in value.items()}
    return value


def _as_update(doc: Mapping[str, Any]) -> dict[str, Any]:
    if not isinstance(doc, Mapping):
        raise TypeError(f"update document must be an object, not {type(doc).__name__}")
    if any(key.startswith("$") for key in doc):
        return dict(doc)
    return {"$set": dict(doc)}


class ModelSchema:
    def __init__(self, document: Type[Document]) -> None:
        self.document = document
        self.paths: dict[str, FieldSpec] = resolve_paths(document)

    def validate(self, payload: Any) -> dict[str, Any]:
        return self.document.model_validate(payload).to_mongo()


class Model:
    def __init__(
        self,
        model_code: str,
        collection: str,
        schema: ModelSchema,
        db: AsyncIOMotorDatabase,
        registry: "ModelRegistry",
    ):
        self.model_code = model_code
        self.schema = schema
        self.registry = registry
        self._collection = collection
        self._db = db

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._db.get_collection(self._collection)

    def cast(self, conditions: Mapping[str, Any] | None) -> dict[str, Any]:
        """Cast hex string ids to ObjectId for id-holding top-level fields."""
        if conditions is not None and not isinstance(conditions, Mapping):
            raise TypeError(f"filter must be an object, not {type(conditions).__name__}")
        cast: dict[str, Any] = {}
        for key, value in (conditions or {}).items():
            spec = self.schema.paths.get(key)
            cast[key] = _cast_ids(value) if spec is not None and spec.holds_ids else value
        return cast

    async def create(self, doc: Any) -> dict[str, Any] | list[dict[str, Any]]:
        with translate_errors("create", self.model_code):
            if isinstance(doc, list):
                items = [self.schema.validate(item) for item in doc]
                if not items:
                    return []
                result: DBInsertManyResult = await self.collection.insert_many(items)
                for item, inserted_id in zip(items, result.inserted_ids):
                    item["_id"] = inserted_id
                return items
            item = self.schema.validate(doc)
            inserted: DBInsertOneResult = await self.collection.insert_one(item)
            item["_id"] = inserted.inserted_id
            return item

    async def remove(self, conditions: Mapping[str, Any] | None) -> dict[str, Any]:
        with translate_errors("delete", self.model_code):
            result: DBDeleteResult = await self.collection.delete_many(self.cast(conditions))
        return result.raw_result

    async def update(self, conditions: Mapping[str, Any] | None, doc: Mapping[str, Any]) -> dict[str, Any]:
        with translate_errors("update", self.model_code):
            result: DBUpdateResult = await self.collection.update_many(self.cast(conditions), _as_update(doc))
        return result.raw_result

    def find(self, conditions: Mapping[str, Any] | None = None) -> Query:
        return Query(self, self.cast(conditions))

    def find_by_id(self, id: Any) -> Query:
        return Query(self, by_id=id)

    async def count(self, conditions: Mapping[str, Any] | None = None) -> int:
        with translate_errors("read", self.model_code):
            return await self.collection.count_documents(self.cast(conditions))


@dataclass(frozen=True)
class ModelDescriptor:
    model_code: str
    model: Model


class ModelRegistry:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db
        self._descriptors: dict[str, ModelDescriptor] = {}

    def register(self, model_code: str, document: Type[Document], collection: str | None = None) -> ModelDescriptor:
        if model_code in self._descriptors:
            raise ValueError(f"Model {model_code} is already registered")
        model = Model(model_code, collection or model_code, ModelSchema(document), self._db, self)
        descriptor = ModelDescriptor(model_code, model)
        self._descriptors[model_code] = descriptor
        return descriptor

    def get(self, model_code: str) -> ModelDescriptor:
        try:
            return self._descriptors[model_code]
        except KeyError:
            raise UnknownModelError(model_code) from None

    def __contains__(self, model_code: object) -> bool:
        return model_code in self._descriptors

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)
