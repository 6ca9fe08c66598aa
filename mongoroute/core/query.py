from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from mongoroute.core.errors import translate_errors
from mongoroute.local_typing import AgnosticCursor

if TYPE_CHECKING:
    from mongoroute.core.model import Model

_DIRECTIONS = {
    "1": ASCENDING,
    "asc": ASCENDING,
    "ascending": ASCENDING,
    "-1": DESCENDING,
    "desc": DESCENDING,
    "descending": DESCENDING,
}


def parse_sort(spec: str | Mapping[str, Any] | None) -> list[tuple[str, int]]:
    """
    Turn a sort spec into PyMongo sort keys.

    Strings use the space separated form ``"name -age +ts"``; mappings map a
    field to ``1``/``-1``/``"asc"``/``"desc"``.
    """
    if not spec:
        return []
    if isinstance(spec, Mapping):
        return [(key, _DIRECTIONS.get(str(value).lower(), ASCENDING)) for key, value in spec.items()]
    keys: list[tuple[str, int]] = []
    for token in str(spec).split():
        if token.startswith("-"):
            keys.append((token[1:], DESCENDING))
        else:
            keys.append((token.lstrip("+"), ASCENDING))
    return [key for key in keys if key[0]]


@dataclass(frozen=True)
class Populate:
    path: str
    select: str
    model_code: str | None


class Query:
    def __init__(self, model: "Model", conditions: Mapping[str, Any] | None = None, by_id: Any = None):
        self._model = model
        self._conditions = dict(conditions or {})
        self._by_id = by_id
        self._skip = 0
        self._limit = 0
        self._sort: list[tuple[str, int]] = []
        self._populate: list[Populate] = []

    def skip(self, n: int) -> "Query":
        self._skip = n
        return self

    def limit(self, n: int) -> "Query":
        self._limit = n
        return self

    def sort(self, spec: str | Mapping[str, Any] | None) -> "Query":
        self._sort = parse_sort(spec)
        return self

    def populate(self, path: str, select: str = "", model_code: str | None = None) -> "Query":
        self._populate.append(Populate(path, select, model_code))
        return self

    async def exec(self) -> Any:
        with translate_errors("read", self._model.model_code):
            if self._by_id is not None:
                doc = await self._model.collection.find_one({"_id": ObjectId(self._by_id)})
                docs = [doc] if doc is not None else []
            else:
                cursor: AgnosticCursor = self._model.collection.find(self._conditions)
                if self._sort:
                    cursor = cursor.sort(self._sort)
                if self._skip:
                    cursor = cursor.skip(self._skip)
                if self._limit:
                    cursor = cursor.limit(self._limit)
                docs = await cursor.to_list(length=None)
            for instruction in self._populate:
                await self._populate_path(instruction, docs)
        if self._by_id is not None:
            return docs[0] if docs else None
        return docs

    async def _populate_path(self, instruction: Populate, docs: list[dict]) -> None:
        model_code = instruction.model_code or self._model.schema.paths[instruction.path].ref
        target = self._model.registry.get(model_code).model

        ids: list[Any] = []
        for doc in docs:
            value = doc.get(instruction.path)
            if isinstance(value, list):
                ids.extend(item for item in value if item is not None)
            elif value is not None:
                ids.append(value)
        if not ids:
            return

        projection = {name: 1 for name in instruction.select.split()} or None
        cursor: AgnosticCursor = target.collection.find({"_id": {"$in": ids}}, projection)
        found = {ref["_id"]: ref for ref in await cursor.to_list(length=None)}

        for doc in docs:
            value = doc.get(instruction.path)
            if isinstance(value, list):
                doc[instruction.path] = [found[item] for item in value if item in found]
            elif value is not None:
                doc[instruction.path] = found.get(value)
