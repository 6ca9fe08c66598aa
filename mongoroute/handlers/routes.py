import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Mapping

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from mongoroute.config import Settings
from mongoroute.core.errors import ErrorKind, PersistenceError
from mongoroute.core.i18n import Messages
from mongoroute.core.model import ModelDescriptor
from mongoroute.core.query import Query
from mongoroute.schemas.fields import FieldSpec

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
ENCODERS = {ObjectId: str}


def parse_int(value: Any, default: int) -> int:
    """Leading integer of ``value``; missing, non-numeric and zero values give ``default``."""
    match = _LEADING_INT.match(str(value)) if value is not None else None
    return (int(match.group(1)) if match else 0) or default


@dataclass(frozen=True)
class ListParams:
    keyword: str = ""
    flag: int = 0
    page: int = 1
    size: int = 20
    sort: str | None = None

    @classmethod
    def from_query(cls, query: Mapping[str, Any], default_size: int = 20) -> "ListParams":
        size = parse_int(query.get("size"), default_size)
        return cls(
            keyword=query.get("keyword") or "",
            flag=parse_int(query.get("flag"), 0),
            page=parse_int(query.get("page"), 1),
            size=size if size > 0 else default_size,
            sort=query.get("sort") or None,
        )

    @property
    def paginated(self) -> bool:
        return self.flag != 1


def to_object(doc: Any) -> Any:
    return jsonable_encoder(doc, custom_encoder=ENCODERS)


def transform_to_object(result: Any) -> Any:
    if isinstance(result, list):
        return [to_object(doc) for doc in result]
    return to_object(result)


def default_find_condition(paths: Mapping[str, FieldSpec], keyword: str) -> dict[str, Any]:
    return {"$or": [{key: {"$regex": keyword}} for key, spec in paths.items() if spec.searchable]}


def population(paths: Mapping[str, FieldSpec], query: Query) -> Query:
    for key, spec in paths.items():
        if spec.is_reference:
            query.populate(key, spec.select, spec.ref)
    return query


def paginate(total: int, params: ListParams) -> dict[str, Any]:
    envelope: dict[str, Any] = {
        "totalelements": total,
        "flag": params.flag,
    }
    if params.sort is not None:
        envelope["sort"] = params.sort
    envelope.update(keyword=params.keyword, start=1, end=total)
    if params.paginated:
        totalpages = math.ceil(total / params.size)
        past_end = params.page > totalpages
        start = 0 if past_end else (params.page - 1) * params.size + 1
        end = 0 if past_end else start + params.size - 1
        envelope.update(
            page=params.page,
            size=params.size,
            totalpages=totalpages,
            start=start,
            end=min(end, total),
        )
    return envelope


class ModelRouteHandlers:
    """
    CRUD handlers binding one request to one persistence call on a registered model.

    Every handler answers with a JSONResponse. Persistence failures are logged and
    answered with ``{"err": {"message": ..., "detail": ...}}``; they never propagate.
    """

    def __init__(
        self,
        messages: Messages,
        logger: logging.Logger | None = None,
        settings: Settings | None = None,
    ):
        self._messages = messages
        self._logger = logger or logging.getLogger(__name__)
        self._settings = settings or Settings()

    async def create(self, descriptor: ModelDescriptor, body: Any) -> JSONResponse:
        try:
            result = await descriptor.model.create(body)
        except PersistenceError as exc:
            return self._failure(descriptor, exc, "log_create_object_error", "res_create_object_error")
        return self._respond(transform_to_object(result))

    async def delete(self, descriptor: ModelDescriptor, body: Mapping[str, Any] | None) -> JSONResponse:
        if not body and not self._settings.allow_unfiltered_mutation:
            return self._refuse(descriptor, "delete")
        try:
            result = await descriptor.model.remove(body or {})
        except PersistenceError as exc:
            return self._failure(descriptor, exc, "log_delete_object_error", "res_delete_object_error")
        return self._respond(to_object(result))

    async def update(self, descriptor: ModelDescriptor, body: Mapping[str, Any] | None) -> JSONResponse:
        body = body or {}
        cond = body.get("cond") or {}
        # TODO: reject changes to ts, dr, __v and _id once an allow-list per model exists
        doc = body.get("doc") or {}
        if not cond and not self._settings.allow_unfiltered_mutation:
            return self._refuse(descriptor, "update")
        try:
            result = await descriptor.model.update(cond, doc)
        except PersistenceError as exc:
            return self._failure(descriptor, exc, "log_update_object_error", "res_update_object_error")
        return self._respond(to_object(result))

    async def list(self, descriptor: ModelDescriptor, query_params: Mapping[str, Any]) -> JSONResponse:
        model = descriptor.model
        paths = model.schema.paths
        params = ListParams.from_query(query_params, self._settings.default_page_size)
        conditions = default_find_condition(paths, params.keyword) if params.keyword else {}

        query = model.find(conditions)
        if params.paginated:
            query.skip((params.page - 1 if params.page > 0 else 0) * params.size).limit(params.size)
        population(paths, query)
        try:
            result = await query.sort(params.sort).exec()
        except PersistenceError as exc:
            return self._failure(descriptor, exc, "log_read_object_error", "res_read_object_error")

        try:
            count = await model.count(conditions)
        except PersistenceError as exc:
            return self._failure(descriptor, exc, "log_read_object_error", "res_read_object_error")

        return self._respond({"data": transform_to_object(result), **paginate(count, params)})

    async def one(self, descriptor: ModelDescriptor, id: str | None = None) -> JSONResponse:
        if not id:
            return self._respond(
                {
                    "error": self._messages.value("query_param_error"),
                    "detail": self._messages.value("not_specified_id"),
                },
                ErrorKind.MISSING_ID,
            )
        query = population(descriptor.model.schema.paths, descriptor.model.find_by_id(id))
        try:
            result = await query.exec()
        except PersistenceError as exc:
            return self._failure(descriptor, exc, "log_read_object_error", "res_read_object_error")
        return self._respond(transform_to_object(result))

    def _respond(self, payload: Any, kind: ErrorKind | None = None) -> JSONResponse:
        status_code = kind.http_status if kind is not None and self._settings.error_status_codes else 200
        return JSONResponse(content=payload, status_code=status_code)

    def _failure(self, descriptor: ModelDescriptor, exc: PersistenceError, log_key: str, res_key: str) -> JSONResponse:
        detail = to_object(exc.detail)
        self._logger.error(
            self._messages.value(log_key, [descriptor.model_code, json.dumps(detail, ensure_ascii=False)]),
            extra={"model_code": descriptor.model_code, "operation": exc.operation},
        )
        return self._respond(
            {"err": {"message": self._messages.value(res_key), "detail": detail}},
            ErrorKind.PERSISTENCE,
        )

    def _refuse(self, descriptor: ModelDescriptor, operation: str) -> JSONResponse:
        self._logger.warning(
            self._messages.value("log_unfiltered_mutation_refused", [descriptor.model_code, operation]),
            extra={"model_code": descriptor.model_code, "operation": operation},
        )
        return self._respond(
            {
                "err": {
                    "message": self._messages.value("res_unfiltered_mutation_refused"),
                    "detail": {"model_code": descriptor.model_code, "operation": operation},
                }
            },
            ErrorKind.UNFILTERED_MUTATION,
        )
