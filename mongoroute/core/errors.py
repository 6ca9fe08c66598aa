from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator

from bson.errors import InvalidDocument, InvalidId
from pydantic import ValidationError
from pymongo.errors import OperationFailure, PyMongoError

# TypeError and ValueError cover malformed filters and update documents rejected by the driver
PERSISTENCE_CAUSES = (PyMongoError, InvalidId, InvalidDocument, ValidationError, TypeError, ValueError)


class ErrorKind(str, Enum):
    PERSISTENCE = "persistence"
    MISSING_ID = "missing_id"
    UNFILTERED_MUTATION = "unfiltered_mutation"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.PERSISTENCE: 500,
    ErrorKind.MISSING_ID: 400,
    ErrorKind.UNFILTERED_MUTATION: 400,
}


class UnknownModelError(KeyError):
    def __init__(self, model_code: str):
        super().__init__(model_code)
        self.model_code = model_code


class PersistenceError(Exception):
    """A create/read/update/delete call against a model failed."""

    def __init__(self, operation: str, model_code: str, cause: BaseException):
        super().__init__(f"{operation} on {model_code} failed: {cause}")
        self.operation = operation
        self.model_code = model_code
        self.cause = cause

    @property
    def detail(self) -> dict[str, Any]:
        return serialize_error(self.cause)


def serialize_error(exc: BaseException) -> dict[str, Any]:
    if isinstance(exc, ValidationError):
        return {
            "name": "ValidationError",
            "message": f"{exc.error_count()} validation error(s) for {exc.title}",
            "errors": exc.errors(include_url=False, include_context=False, include_input=False),
        }
    detail: dict[str, Any] = {"name": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, OperationFailure):
        detail["code"] = exc.code
    return detail


@contextmanager
def translate_errors(operation: str, model_code: str) -> Iterator[None]:
    try:
        yield
    except PERSISTENCE_CAUSES as exc:
        raise PersistenceError(operation, model_code, exc) from exc
