"""Field metadata for registered document schemas.

Fields carry a control type (``ctrltype``) in their pydantic ``json_schema_extra``.
The tag is resolved once, when a schema is registered, into a :class:`FieldSpec`
holding a closed :class:`FieldKind`; request handling only reads the resolved specs.
"""

import types
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Mapping, Type, Union, get_args, get_origin

from bson import ObjectId
from pydantic import BaseModel, Field

RESERVED_FIELDS = frozenset({"ts", "dr", "__v", "_id"})

# bool before int: bool is an int subclass
_INSTANCES: tuple[tuple[type, str], ...] = (
    (bool, "Boolean"),
    (str, "String"),
    (int, "Number"),
    (float, "Number"),
    (Decimal, "Number"),
    (datetime, "Date"),
    (date, "Date"),
    (ObjectId, "ObjectId"),
)


class FieldKind(str, Enum):
    PLAIN = "plain"
    PASSWORD = "password"
    REF = "ref"
    REFS = "refs"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    instance: str
    kind: FieldKind = FieldKind.PLAIN
    ref: str | None = None
    ref_options: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_reference(self) -> bool:
        return self.kind in (FieldKind.REF, FieldKind.REFS)

    @property
    def searchable(self) -> bool:
        return self.instance == "String" and self.kind is FieldKind.PLAIN and self.name not in RESERVED_FIELDS

    @property
    def holds_ids(self) -> bool:
        return self.instance == "ObjectId" or self.kind is FieldKind.REFS

    @property
    def select(self) -> str:
        return " ".join(self.ref_options.values())


def password_field(**kwargs: Any) -> Any:
    return Field(json_schema_extra={"ctrltype": FieldKind.PASSWORD.value}, **kwargs)


def ref_field(ref: str, ref_options: Mapping[str, str] | None = None, **kwargs: Any) -> Any:
    kwargs.setdefault("default", None)
    return Field(
        json_schema_extra={"ctrltype": FieldKind.REF.value, "ref": ref, "refOptions": dict(ref_options or {})},
        **kwargs,
    )


def refs_field(ref: str, ref_options: Mapping[str, str] | None = None, **kwargs: Any) -> Any:
    kwargs.setdefault("default_factory", list)
    return Field(
        json_schema_extra={"ctrltype": FieldKind.REFS.value, "ref": ref, "refOptions": dict(ref_options or {})},
        **kwargs,
    )


def instance_of(annotation: Any) -> str:
    origin = get_origin(annotation)
    if origin is Annotated:
        return instance_of(get_args(annotation)[0])
    if origin in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        return instance_of(args[0]) if len(args) == 1 else "Mixed"
    if origin in (list, set, tuple, frozenset) or annotation in (list, set, tuple, frozenset):
        return "Array"
    if isinstance(annotation, type):
        for kind, name in _INSTANCES:
            if issubclass(annotation, kind):
                return name
        if issubclass(annotation, BaseModel):
            return "Embedded"
    return "Mixed"


def kind_of(ctrltype: Any) -> FieldKind:
    try:
        return FieldKind(ctrltype)
    except ValueError:
        return FieldKind.PLAIN


def resolve_paths(schema: Type[BaseModel]) -> dict[str, FieldSpec]:
    """
    Resolve the field specs of a schema, keyed by stored name.

    Args:
        schema (Type[BaseModel]): The document schema being registered.

    Returns:
        dict[str, FieldSpec]: One spec per field, aliases (``_id``, ``__v``) used as keys.
    """
    paths: dict[str, FieldSpec] = {}
    for name, info in schema.model_fields.items():
        key = info.alias or name
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        paths[key] = FieldSpec(
            name=key,
            instance=instance_of(info.annotation),
            kind=kind_of(extra.get("ctrltype")),
            ref=extra.get("ref"),
            ref_options=dict(extra.get("refOptions") or {}),
        )
    return paths
