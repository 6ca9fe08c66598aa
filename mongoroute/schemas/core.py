from datetime import datetime, timezone
from typing import Any, Type

from pydantic import BaseModel, Field, field_serializer

from mongoroute.schemas.mongo import Document


class Timestamp(BaseModel):
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("ts", when_used="json")
    def serialize_ts(self, ts: datetime | None, _info: Any) -> str | None:
        return ts.isoformat() if ts is not None else None


class SoftDeletion(BaseModel):
    # 0 = live, 1 = marked deleted
    dr: int = Field(default=0)


class ModelGenerator:
    def __init__(
        self,
        soft_delete: bool = True,
        time_stamp: bool = True,
    ) -> None:
        self.soft_delete = soft_delete
        self.time_stamp = time_stamp

    @staticmethod
    def make_model(
        soft_delete: bool = True,
        time_stamp: bool = True,
    ) -> Type[Document]:
        return ModelGenerator(soft_delete, time_stamp)._generate()

    def _generate(self) -> Type[Document]:
        bases: list = [
            Document,
        ]
        if self.soft_delete:
            bases.append(SoftDeletion)
        if self.time_stamp:
            bases.append(Timestamp)

        class NewModel(*bases):
            model_config = Document.model_config

        return NewModel
