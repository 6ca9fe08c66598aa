from typing import Annotated, Any

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def validate_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"{value!r} is not a valid ObjectId")


PyObjectId = Annotated[ObjectId, BeforeValidator(validate_object_id)]


class Document(BaseModel):
    id: PyObjectId | None = Field(default=None, alias="_id")
    version: int = Field(default=0, alias="__v")
    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore", populate_by_name=True)

    def to_mongo(self) -> dict[str, Any]:
        """Dump the document with stored key names, leaving `_id` to the driver when unset."""
        data = self.model_dump(by_alias=True)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data
