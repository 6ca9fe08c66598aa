"""example usage"""

import uvicorn

from mongoroute import MakeModel, Registry, password_field, ref_field, refs_field
from mongoroute.main import create_app
from mongoroute.schemas.mongo import PyObjectId


class User(MakeModel(soft_delete=True, time_stamp=True)):
    name: str
    email: str | None = None
    password: str = password_field(default="")
    age: int | None = None


class Post(MakeModel(soft_delete=True, time_stamp=True)):
    title: str
    body: str = ""
    author: PyObjectId | None = ref_field("user", {"name": "name"})
    readers: list[PyObjectId] = refs_field("user", {"name": "name", "mail": "email"})


def register_models(registry: Registry) -> None:
    registry.register("user", User, collection="users")
    registry.register("post", Post, collection="posts")


tapp = create_app(register_models=register_models)


if __name__ == "__main__":
    uvicorn.run(tapp, host="localhost", port=8000)
