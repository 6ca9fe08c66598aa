"""Shared fixtures: an in-memory database with ``user`` and ``post`` models registered."""

import logging

import pytest

from mongoroute import MakeModel, password_field, ref_field, refs_field
from mongoroute.config import Settings
from mongoroute.core.i18n import Messages
from mongoroute.core.model import ModelRegistry
from mongoroute.handlers.routes import ModelRouteHandlers
from mongoroute.schemas.mongo import PyObjectId
from tests.fakes import FakeDatabase


class User(MakeModel(soft_delete=True, time_stamp=True)):
    name: str
    email: str | None = None
    password: str = password_field(default="")
    age: int | None = None


class Post(MakeModel(soft_delete=True, time_stamp=True)):
    title: str
    author: PyObjectId | None = ref_field("user", {"name": "name"})
    readers: list[PyObjectId] = refs_field("user", {"name": "name"})


def register_models(registry: ModelRegistry) -> None:
    registry.register("user", User, collection="users")
    registry.register("post", Post, collection="posts")


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def registry(db):
    registry = ModelRegistry(db)
    register_models(registry)
    return registry


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def logger():
    return logging.getLogger("tests.handlers")


@pytest.fixture
def handlers(settings, logger):
    return ModelRouteHandlers(Messages("en"), logger, settings)


@pytest.fixture
def users(registry):
    return registry.get("user")


@pytest.fixture
def posts(registry):
    return registry.get("post")
