"""Query builder and model tests — sorting, population, id casting, error translation."""

import pytest
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

from mongoroute.core.errors import PersistenceError, UnknownModelError
from mongoroute.core.query import parse_sort
from tests.conftest import User


def test_parse_sort_string_form():
    assert parse_sort("name -age +ts") == [("name", ASCENDING), ("age", DESCENDING), ("ts", ASCENDING)]


def test_parse_sort_mapping_form():
    assert parse_sort({"name": "desc", "age": 1}) == [("name", DESCENDING), ("age", ASCENDING)]


def test_parse_sort_empty():
    assert parse_sort(None) == []
    assert parse_sort("") == []
    assert parse_sort("-") == []


@pytest.mark.asyncio
async def test_exec_applies_sort_skip_limit(db, users):
    db["users"].seed({"name": "c"}, {"name": "a"}, {"name": "b"}, {"name": "d"})
    docs = await users.model.find({}).sort("-name").skip(1).limit(2).exec()
    assert [doc["name"] for doc in docs] == ["c", "b"]


@pytest.mark.asyncio
async def test_populate_single_reference(db, users, posts):
    (ann,) = db["users"].seed({"name": "ann", "email": "ann@example.com"})
    db["posts"].seed({"title": "hello", "author": ann, "readers": []})

    docs = await posts.model.find({}).populate("author", "name", "user").exec()

    assert docs[0]["author"] == {"_id": ann, "name": "ann"}
    projection = db["users"].calls[-1][1][1]
    assert projection == {"name": 1}


@pytest.mark.asyncio
async def test_populate_missing_references(db, posts):
    ghost = ObjectId()
    db["posts"].seed({"title": "orphan", "author": ghost, "readers": [ghost]})

    docs = await posts.model.find({}).populate("author", "name", "user").populate("readers", "name", "user").exec()

    assert docs[0]["author"] is None
    assert docs[0]["readers"] == []


@pytest.mark.asyncio
async def test_populate_many_keeps_order(db, posts):
    ann, bob = db["users"].seed({"name": "ann"}, {"name": "bob"})
    db["posts"].seed({"title": "t", "author": None, "readers": [bob, ann]})

    docs = await posts.model.find({}).populate("readers", "", "user").exec()

    assert [reader["name"] for reader in docs[0]["readers"]] == ["bob", "ann"]


@pytest.mark.asyncio
async def test_populate_without_ids_skips_lookup(db, posts):
    db["posts"].seed({"title": "t", "author": None, "readers": []})
    await posts.model.find({}).populate("author", "name", "user").exec()
    assert "users" not in db.collections or db["users"].calls == []


@pytest.mark.asyncio
async def test_populate_unknown_model_raises(db, registry):
    from mongoroute.schemas.fields import ref_field
    from mongoroute.schemas.mongo import PyObjectId

    class Comment(User):
        target: PyObjectId | None = ref_field("missing")

    descriptor = registry.register("comment", Comment)
    db["comment"].seed({"name": "x", "target": ObjectId()})
    with pytest.raises(UnknownModelError):
        await descriptor.model.find({}).populate("target").exec()


@pytest.mark.asyncio
async def test_find_by_id_returns_single_document(db, users):
    (ann,) = db["users"].seed({"name": "ann"})
    doc = await users.model.find_by_id(str(ann)).exec()
    assert doc["name"] == "ann"


@pytest.mark.asyncio
async def test_find_by_id_not_found(users):
    assert await users.model.find_by_id(str(ObjectId())).exec() is None


@pytest.mark.asyncio
async def test_find_by_id_malformed_id_is_persistence_error(users):
    with pytest.raises(PersistenceError) as info:
        await users.model.find_by_id("not-an-id").exec()
    assert info.value.operation == "read"
    assert info.value.detail["name"] == "InvalidId"


@pytest.mark.asyncio
async def test_driver_errors_are_translated(db, users):
    db["users"].fail("find", OperationFailure("boom", code=2))
    with pytest.raises(PersistenceError) as info:
        await users.model.find({}).exec()
    assert info.value.model_code == "user"
    assert info.value.detail == {"name": "OperationFailure", "message": "boom", "code": 2}


def test_cast_converts_id_fields_only(users, posts):
    oid = ObjectId()
    assert users.model.cast({"_id": str(oid), "name": str(oid)}) == {"_id": oid, "name": str(oid)}
    assert posts.model.cast({"readers": {"$in": [str(oid), "x"]}}) == {"readers": {"$in": [oid, "x"]}}
    assert posts.model.cast({"author": {"$ne": str(oid)}}) == {"author": {"$ne": oid}}


@pytest.mark.asyncio
async def test_find_hands_cast_filter_to_cursor(db, posts):
    oid = ObjectId()
    await posts.model.find({"author": str(oid)}).exec()
    assert db["posts"].calls[0] == ("find", ({"author": oid}, None))


def test_cast_rejects_non_object_filter(users):
    with pytest.raises(TypeError):
        users.model.cast(["name", "a"])


@pytest.mark.asyncio
async def test_create_validates_and_stores(db, users):
    doc = await users.model.create({"name": "ann", "age": 3, "unknown": "dropped"})
    assert isinstance(doc["_id"], ObjectId)
    assert doc["__v"] == 0
    assert doc["dr"] == 0
    assert "ts" in doc
    assert "unknown" not in doc
    assert db["users"].documents[0]["name"] == "ann"


@pytest.mark.asyncio
async def test_create_many(db, users):
    docs = await users.model.create([{"name": "a"}, {"name": "b"}])
    assert [doc["name"] for doc in docs] == ["a", "b"]
    assert len(db["users"].documents) == 2


@pytest.mark.asyncio
async def test_create_validation_error_is_persistence_error(db, users):
    with pytest.raises(PersistenceError) as info:
        await users.model.create({"age": "old"})
    assert info.value.operation == "create"
    assert info.value.detail["name"] == "ValidationError"
    assert db["users"].calls == []


@pytest.mark.asyncio
async def test_update_wraps_plain_doc_in_set(db, users):
    db["users"].seed({"name": "a"})
    await users.model.update({"name": "a"}, {"age": 4})
    assert db["users"].calls[-1] == ("update_many", ({"name": "a"}, {"$set": {"age": 4}}))


@pytest.mark.asyncio
async def test_update_keeps_operator_doc(db, users):
    db["users"].seed({"name": "a", "age": 1})
    result = await users.model.update({}, {"$inc": {"age": 1}})
    assert result["nModified"] == 1
    assert db["users"].documents[0]["age"] == 2


def test_registry_rejects_duplicate_codes(registry):
    with pytest.raises(ValueError):
        registry.register("user", User)


def test_registry_lookup(registry):
    assert "user" in registry
    assert list(registry) == ["user", "post"]
    assert len(registry) == 2
    with pytest.raises(UnknownModelError):
        registry.get("nope")
