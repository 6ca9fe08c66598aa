from motor.motor_asyncio import AsyncIOMotorCursor
from pymongo.results import DeleteResult, InsertManyResult, InsertOneResult, UpdateResult

AgnosticCursor = AsyncIOMotorCursor
DBInsertOneResult = InsertOneResult
DBInsertManyResult = InsertManyResult
DBUpdateResult = UpdateResult
DBDeleteResult = DeleteResult
