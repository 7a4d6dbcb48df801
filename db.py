import os
from motor.motor_asyncio import AsyncIOMotorClient

# Chat preferences only; matchmaking state lives in memory in the engine.
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "anonchat")
client = AsyncIOMotorClient(MONGODB_URI)
db = client[MONGODB_DB]

async def get_user(user_id):
    return await db.users.find_one({"user_id": user_id})

async def update_user(user_id, updates):
    await db.users.update_one({"user_id": user_id}, {"$set": updates}, upsert=True)
