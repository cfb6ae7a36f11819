import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class MongoAdapter:
    """MongoDB 연결 풀 (저장소들이 공유)"""

    def __init__(
        self,
        mongo_client_host: str = "mongodb://mongodb:27017",
        mongo_client_max_pool_size: int = 50,
        mongo_client_min_pool_size: int = 10,
        server_selection_timeout_ms: int = 5_000,
        db_name: str = "chat",
    ):
        self._mongo_client = AsyncIOMotorClient(
            mongo_client_host,
            maxPoolSize=mongo_client_max_pool_size,
            minPoolSize=mongo_client_min_pool_size,
            serverSelectionTimeoutMS=server_selection_timeout_ms,
            tz_aware=True,
        )
        self.database: AsyncIOMotorDatabase = self._mongo_client[db_name]

    async def start(self):
        await self._mongo_client.admin.command("ping")
        logger.info("MongoAdapter started")

    async def stop(self):
        self._mongo_client.close()
        logger.info("MongoAdapter stopped")
