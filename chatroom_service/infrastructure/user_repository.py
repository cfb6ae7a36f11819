import logging

from chatroom_service.domain.user import User
from chatroom_service.infrastructure.mongo import MongoAdapter

logger = logging.getLogger(__name__)


class UserRepository:
    """회원 저장소 (UserDirectory)"""

    def __init__(self, mongo_adapter: MongoAdapter):
        self.collection = mongo_adapter.database.users

    async def start(self):
        await self.collection.create_index("username", unique=True)
        logger.info("UserRepository started")

    @staticmethod
    def to_user(document: dict) -> User:
        return User(
            username=document["username"],
            nick_name=document.get("nickName"),
            gender=document.get("gender"),
            password_hash=document.get("password_hash"),
        )

    async def find_by_username(self, username: str) -> User | None:
        document = await self.collection.find_one({"username": username})
        if document is None:
            return None
        return self.to_user(document)

    async def find_by_usernames(self, usernames: list[str]) -> dict[str, User]:
        """username -> User 매핑 (존재하지 않는 username은 제외)"""
        if not usernames:
            return {}

        cursor = self.collection.find({"username": {"$in": list(set(usernames))}})
        documents = await cursor.to_list(None)
        return {document["username"]: self.to_user(document) for document in documents}
