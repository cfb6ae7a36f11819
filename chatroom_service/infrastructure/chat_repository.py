import logging
from datetime import datetime

from pymongo import ASCENDING, ReturnDocument

from chatroom_service.infrastructure.mongo import MongoAdapter

logger = logging.getLogger(__name__)

CHAT_ID_SEQUENCE = "chat_id"


class ChatRepository:
    """
    채팅방 저장소

    문서 구조:
        {chat_id, chatname, create_at, creator, members: [username, ...]}

    구성원 변경은 조건부 단일 문서 업데이트로 처리하여 방 단위로 원자적이다.
    """

    def __init__(self, mongo_adapter: MongoAdapter):
        self.collection = mongo_adapter.database.chats
        self.counters = mongo_adapter.database.counters

    async def start(self):
        """인덱스 초기화"""
        await self.collection.create_index("chat_id", unique=True)
        await self.collection.create_index(
            [("members", ASCENDING), ("create_at", ASCENDING), ("chat_id", ASCENDING)]
        )
        logger.info("ChatRepository started")

    async def next_chat_id(self) -> int:
        """단조 증가 chat_id 발급 (삭제된 방의 id는 재사용하지 않음)"""
        counter = await self.counters.find_one_and_update(
            {"_id": CHAT_ID_SEQUENCE},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter["seq"]

    async def insert_chat(
        self, chatname: str, create_at: datetime, creator: str
    ) -> dict:
        document = {
            "chat_id": await self.next_chat_id(),
            "chatname": chatname,
            "create_at": create_at,
            "creator": creator,
            "members": [creator],
        }
        await self.collection.insert_one(document)
        return document

    async def find_by_chat_id(self, chat_id: int) -> dict | None:
        return await self.collection.find_one({"chat_id": chat_id})

    async def find_by_member(self, username: str) -> list[dict]:
        cursor = self.collection.find({"members": username}).sort(
            [("create_at", ASCENDING), ("chat_id", ASCENDING)]
        )
        return await cursor.to_list(None)

    async def add_member(self, chat_id: int, username: str) -> dict | None:
        """
        구성원 추가

        Returns:
            갱신된 문서. 방이 없거나 이미 구성원이면 None
        """
        return await self.collection.find_one_and_update(
            {"chat_id": chat_id, "members": {"$ne": username}},
            {"$push": {"members": username}},
            return_document=ReturnDocument.AFTER,
        )

    async def remove_member(self, chat_id: int, username: str) -> dict | None:
        """
        구성원 제거 (생성자는 제거 불가)

        Returns:
            갱신된 문서. 방이 없거나, 구성원이 아니거나, 생성자이면 None
        """
        return await self.collection.find_one_and_update(
            {"chat_id": chat_id, "members": username, "creator": {"$ne": username}},
            {"$pull": {"members": username}},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_chat(self, chat_id: int) -> bool:
        result = await self.collection.delete_one({"chat_id": chat_id})
        return result.deleted_count == 1
