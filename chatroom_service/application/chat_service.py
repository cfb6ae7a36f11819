import logging
from datetime import datetime, UTC

from chatroom_service.application.models import ChatView, ChatroomView
from chatroom_service.application.results import Err, ErrorKind, Ok, ServiceResult
from chatroom_service.common.authorization_policy import AuthorizationPolicy
from chatroom_service.common.response_message import ServiceErrorMessage
from chatroom_service.domain.chat import Chat
from chatroom_service.domain.user import User
from chatroom_service.infrastructure.chat_repository import ChatRepository
from chatroom_service.infrastructure.otel import OTELManager
from chatroom_service.infrastructure.user_repository import UserRepository

logger = logging.getLogger(__name__)


class ChatService:
    """채팅방 서비스 레이어 (채팅방 상태 전이 담당)"""

    def __init__(
        self,
        otel_manager: OTELManager,
        chat_repository: ChatRepository,
        user_repository: UserRepository,
        authorization_policy: AuthorizationPolicy = AuthorizationPolicy.PERMISSIVE,
    ):
        self.otel_manager = otel_manager
        self.chat_repository = chat_repository
        self.user_repository = user_repository
        self.authorization_policy = authorization_policy

    @property
    def is_enforced(self) -> bool:
        return self.authorization_policy == AuthorizationPolicy.ENFORCED

    async def create_chat(self, chat_view: ChatView) -> ChatView:
        """
        채팅방 생성. 생성자는 유일한 구성원이 된다.

        chat_view.creator는 호출 전에 인증된 사용자로 채워져 있어야 하며,
        발급된 chat_id와 create_at이 chat_view에 그대로 기록된다.
        """
        with self.otel_manager.tracer.start_as_current_span(
            "chat.create", attributes={"creator": chat_view.creator.username}
        ):
            create_at = chat_view.create_at or datetime.now(UTC)
            # MongoDB는 밀리초까지만 저장
            create_at = create_at.replace(
                microsecond=create_at.microsecond // 1000 * 1000
            )
            document = await self.chat_repository.insert_chat(
                chatname=chat_view.chatname,
                create_at=create_at,
                creator=chat_view.creator.username,
            )

            chat_view.chat_id = document["chat_id"]
            chat_view.create_at = create_at

        self._record("create", "ok")
        logger.info(
            "Chat created",
            extra={"chat_id": chat_view.chat_id, "creator": chat_view.creator.username},
        )
        return chat_view

    async def find_all_chat_by_user(self, username: str) -> list[Chat]:
        """사용자가 구성원인 채팅방 목록 (create_at, chat_id 오름차순)"""
        documents = await self.chat_repository.find_by_member(username)

        usernames = [
            name for document in documents for name in self._usernames_of(document)
        ]
        users = await self.user_repository.find_by_usernames(usernames)

        self._record("list", "ok")
        return [self._to_chat(document, users) for document in documents]

    async def add_user_to_chat(
        self, chat_id: int, username: str, actor: str | None = None
    ) -> ServiceResult[ChatroomView]:
        with self.otel_manager.tracer.start_as_current_span(
            "chat.add_user", attributes={"chat_id": chat_id, "username": username}
        ):
            document = await self.chat_repository.find_by_chat_id(chat_id)
            if document is None:
                return self._fail(
                    "add_user", ErrorKind.NOT_FOUND, ServiceErrorMessage.CHAT_NOT_FOUND, chat_id
                )

            if self.is_enforced and actor not in document["members"]:
                return self._fail(
                    "add_user", ErrorKind.FORBIDDEN, ServiceErrorMessage.FORBIDDEN, chat_id
                )

            if username in document["members"]:
                return self._fail(
                    "add_user", ErrorKind.CONFLICT, ServiceErrorMessage.ALREADY_MEMBER, chat_id
                )

            if await self.user_repository.find_by_username(username) is None:
                return self._fail(
                    "add_user", ErrorKind.NOT_FOUND, ServiceErrorMessage.USER_NOT_FOUND, chat_id
                )

            updated = await self.chat_repository.add_member(chat_id, username)
            if updated is None:
                # 조회 이후 다른 요청이 먼저 반영된 경우
                if await self.chat_repository.find_by_chat_id(chat_id) is None:
                    return self._fail(
                        "add_user",
                        ErrorKind.NOT_FOUND,
                        ServiceErrorMessage.CHAT_NOT_FOUND,
                        chat_id,
                    )
                return self._fail(
                    "add_user", ErrorKind.CONFLICT, ServiceErrorMessage.ALREADY_MEMBER, chat_id
                )

            self._record("add_user", "ok")
            return Ok(await self._to_chatroom_view(updated))

    async def leave_chat(
        self, chat_id: int, username: str, actor: str | None = None
    ) -> ServiceResult[ChatroomView]:
        with self.otel_manager.tracer.start_as_current_span(
            "chat.leave", attributes={"chat_id": chat_id, "username": username}
        ):
            document = await self.chat_repository.find_by_chat_id(chat_id)
            if document is None:
                return self._fail(
                    "leave", ErrorKind.NOT_FOUND, ServiceErrorMessage.CHAT_NOT_FOUND, chat_id
                )

            if self.is_enforced and actor != username:
                return self._fail(
                    "leave", ErrorKind.FORBIDDEN, ServiceErrorMessage.FORBIDDEN, chat_id
                )

            if username not in document["members"]:
                return self._fail(
                    "leave", ErrorKind.CONFLICT, ServiceErrorMessage.NOT_MEMBER, chat_id
                )

            if document["creator"] == username:
                return self._fail(
                    "leave",
                    ErrorKind.INVALID,
                    ServiceErrorMessage.CREATOR_CANNOT_LEAVE,
                    chat_id,
                )

            updated = await self.chat_repository.remove_member(chat_id, username)
            if updated is None:
                if await self.chat_repository.find_by_chat_id(chat_id) is None:
                    return self._fail(
                        "leave",
                        ErrorKind.NOT_FOUND,
                        ServiceErrorMessage.CHAT_NOT_FOUND,
                        chat_id,
                    )
                return self._fail(
                    "leave", ErrorKind.CONFLICT, ServiceErrorMessage.NOT_MEMBER, chat_id
                )

            self._record("leave", "ok")
            return Ok(await self._to_chatroom_view(updated))

    async def delete_chat(
        self, chat_id: int, actor: str | None = None
    ) -> ServiceResult[None]:
        """채팅방과 모든 구성원 정보 삭제. 삭제된 방에 대한 이후 요청은 실패한다."""
        with self.otel_manager.tracer.start_as_current_span(
            "chat.delete", attributes={"chat_id": chat_id}
        ):
            document = await self.chat_repository.find_by_chat_id(chat_id)
            if document is None:
                return self._fail(
                    "delete", ErrorKind.NOT_FOUND, ServiceErrorMessage.CHAT_NOT_FOUND, chat_id
                )

            if self.is_enforced and actor != document["creator"]:
                return self._fail(
                    "delete", ErrorKind.FORBIDDEN, ServiceErrorMessage.FORBIDDEN, chat_id
                )

            if not await self.chat_repository.delete_chat(chat_id):
                return self._fail(
                    "delete", ErrorKind.NOT_FOUND, ServiceErrorMessage.CHAT_NOT_FOUND, chat_id
                )

            self._record("delete", "ok")
            logger.info("Chat deleted", extra={"chat_id": chat_id, "actor": actor})
            return Ok(None)

    async def _to_chatroom_view(self, document: dict) -> ChatroomView:
        users = await self.user_repository.find_by_usernames(
            self._usernames_of(document)
        )
        return ChatroomView.from_chat(self._to_chat(document, users))

    @staticmethod
    def _usernames_of(document: dict) -> list[str]:
        return [document["creator"], *document["members"]]

    @staticmethod
    def _to_chat(document: dict, users: dict[str, User]) -> Chat:
        """저장소 문서 -> Chat (회원 정보가 없는 username은 username만 채움)"""

        def resolve(username: str) -> User:
            return users.get(username) or User(username=username)

        return Chat(
            chat_id=document["chat_id"],
            chatname=document["chatname"],
            create_at=document["create_at"],
            creator=resolve(document["creator"]),
            members=[resolve(member) for member in document["members"]],
        )

    def _fail(
        self, operation: str, kind: ErrorKind, message: str, chat_id: int
    ) -> Err:
        logger.warning(
            f"Chat {operation} rejected: {message}",
            extra={"chat_id": chat_id, "operation": operation, "kind": kind},
        )
        self._record(operation, kind)
        return Err(kind=kind, message=message)

    def _record(self, operation: str, outcome: str) -> None:
        self.otel_manager.chat_operations_counter.add(
            1, {"operation": operation, "outcome": str(outcome)}
        )
