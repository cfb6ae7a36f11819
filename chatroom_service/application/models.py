from datetime import datetime
from typing import Annotated, Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chatroom_service.domain.chat import Chat
from chatroom_service.domain.user import User

T = TypeVar("T")

# BSON int64 범위의 양수만 허용 (bool, 문자열 변환 없음)
ChatId = Annotated[int, Field(strict=True, gt=0, le=2**63 - 1)]


class UserView(BaseModel):
    """외부 노출용 회원 정보 (자격 증명 제외)"""

    username: str
    nick_name: str | None = Field(None, alias="nickName")
    gender: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls(username=user.username, nick_name=user.nick_name, gender=user.gender)


class ChatView(BaseModel):
    """채팅방 요약 (구성원 목록 제외)"""

    chat_id: int | None = Field(None, alias="chatId")
    chatname: str
    create_at: datetime | None = Field(None, alias="createAt")
    creator: UserView | None = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_chat(cls, chat: Chat) -> "ChatView":
        return cls(
            chat_id=chat.chat_id,
            chatname=chat.chatname,
            create_at=chat.create_at,
            creator=UserView.from_user(chat.creator),
        )


class ChatroomView(ChatView):
    """채팅방 + 현재 구성원 목록"""

    members: list[UserView] = Field(default_factory=list)

    @classmethod
    def from_chat(cls, chat: Chat) -> "ChatroomView":
        return cls(
            chat_id=chat.chat_id,
            chatname=chat.chatname,
            create_at=chat.create_at,
            creator=UserView.from_user(chat.creator),
            members=[UserView.from_user(member) for member in chat.members],
        )


class CreateChatRequest(BaseModel):
    """
    채팅방 생성 요청 (ChatView 형태의 본문)

    creator는 받기만 하고 서버에서 인증된 호출자로 덮어쓴다.
    """

    chatname: str = Field(..., min_length=1)
    create_at: datetime | None = Field(None, alias="createAt")
    creator: Any = None

    model_config = ConfigDict(populate_by_name=True)


class ChatMemberRequest(BaseModel):
    chat_id: ChatId = Field(..., alias="chatId")
    username: str

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("username cannot be empty")
        return v.strip()


class AddUserRequest(ChatMemberRequest):
    pass


class LeaveChatRequest(ChatMemberRequest):
    pass


class DeleteChatRequest(BaseModel):
    chat_id: ChatId = Field(..., alias="chatId")

    model_config = ConfigDict(populate_by_name=True)


class ApiResponse(BaseModel, Generic[T]):
    """모든 엔드포인트 공통 응답 envelope"""

    status: int
    message: str
    data: T | None = None

    @classmethod
    def success(cls, message: str, data: Any = None) -> "ApiResponse":
        return cls(status=200, message=message, data=data)

    @classmethod
    def error(cls, status: int, message: str) -> "ApiResponse":
        return cls(status=status, message=message)

    def to_content(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
