from datetime import datetime

from pydantic import BaseModel, Field

from chatroom_service.domain.user import User


class Chat(BaseModel):
    """채팅방 모델 (생성자와 구성원이 User로 채워진 상태)"""

    chat_id: int
    chatname: str = Field(..., min_length=1)
    create_at: datetime
    creator: User
    members: list[User] = Field(default_factory=list)
