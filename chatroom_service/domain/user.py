from pydantic import BaseModel, Field


class User(BaseModel):
    """회원 모델 (UserDirectory 조회 결과)"""

    username: str = Field(..., min_length=1)
    nick_name: str | None = None
    gender: str | None = None
    password_hash: str | None = None
