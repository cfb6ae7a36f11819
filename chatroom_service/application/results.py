from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    INVALID = "invalid"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """서비스 처리 성공"""

    value: T


@dataclass(frozen=True)
class Err:
    """
    서비스가 분류한 비즈니스 실패

    컨트롤러는 Err를 400 envelope로 변환한다. 분류되지 않은 예외(DB 장애 등)는
    Err로 감싸지 않고 그대로 전파된다.
    """

    kind: ErrorKind
    message: str


ServiceResult = Ok[T] | Err
