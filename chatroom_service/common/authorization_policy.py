from enum import StrEnum


class AuthorizationPolicy(StrEnum):
    """
    add/leave/delete 요청에 대한 호출자 권한 정책

    PERMISSIVE: 호출자와 요청 본문의 username, 방 구성원을 대조하지 않음
    ENFORCED: addUser는 방 구성원만, leave는 본인만, delete는 방 생성자만 허용
    """

    PERMISSIVE = "permissive"
    ENFORCED = "enforced"
