from datetime import datetime, UTC


def make_chat_document(
    chat_id: int = 7,
    chatname: str = "Lunch",
    creator: str = "alice",
    members: list[str] | None = None,
) -> dict:
    """ChatRepository가 반환하는 문서 형태"""
    return {
        "_id": f"oid-{chat_id}",
        "chat_id": chat_id,
        "chatname": chatname,
        "create_at": datetime(2024, 1, 1, 12, 0, tzinfo=UTC),
        "creator": creator,
        "members": members if members is not None else [creator],
    }


TEST_JWT_SECRET = "test-secret-for-chatroom-service-jwt"
