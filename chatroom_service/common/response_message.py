from enum import StrEnum


class ResponseMessage(StrEnum):
    """Envelope message 문자열 (클라이언트 노출용, 번체 중국어)"""

    # 성공
    CHAT_CREATED = "創建成功"
    CHATS_FETCHED = "獲取聊天室成功"
    USER_ADDED = "用戶成功加入聊天室"
    USER_LEFT = "用戶成功離開聊天室"
    CHAT_DELETED = "聊天室已成功刪除"

    # 실패
    INCOMPLETE_REQUEST = "請求參數不完整"
    USER_NOT_FOUND = "此會員不存在"
    INTERNAL_ERROR = "伺服器內部錯誤"

    # 실패 prefix ("{prefix}: {detail}")
    ADD_USER_FAILED = "加入失敗"
    LEAVE_FAILED = "離開失敗"
    DELETE_FAILED = "刪除失敗"

    @classmethod
    def failure(cls, prefix: "ResponseMessage", detail: str) -> str:
        """operation prefix와 서비스 상세 메시지 결합"""
        return f"{prefix}: {detail}"


class ServiceErrorMessage(StrEnum):
    """ChatService가 Err에 담아 보내는 상세 메시지"""

    CHAT_NOT_FOUND = "聊天室不存在"
    USER_NOT_FOUND = "此會員不存在"
    ALREADY_MEMBER = "用戶已在聊天室"
    NOT_MEMBER = "用戶不在聊天室"
    CREATOR_CANNOT_LEAVE = "創建者不能離開聊天室"
    FORBIDDEN = "無權限執行此操作"
