from datetime import datetime, UTC

import pytest

from chatroom_service.application.models import ChatroomView, ChatView, UserView
from chatroom_service.application.results import Err, ErrorKind, Ok
from chatroom_service.domain.chat import Chat
from chatroom_service.routers.auth import get_current_username

INCOMPLETE = {"status": 400, "message": "請求參數不完整", "data": None}


def echo_created(chat_view: ChatView) -> ChatView:
    chat_view.chat_id = 1
    return chat_view


class TestCreateChat:
    """POST /home/chat"""

    def test_creator_overwritten_with_caller(self, client, mock_chat_service):
        """클라이언트가 보낸 creator는 인증된 호출자로 대체"""
        mock_chat_service.create_chat.side_effect = echo_created

        response = client.post(
            "/home/chat",
            json={
                "chatname": "Lunch",
                "createAt": "2024-01-01T12:00:00Z",
                "creator": {"username": "mallory"},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == 200
        assert body["message"] == "創建成功"
        assert body["data"]["chatname"] == "Lunch"
        assert body["data"]["chatId"] == 1
        assert body["data"]["createAt"] == "2024-01-01T12:00:00Z"
        assert body["data"]["creator"] == {
            "username": "alice",
            "nickName": "Ally",
            "gender": "F",
        }

        passed_view = mock_chat_service.create_chat.call_args[0][0]
        assert passed_view.creator.username == "alice"

    def test_unknown_caller(self, client, test_app, mock_chat_service):
        test_app.dependency_overrides[get_current_username] = lambda: "ghost"

        response = client.post("/home/chat", json={"chatname": "Lunch"})

        assert response.status_code == 400
        assert response.json() == {"status": 400, "message": "此會員不存在", "data": None}
        mock_chat_service.create_chat.assert_not_called()

    @pytest.mark.parametrize("body", [{}, {"chatname": ""}, {"chatname": None}])
    def test_incomplete(self, client, mock_chat_service, body):
        response = client.post("/home/chat", json=body)

        assert response.status_code == 400
        assert response.json() == INCOMPLETE
        mock_chat_service.create_chat.assert_not_called()

    def test_trailing_slash_path(self, client, mock_chat_service):
        """/home/chat/ 도 리다이렉트 없이 처리"""
        mock_chat_service.create_chat.side_effect = echo_created

        response = client.post(
            "/home/chat/", json={"chatname": "Lunch"}, follow_redirects=False
        )

        assert response.status_code == 200
        assert response.json()["message"] == "創建成功"
        mock_chat_service.create_chat.assert_called_once()

    def test_response_is_utf8_json(self, client, mock_chat_service):
        mock_chat_service.create_chat.side_effect = echo_created

        response = client.post("/home/chat", json={"chatname": "午餐"})

        assert response.headers["content-type"] == "application/json; charset=utf-8"
        assert "創建成功".encode("utf-8") in response.content
        assert response.json()["data"]["chatname"] == "午餐"


class TestFindAllChatByUser:
    """GET /home/chat/user"""

    def test_lists_without_members(self, client, mock_chat_service, users):
        create_at = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        mock_chat_service.find_all_chat_by_user.return_value = [
            Chat(
                chat_id=1,
                chatname="Lunch",
                create_at=create_at,
                creator=users["alice"],
                members=[users["alice"], users["bob"]],
            ),
            Chat(
                chat_id=2,
                chatname="Team",
                create_at=create_at,
                creator=users["carol"],
                members=[users["carol"], users["alice"]],
            ),
        ]

        response = client.get("/home/chat/user")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "獲取聊天室成功"
        assert [chat["chatname"] for chat in body["data"]] == ["Lunch", "Team"]
        for chat in body["data"]:
            assert set(chat) == {"chatId", "chatname", "createAt", "creator"}
            assert "password_hash" not in chat["creator"]
        mock_chat_service.find_all_chat_by_user.assert_called_once_with("alice")

    def test_empty(self, client, mock_chat_service):
        mock_chat_service.find_all_chat_by_user.return_value = []

        response = client.get("/home/chat/user")

        assert response.json() == {"status": 200, "message": "獲取聊天室成功", "data": []}


class TestAddUser:
    """POST /home/chat/addUser"""

    def test_success(self, client, mock_chat_service):
        mock_chat_service.add_user_to_chat.return_value = Ok(
            ChatroomView(
                chat_id=7,
                chatname="Lunch",
                creator=UserView(username="alice"),
                members=[UserView(username="alice"), UserView(username="bob")],
            )
        )

        response = client.post("/home/chat/addUser", json={"chatId": 7, "username": "bob"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "用戶成功加入聊天室"
        assert [m["username"] for m in body["data"]["members"]] == ["alice", "bob"]
        mock_chat_service.add_user_to_chat.assert_called_once_with(7, "bob", actor="alice")

    @pytest.mark.parametrize(
        "body",
        [
            {"chatId": None, "username": "bob"},
            {"username": "bob"},
            {"chatId": 7},
            {"chatId": 7, "username": "   "},
            {"chatId": True, "username": "bob"},
            {"chatId": "7", "username": "bob"},
            {"chatId": 0, "username": "bob"},
            {"chatId": 2**64, "username": "bob"},
        ],
    )
    def test_incomplete(self, client, mock_chat_service, body):
        """필수 값 누락 시 서비스 호출 없음"""
        response = client.post("/home/chat/addUser", json=body)

        assert response.status_code == 400
        assert response.json() == INCOMPLETE
        mock_chat_service.add_user_to_chat.assert_not_called()

    def test_username_trimmed(self, client, mock_chat_service):
        mock_chat_service.add_user_to_chat.return_value = Err(
            kind=ErrorKind.CONFLICT, message="用戶已在聊天室"
        )

        client.post("/home/chat/addUser", json={"chatId": 7, "username": " bob "})

        mock_chat_service.add_user_to_chat.assert_called_once_with(7, "bob", actor="alice")

    def test_business_failure(self, client, mock_chat_service):
        mock_chat_service.add_user_to_chat.return_value = Err(
            kind=ErrorKind.CONFLICT, message="用戶已在聊天室"
        )

        response = client.post("/home/chat/addUser", json={"chatId": 7, "username": "bob"})

        assert response.status_code == 400
        assert response.json() == {
            "status": 400,
            "message": "加入失敗: 用戶已在聊天室",
            "data": None,
        }


class TestLeave:
    """POST /home/chat/leave"""

    def test_success(self, client, mock_chat_service):
        mock_chat_service.leave_chat.return_value = Ok(
            ChatroomView(
                chat_id=7,
                chatname="Lunch",
                creator=UserView(username="alice"),
                members=[UserView(username="alice"), UserView(username="carol")],
            )
        )

        response = client.post("/home/chat/leave", json={"chatId": 7, "username": "bob"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "用戶成功離開聊天室"
        assert [m["username"] for m in body["data"]["members"]] == ["alice", "carol"]

    def test_incomplete(self, client, mock_chat_service):
        response = client.post("/home/chat/leave", json={"chatId": 7, "username": ""})

        assert response.json() == INCOMPLETE
        mock_chat_service.leave_chat.assert_not_called()

    def test_business_failure(self, client, mock_chat_service):
        mock_chat_service.leave_chat.return_value = Err(
            kind=ErrorKind.CONFLICT, message="用戶不在聊天室"
        )

        response = client.post("/home/chat/leave", json={"chatId": 7, "username": "bob"})

        assert response.status_code == 400
        assert response.json()["message"] == "離開失敗: 用戶不在聊天室"


class TestDelete:
    """POST /home/chat/delete"""

    def test_delete_then_delete_again(self, client, mock_chat_service):
        """첫 삭제는 성공, 이후에는 비즈니스 오류"""
        mock_chat_service.delete_chat.side_effect = [
            Ok(None),
            Err(kind=ErrorKind.NOT_FOUND, message="聊天室不存在"),
        ]

        first = client.post("/home/chat/delete", json={"chatId": 7})
        second = client.post("/home/chat/delete", json={"chatId": 7})

        assert first.status_code == 200
        assert first.json() == {"status": 200, "message": "聊天室已成功刪除", "data": None}
        assert second.status_code == 400
        assert second.json() == {
            "status": 400,
            "message": "刪除失敗: 聊天室不存在",
            "data": None,
        }
        mock_chat_service.delete_chat.assert_called_with(7, actor="alice")

    @pytest.mark.parametrize("chat_id", [None, True, -1, 2**64])
    def test_incomplete(self, client, mock_chat_service, chat_id):
        """bool, 음수, int64 초과 값은 저장소에 도달하지 않음"""
        response = client.post("/home/chat/delete", json={"chatId": chat_id})

        assert response.status_code == 400
        assert response.json() == INCOMPLETE
        mock_chat_service.delete_chat.assert_not_called()

    def test_malformed_json(self, client, mock_chat_service):
        response = client.post(
            "/home/chat/delete",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.json() == INCOMPLETE
        mock_chat_service.delete_chat.assert_not_called()


class TestUnhandledErrors:
    def test_infrastructure_error_returns_generic_envelope(
        self, client, mock_chat_service
    ):
        """인프라 오류는 500 envelope, 상세 정보 미노출"""
        mock_chat_service.delete_chat.side_effect = RuntimeError("mongo down")

        response = client.post("/home/chat/delete", json={"chatId": 7})

        assert response.status_code == 500
        body = response.json()
        assert body["status"] == 500
        assert body["data"] is None
        assert "mongo" not in body["message"]