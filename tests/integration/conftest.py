from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from chatroom_service.application.chat_service import ChatService
from chatroom_service.config import Settings
from chatroom_service.infrastructure.user_repository import UserRepository
from chatroom_service.routers.auth import get_current_username
from chatroom_service.routers.chat import router
from chatroom_service.routers.responses import register_exception_handlers
from tests.factories import TEST_JWT_SECRET

CALLER = "alice"


@pytest.fixture
def mock_chat_service():
    return AsyncMock(spec=ChatService)


@pytest.fixture
def mock_user_repository(users):
    mock = AsyncMock(spec=UserRepository)
    mock.find_by_username.side_effect = lambda username: users.get(username)
    return mock


@pytest.fixture
def test_app(mock_chat_service, mock_user_repository):
    """테스트용 FastAPI 앱 (인증은 CALLER로 고정)"""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(router)

    app.state.is_draining = False
    app.state.settings = Settings(AUTH_JWT_SECRET=TEST_JWT_SECRET)
    app.state.chat_service = mock_chat_service
    app.state.user_repository = mock_user_repository

    app.dependency_overrides[get_current_username] = lambda: CALLER
    return app


@pytest.fixture
def client(test_app):
    """TestClient 인스턴스"""
    with TestClient(test_app, raise_server_exceptions=False) as client:
        yield client
