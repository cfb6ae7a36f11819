from unittest.mock import Mock, MagicMock

import pytest

from chatroom_service.domain.user import User


# 공통 Mock fixtures
@pytest.fixture
def mock_otel_manager():
    """OTEL Manager mock - 모든 테스트에서 사용"""
    mock = Mock()
    mock.tracer = Mock()
    mock.tracer.start_as_current_span = MagicMock()
    mock.chat_operations_counter = Mock()
    return mock


@pytest.fixture
def users():
    """UserDirectory에 등록된 회원"""
    return {
        "alice": User(
            username="alice", nick_name="Ally", gender="F", password_hash="hashed"
        ),
        "bob": User(username="bob", nick_name="Bobby", gender="M"),
        "carol": User(username="carol", nick_name="Caz", gender="F"),
    }
