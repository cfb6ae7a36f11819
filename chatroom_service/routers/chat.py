import logging

from fastapi import APIRouter, Depends
from starlette import status
from starlette.requests import Request

from chatroom_service.application.chat_service import ChatService
from chatroom_service.application.models import (
    AddUserRequest,
    ApiResponse,
    ChatView,
    CreateChatRequest,
    DeleteChatRequest,
    LeaveChatRequest,
    UserView,
)
from chatroom_service.application.results import Err, ServiceResult
from chatroom_service.common.response_message import ResponseMessage
from chatroom_service.infrastructure.user_repository import UserRepository
from chatroom_service.routers.auth import get_current_username
from chatroom_service.routers.responses import EnvelopeResponse, respond

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/home/chat")


async def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


async def get_user_repository(request: Request) -> UserRepository:
    return request.app.state.user_repository


def to_envelope(
    result: ServiceResult, success_message: str, failure_prefix: ResponseMessage
) -> ApiResponse:
    """서비스 결과 -> envelope (Err는 400 + "{prefix}: {detail}")"""
    if isinstance(result, Err):
        return ApiResponse.error(
            status.HTTP_400_BAD_REQUEST,
            ResponseMessage.failure(failure_prefix, result.message),
        )
    return ApiResponse.success(success_message, result.value)


@router.post("")
@router.post("/", include_in_schema=False)
async def create_chat(
    body: CreateChatRequest,
    username: str = Depends(get_current_username),
    chat_service: ChatService = Depends(get_chat_service),
    user_repository: UserRepository = Depends(get_user_repository),
) -> EnvelopeResponse:
    creator = await user_repository.find_by_username(username)
    if creator is None:
        logger.warning(f"Unknown caller on create: {username}")
        return respond(
            ApiResponse.error(
                status.HTTP_400_BAD_REQUEST, ResponseMessage.USER_NOT_FOUND
            )
        )

    # 클라이언트가 보낸 creator는 무시
    chat_view = ChatView(
        chatname=body.chatname,
        create_at=body.create_at,
        creator=UserView.from_user(creator),
    )
    chat_view = await chat_service.create_chat(chat_view)

    return respond(ApiResponse.success(ResponseMessage.CHAT_CREATED, chat_view))


@router.get("/user")
async def find_all_chat_by_user(
    username: str = Depends(get_current_username),
    chat_service: ChatService = Depends(get_chat_service),
) -> EnvelopeResponse:
    chats = await chat_service.find_all_chat_by_user(username)
    chat_views = [ChatView.from_chat(chat) for chat in chats]

    return respond(ApiResponse.success(ResponseMessage.CHATS_FETCHED, chat_views))


@router.post("/addUser")
async def add_user_to_chat(
    body: AddUserRequest,
    username: str = Depends(get_current_username),
    chat_service: ChatService = Depends(get_chat_service),
) -> EnvelopeResponse:
    result = await chat_service.add_user_to_chat(
        body.chat_id, body.username, actor=username
    )
    return respond(
        to_envelope(result, ResponseMessage.USER_ADDED, ResponseMessage.ADD_USER_FAILED)
    )


@router.post("/leave")
async def leave_chat(
    body: LeaveChatRequest,
    username: str = Depends(get_current_username),
    chat_service: ChatService = Depends(get_chat_service),
) -> EnvelopeResponse:
    result = await chat_service.leave_chat(body.chat_id, body.username, actor=username)
    return respond(
        to_envelope(result, ResponseMessage.USER_LEFT, ResponseMessage.LEAVE_FAILED)
    )


@router.post("/delete")
async def delete_chat(
    body: DeleteChatRequest,
    username: str = Depends(get_current_username),
    chat_service: ChatService = Depends(get_chat_service),
) -> EnvelopeResponse:
    result = await chat_service.delete_chat(body.chat_id, actor=username)
    return respond(
        to_envelope(result, ResponseMessage.CHAT_DELETED, ResponseMessage.DELETE_FAILED)
    )
