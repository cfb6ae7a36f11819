import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
import orjson
from starlette import status
from starlette.requests import Request
from starlette.responses import JSONResponse

from chatroom_service.application.models import ApiResponse
from chatroom_service.common.response_message import ResponseMessage

logger = logging.getLogger(__name__)


class EnvelopeResponse(JSONResponse):
    """orjson 직렬화 (번체 중국어를 이스케이프 없이 UTF-8로 전송)"""

    media_type = "application/json; charset=utf-8"

    def render(self, content) -> bytes:
        return orjson.dumps(content)


def respond(envelope: ApiResponse) -> EnvelopeResponse:
    """envelope.status를 HTTP status로 사용"""
    return EnvelopeResponse(status_code=envelope.status, content=envelope.to_content())


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> EnvelopeResponse:
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "errors": str(exc.errors())},
    )
    return respond(
        ApiResponse.error(
            status.HTTP_400_BAD_REQUEST, ResponseMessage.INCOMPLETE_REQUEST
        )
    )


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> EnvelopeResponse:
    logger.error(
        f"Unhandled error: {exc}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return respond(
        ApiResponse.error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, ResponseMessage.INTERNAL_ERROR
        )
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(
        RequestValidationError, request_validation_exception_handler
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
