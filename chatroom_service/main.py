import logging
from contextlib import asynccontextmanager
from datetime import datetime, UTC

from fastapi import FastAPI
from starlette import status
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from chatroom_service.application.chat_service import ChatService
from chatroom_service.config import Settings
from chatroom_service.infrastructure.chat_repository import ChatRepository
from chatroom_service.infrastructure.mongo import MongoAdapter
from chatroom_service.infrastructure.otel import OTELManager
from chatroom_service.infrastructure.user_repository import UserRepository
from chatroom_service.routers.chat import router as chat_router
from chatroom_service.routers.responses import register_exception_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Chatroom Application...")

    services_to_stop = []
    try:
        app.state.is_draining = False
        settings = Settings()
        app.state.settings = settings

        # Infra
        # OTel
        otel_manager = OTELManager(
            service_name=settings.OTEL_SERVICE_NAME,
            otlp_grpc_endpoint=settings.OTEL_OTLP_GRPC_ENDPOINT,
            otlp_http_endpoint=settings.OTEL_OTLP_HTTP_ENDPOINT,
            enabled=settings.OTEL_ENABLED,
        )
        app.state.otel_manager = otel_manager
        services_to_stop.append(otel_manager)

        # MongoDB
        mongo_adapter = MongoAdapter(
            mongo_client_host=settings.MONGO_CLIENT_HOST,
            mongo_client_max_pool_size=settings.MONGO_CLIENT_MAX_POOL_SIZE,
            mongo_client_min_pool_size=settings.MONGO_CLIENT_MIN_POOL_SIZE,
            server_selection_timeout_ms=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
            db_name=settings.MONGO_DB_NAME,
        )
        await mongo_adapter.start()
        app.state.mongo_adapter = mongo_adapter
        services_to_stop.append(mongo_adapter)

        # Repositories
        user_repository = UserRepository(mongo_adapter)
        await user_repository.start()
        app.state.user_repository = user_repository

        chat_repository = ChatRepository(mongo_adapter)
        await chat_repository.start()
        app.state.chat_repository = chat_repository

        # Application
        chat_service = ChatService(
            otel_manager=otel_manager,
            chat_repository=chat_repository,
            user_repository=user_repository,
            authorization_policy=settings.CHAT_AUTHORIZATION_POLICY,
        )
        app.state.chat_service = chat_service

        logger.info(
            "Application started successfully!",
            extra={"authorization_policy": str(settings.CHAT_AUTHORIZATION_POLICY)},
        )

        yield

    except Exception as e:
        logger.critical(f"Startup failed: {e}", exc_info=True)
        raise

    finally:
        logger.info("Shutting down...")
        app.state.is_draining = True

        for service in reversed(services_to_stop):
            try:
                await service.stop()
            except Exception as e:
                logger.error(f"Error stopping service: {e}", exc_info=True)

        logger.info("Shutdown complete")


app = FastAPI(lifespan=lifespan)

# 미들웨어
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware)

register_exception_handlers(app)

# 라우터
app.include_router(chat_router)


@app.get("/health")
async def health_check_liveness():
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


@app.get("/readiness")
async def health_check_readiness(request: Request):
    if request.app.state.is_draining:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "shutting_down",
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )

    return {"status": "ready", "timestamp": datetime.now(UTC).isoformat()}
