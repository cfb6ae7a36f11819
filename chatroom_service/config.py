from pydantic.v1 import BaseSettings

from chatroom_service.common.authorization_policy import AuthorizationPolicy


class Settings(BaseSettings):
    # OTEL
    OTEL_ENABLED: bool = True
    OTEL_SERVICE_NAME: str = "chatroom-service"
    OTEL_OTLP_GRPC_ENDPOINT: str = "otel-collector:4317"
    OTEL_OTLP_HTTP_ENDPOINT: str = "http://otel-collector:4318"

    # MongoDB
    MONGO_CLIENT_HOST: str = "mongodb://mongodb:27017"
    MONGO_CLIENT_MAX_POOL_SIZE: int = 50
    MONGO_CLIENT_MIN_POOL_SIZE: int = 10
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5_000
    MONGO_DB_NAME: str = "chat"

    # Auth
    AUTH_JWT_SECRET: str = "change-me"
    AUTH_JWT_ALGORITHM: str = "HS256"

    # ChatService
    CHAT_AUTHORIZATION_POLICY: AuthorizationPolicy = AuthorizationPolicy.PERMISSIVE

    class Config:
        env_file = ".env"
