from typing import List, Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Problem Tracker"
    debug: bool = False
    cors_allow_origins: List[str] = ["*"]

    # "valkey" in deployments, "memory" for local runs and tests
    storage_backend: Literal["valkey", "memory"] = "valkey"

    # Valkey settings
    valkey_host: str = "valkey"
    valkey_port: int = 6379
    valkey_db: int = 0
    valkey_auth_token: str | None = None
    valkey_key_prefix: str = "tracker"

    # Bearer tokens are issued by the external identity provider. For RS256
    # providers jwt_secret_key holds the PEM public key.
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithms: List[str] = ["HS256"]
    jwt_audience: str | None = None
    jwt_issuer: str | None = None

    # AI hints (litellm model string)
    suggestion_model: str = "bedrock/amazon.nova-micro-v1:0"
    suggestion_max_tokens: int = 1024
    suggestion_temperature: float = 0.7
    suggestion_top_p: float = 0.9
    aws_region: str = "us-east-1"

    # Client library
    api_url: str = "http://localhost:8000/api/v1"
    client_timeout_seconds: float = 30.0


settings = Settings()
