"""
Configuration

Loads service settings from the environment (optionally via a .env file) and
defines the credential object threaded into every document fetch.
"""

import logging
import os
from enum import Enum
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_CORS_ORIGINS = "http://localhost:3001,http://localhost:8080"


class ConflictPolicy(str, Enum):
    """Which component source wins when both describe the same node."""
    API_FIRST = "api_first"
    TREE_FIRST = "tree_first"


class FigmaCredentials(BaseModel):
    """Personal access token for the Figma REST API."""
    token: SecretStr

    @classmethod
    def from_token(cls, token: Optional[str]) -> "FigmaCredentials":
        return cls(token=SecretStr(token or ""))

    def header_value(self) -> str:
        return self.token.get_secret_value()

    def is_empty(self) -> bool:
        return not self.token.get_secret_value().strip()


class ExtractionConfig(BaseModel):
    """Knobs for the tree walk and canvas inference."""
    max_depth: int = Field(200, ge=1, le=250, description="Deepest node nesting accepted")
    conflict_policy: ConflictPolicy = Field(
        ConflictPolicy.API_FIRST,
        description="Source kept when a node id appears in both component sources"
    )
    fallback_width: float = Field(1920.0, description="Canvas width when no geometry exists")
    fallback_height: float = Field(1080.0, description="Canvas height when no geometry exists")


class AppConfig(BaseModel):
    """Complete service configuration."""
    figma_base_url: str = "https://api.figma.com/v1"
    figma_timeout: float = Field(30.0, gt=0)

    storage_backend: str = "mock"
    mock_store_path: str = "./data/design_store.json"
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: SecretStr = SecretStr("password")

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    atomic_persistence: bool = True
    verify_token_remotely: bool = True
    cors_origins: List[str] = Field(
        default_factory=lambda: DEFAULT_CORS_ORIGINS.split(",")
    )
    log_level: str = "INFO"

    @field_validator("storage_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("mock", "neo4j"):
            raise ValueError(f"Unknown storage backend: {value}")
        return value


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config() -> AppConfig:
    """
    Load configuration from the environment.

    Returns:
        AppConfig populated from environment variables and defaults

    Raises:
        ValueError: If a variable holds an invalid value (pydantic.ValidationError
            is a subclass)
    """
    load_dotenv()

    origins = os.getenv("CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS)

    return AppConfig(
        figma_base_url=os.getenv("FIGMA_API_BASE_URL", "https://api.figma.com/v1"),
        figma_timeout=float(os.getenv("FIGMA_TIMEOUT_SECONDS", "30")),
        storage_backend=os.getenv("STORAGE_BACKEND", "mock"),
        mock_store_path=os.getenv("MOCK_STORE_PATH", "./data/design_store.json"),
        neo4j_uri=os.getenv("NEO4J_URI", "bolt://localhost:7687"),
        neo4j_user=os.getenv("NEO4J_USER", "neo4j"),
        neo4j_password=SecretStr(os.getenv("NEO4J_PASSWORD", "password")),
        extraction=ExtractionConfig(
            max_depth=int(os.getenv("MAX_TREE_DEPTH", "200")),
            conflict_policy=ConflictPolicy(
                os.getenv("COMPONENT_CONFLICT_POLICY", ConflictPolicy.API_FIRST.value)
            ),
        ),
        atomic_persistence=_env_flag("ATOMIC_PERSISTENCE", "true"),
        verify_token_remotely=_env_flag("VERIFY_TOKEN_REMOTELY", "true"),
        cors_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


def configure_logging(level: str = "INFO") -> None:
    """Apply the service-wide logging format."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
