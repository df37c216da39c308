"""
Figma Parser HTTP Service - FastAPI wrapper around ParserService

Endpoints:
    GET  /health
    POST /parse-figma-file      (Figma token required)
    GET  /figma-files/{file_id}
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import AppConfig, FigmaCredentials, configure_logging, load_config
from ..errors import (
    InvalidInput,
    PersistenceFailure,
    RecordNotFound,
    StorageError,
    UpstreamFailure,
)
from ..orchestrator.service import ParserService, build_service

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "figd_"
# upstream statuses that are meaningful to the caller as they are
PASSTHROUGH_STATUSES = {401, 403, 404, 429}


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    storage: str


class ParseRequest(BaseModel):
    """Body of POST /parse-figma-file."""
    figma_file_url: str = Field(..., min_length=1)


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint."""
    err: str
    status: int
    message: str


class TokenRejected(Exception):
    """The request carried no usable Figma token."""

    def __init__(self, err: str, message: str = ""):
        self.err = err
        self.message = message or err
        super().__init__(err)


def _error(status: int, err: str, message: str) -> JSONResponse:
    body = ErrorResponse(err=err, status=status, message=message)
    return JSONResponse(status_code=status, content=body.model_dump())


def get_service(request: Request) -> ParserService:
    return request.app.state.service


def require_figma_token(
    request: Request,
    authorization: Optional[str] = Header(None),
    figma_token: Optional[str] = Query(None)
) -> FigmaCredentials:
    """
    Resolve the Figma token of a request.

    The Authorization header wins over the figma_token query parameter; a
    "Bearer " prefix is removed.

    Raises:
        TokenRejected: If the token is missing, malformed or refused by Figma
    """
    token = authorization or figma_token or ""
    if token.startswith("Bearer "):
        token = token[len("Bearer "):]

    if not token:
        raise TokenRejected("Figma token is required")

    if not token.startswith(TOKEN_PREFIX):
        raise TokenRejected(f"Invalid Figma token format. Token must start with '{TOKEN_PREFIX}'")

    config: AppConfig = request.app.state.config
    if config.verify_token_remotely:
        try:
            get_service(request).manager.validate_token(token)
        except UpstreamFailure as e:
            logger.warning(f"Figma token rejected: {e}")
            raise TokenRejected("Invalid Figma token", str(e)) from e

    return FigmaCredentials.from_token(token)


def create_app(
    service: Optional[ParserService] = None,
    config: Optional[AppConfig] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Service to expose, built from config when omitted
        config: Service settings, loaded from the environment when omitted

    Returns:
        Configured FastAPI app
    """
    config = config or load_config()
    configure_logging(config.log_level)

    app = FastAPI(
        title="Figma Parser Service",
        description="Extracts components and instances from Figma files and stores them",
        version="1.0.0"
    )
    app.state.config = config
    app.state.service = service or build_service(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Authorization"],
    )

    @app.exception_handler(TokenRejected)
    async def token_rejected_handler(request: Request, exc: TokenRejected):
        return _error(401, exc.err, exc.message)

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(request: Request, exc: InvalidInput):
        return _error(400, "Invalid input", str(exc))

    @app.exception_handler(UpstreamFailure)
    async def upstream_failure_handler(request: Request, exc: UpstreamFailure):
        status = exc.status_code if exc.status_code in PASSTHROUGH_STATUSES else 502
        return _error(status, "Figma request failed", str(exc))

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
        return _error(500, "Failed to save Figma file", str(exc))

    @app.exception_handler(RecordNotFound)
    async def not_found_handler(request: Request, exc: RecordNotFound):
        return _error(404, "Not found", str(exc))

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"Storage read failed: {exc}")
        return _error(500, "Storage error", str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), str(exc.detail))

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(status="healthy", storage=config.storage_backend)

    @app.post("/parse-figma-file")
    def parse_figma_file(
        body: ParseRequest,
        credentials: FigmaCredentials = Depends(require_figma_token),
        parser_service: ParserService = Depends(get_service)
    ):
        """
        Parse a Figma file and store it with its components and instances.

        Returns:
            {"data": DesignFile}
        """
        logger.info(f"Received parse request for: {body.figma_file_url}")
        saved_file = parser_service.parse_and_persist(body.figma_file_url, credentials)
        return {"data": saved_file.model_dump(mode="json")}

    @app.get("/figma-files/{file_id}")
    def get_figma_file(file_id: int, parser_service: ParserService = Depends(get_service)):
        """
        Return a saved file with its components and instances.

        Returns:
            {"data": FileDetails}
        """
        details = parser_service.get_file_details(file_id)
        return {"data": details.model_dump(mode="json")}

    logger.info("Figma Parser Service ready")
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        create_app(),
        host="0.0.0.0",
        port=8080,
        log_level="info"
    )
