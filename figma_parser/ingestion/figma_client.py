"""
Figma API Client

HTTP client for the Figma REST API. The access token is passed in on every
call; the client holds no credential of its own.
"""

import json
import logging
import re
from typing import Any

import requests

from ..config import FigmaCredentials
from ..errors import InvalidInput, UpstreamFailure
from .models import FigmaAPIResponse
from .tree import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

FIGMA_BASE_URL = "https://api.figma.com/v1"
DEFAULT_TIMEOUT = 30.0
USER_AGENT = "figma-parser-app/1.0"

_URL_PATTERNS = [
    re.compile(r"(?:https?://)?(?:www\.)?figma\.com/file/([a-zA-Z0-9]+)"),
    re.compile(r"(?:https?://)?(?:www\.)?figma\.com/design/([a-zA-Z0-9]+)"),
]
_FILE_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")


def is_valid_file_key(key: str) -> bool:
    """Figma file keys are alphanumeric and longer than 10 characters."""
    return bool(_FILE_KEY_PATTERN.match(key)) and len(key) > 10


def extract_file_key(figma_url: str) -> str:
    """
    Extract the file key from a Figma file or design URL.

    Args:
        figma_url: URL such as https://www.figma.com/design/<key>/<name>, or a bare key

    Returns:
        The file key

    Raises:
        InvalidInput: If the input is empty or not a recognisable Figma URL or key
    """
    if not figma_url or not figma_url.strip():
        raise InvalidInput("URL cannot be empty")

    figma_url = figma_url.strip()

    for pattern in _URL_PATTERNS:
        match = pattern.search(figma_url)
        if match:
            return match.group(1)

    if is_valid_file_key(figma_url):
        return figma_url

    raise InvalidInput(f"invalid Figma URL format: {figma_url}")


def api_error(status_code: int, body: bytes) -> UpstreamFailure:
    """
    Translate a non-2xx Figma response into an UpstreamFailure.

    Args:
        status_code: HTTP status of the response
        body: Raw response body

    Returns:
        UpstreamFailure carrying the status code and a readable message
    """
    text = body.decode("utf-8", errors="replace") if body else ""
    try:
        payload = json.loads(text)
        err = payload.get("err", "") if isinstance(payload, dict) else ""
    except ValueError:
        return UpstreamFailure(f"HTTP {status_code}: {text}", status_code)

    messages = {
        400: f"bad request: {err}",
        401: "unauthorized: invalid Figma API token",
        403: "forbidden: insufficient permissions for this file",
        404: "not found: file does not exist or is not accessible",
        429: "rate limit exceeded: too many requests",
        500: f"Figma server error: {err}",
    }
    return UpstreamFailure(messages.get(status_code, f"HTTP {status_code}: {err}"), status_code)


class FigmaClient:
    """
    Client for the Figma REST API.

    Handles authentication headers, error translation and decoding of the
    file endpoint into FigmaAPIResponse objects.
    """

    def __init__(
        self,
        base_url: str = FIGMA_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_depth: int = DEFAULT_MAX_DEPTH
    ):
        """
        Initialize Figma client.

        Args:
            base_url: Base URL of the Figma REST API
            timeout: Request timeout in seconds
            max_depth: Deepest node nesting accepted in file responses
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_depth = max_depth
        logger.info(f"FigmaClient initialized with API URL: {self.base_url}")

    def get_file(self, file_key_or_url: str, credentials: FigmaCredentials) -> FigmaAPIResponse:
        """
        Retrieve a complete file document.

        Args:
            file_key_or_url: File key, or a full Figma URL containing one
            credentials: Access token for this request

        Returns:
            FigmaAPIResponse

        Raises:
            InvalidInput: If the key is empty or the body cannot be decoded
            UpstreamFailure: If the request fails or Figma rejects it
        """
        if not file_key_or_url:
            raise InvalidInput("file key cannot be empty")

        file_key = self._clean_file_key(file_key_or_url)
        logger.info(f"Fetching Figma file: {file_key}")

        payload = self._get(f"{self.base_url}/files/{file_key}", credentials)
        response = FigmaAPIResponse.from_payload(payload, self.max_depth)

        logger.info(f"Fetched Figma file {file_key}: '{response.name}' "
                    f"({len(response.components)} components, "
                    f"{len(response.component_sets)} component sets)")
        return response

    def validate_token(self, token: str) -> None:
        """
        Check an access token against the /me endpoint.

        Args:
            token: Figma personal access token

        Raises:
            InvalidInput: If the token is empty
            UpstreamFailure: If Figma does not accept the token
        """
        credentials = FigmaCredentials.from_token(token)
        if credentials.is_empty():
            raise InvalidInput("Figma token is required")

        try:
            self._get(f"{self.base_url}/me", credentials)
        except UpstreamFailure as e:
            if e.status_code == 403:
                raise UpstreamFailure("invalid or expired Figma token", 403) from e
            if e.status_code == 401:
                raise UpstreamFailure(
                    "invalid Figma token format or token not recognized", 401
                ) from e
            raise UpstreamFailure(f"token validation failed: {e}", e.status_code) from e

    def _get(
        self,
        endpoint: str,
        credentials: FigmaCredentials
    ) -> Any:
        if credentials is None or credentials.is_empty():
            raise InvalidInput("figma token is required")

        headers = {
            "X-Figma-Token": credentials.header_value(),
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

        try:
            response = requests.get(
                endpoint,
                headers=headers,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Figma request failed: {e}")
            raise UpstreamFailure(f"HTTP request failed: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            error = api_error(response.status_code, response.content)
            logger.error(f"Figma API returned {response.status_code}: {error}")
            raise error

        try:
            return response.json()
        except ValueError as e:
            raise InvalidInput(f"failed to parse Figma API response: {e}") from e

    @staticmethod
    def _clean_file_key(file_key_or_url: str) -> str:
        if "/" not in file_key_or_url:
            return file_key_or_url

        if "figma.com" in file_key_or_url:
            parts = file_key_or_url.split("/")
            for i, part in enumerate(parts):
                if part in ("file", "design") and i + 1 < len(parts):
                    return parts[i + 1]

        return file_key_or_url
