"""HTTP adapter for the Tinify compression API."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx

from ..errors import (
    AccountError,
    ClientError,
    CompressionError,
    ServerError,
    ServiceConnectionError,
)
from ..models import CompressedImage

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.tinify.com"
USER_AGENT = "tinypool/0.1"


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        message = body.get("message")
        if error and message:
            return f"{error}: {message}"
        return str(error or message or body)
    return str(body)


def classify_response(response: httpx.Response) -> CompressionError:
    """Map an unsuccessful response to the error taxonomy."""
    status = response.status_code
    detail = f"{_error_detail(response)} (HTTP {status})"
    if status in (401, 429):
        return AccountError(detail, status)
    if 400 <= status < 500:
        return ClientError(detail, status)
    return ServerError(detail, status)


def _compression_count(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("Compression-Count")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class TinifyClient:
    """
    HTTP client adapter for the Tinify API.

    Implements ICompressionClient. One instance is shared by all workers;
    the key travels with each request as basic auth, so no per-key state
    is kept here.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 60,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url
        self._timeout = timeout
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, url: str, key: str, content: Optional[bytes] = None) -> httpx.Response:
        try:
            return self._client.request(method, url, content=content, auth=("api", key))
        except httpx.TransportError as exc:
            raise ServiceConnectionError(
                f"Error while connecting to {self._base_url}: {str(exc) or type(exc).__name__}"
            ) from exc
        except httpx.RequestError as exc:
            # Undecodable body or redirect loop: the service answered, but badly
            raise ServerError(f"Bad response from {url}: {str(exc) or type(exc).__name__}") from exc
        except httpx.InvalidURL as exc:
            raise ServerError(f"Invalid URL {url!r}: {exc}") from exc

    def validate(self, key: str) -> bool:
        """
        Check the key with an empty shrink request.

        The service answers 400 for the missing body when the key is good and
        429 when it is good but out of quota; both count as valid.
        Server and connection errors propagate.
        """
        response = self._request("POST", "/shrink", key)
        if response.is_success:
            return True

        error = classify_response(response)
        if isinstance(error, AccountError):
            if error.status == 429:
                return True
            logger.debug(f"Key rejected: {error}")
            return False
        if isinstance(error, ClientError):
            return True
        raise error

    def compress(self, key: str, path: Path) -> CompressedImage:
        """Upload ``path`` and download the compressed result."""
        data = Path(path).read_bytes()

        response = self._request("POST", "/shrink", key, content=data)
        if not response.is_success:
            raise classify_response(response)

        location = response.headers.get("Location")
        if not location:
            raise ServerError(
                f"Missing Location header in shrink response (HTTP {response.status_code})",
                response.status_code,
            )
        count = _compression_count(response)

        result = self._request("GET", location, key)
        if not result.is_success:
            raise classify_response(result)

        count = _compression_count(result) or count
        if count is not None:
            logger.debug(f"Compression count for key ...{key[-4:]}: {count}")
        return CompressedImage(data=result.content, compression_count=count)
