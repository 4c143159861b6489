"""
HTTP client for the Korvalia property backend.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from korvalia_web.config import settings
from korvalia_web.utils.errors import (
    DEFAULT_API_ERROR_MESSAGE,
    ApiError,
    BackendUnavailableError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

# httpx multipart entries: (field name, (filename, content, content type))
MultipartFiles = Sequence[Tuple[str, Tuple[str, bytes, str]]]


class BackendApiClient:
    """
    Client for the property backend REST API.

    Sends JSON or multipart bodies, attaches the admin bearer token when the call
    requires authentication and turns error responses into ApiError.
    """

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the backend client.

        Args:
            base_url: Backend origin without the /api prefix, defaults to the value in settings
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used to stub the backend in tests
        """
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.api_url = f"{self.base_url}/api"
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS
        self._transport = transport

    def build_url(self, endpoint: str) -> str:
        if endpoint.startswith("http"):
            return endpoint
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{self.api_url}{endpoint}"

    def media_url(self, url: Optional[str]) -> str:
        """Resolve an upload path returned by the backend to an absolute URL."""
        if not url:
            return ""
        if url.startswith(("http://", "https://", "data:")):
            return url
        return f"{self.base_url}{url}" if url.startswith("/") else f"{self.base_url}/{url}"

    async def request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        files: Optional[MultipartFiles] = None,
        params: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
        requires_auth: bool = True,
    ) -> Dict[str, Any]:
        """
        Make a request to the backend.

        Args:
            method: HTTP method
            endpoint: Path under /api, or an absolute URL
            data: JSON body, or form fields when files are given
            files: Multipart file entries
            params: Query parameters
            token: Admin bearer token
            requires_auth: Whether to attach the bearer token

        Returns:
            Dict[str, Any]: Decoded JSON body ({} when empty)

        Raises:
            UnauthorizedError: The backend answered 401
            ApiError: Any other non-2xx answer
            BackendUnavailableError: The backend could not be reached
        """
        url = self.build_url(endpoint)
        headers = {"Accept": "application/json"}
        if requires_auth and token:
            headers["Authorization"] = f"Bearer {token}"

        kwargs: Dict[str, Any] = {"headers": headers}
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if files:
            kwargs["files"] = list(files)
            if data:
                kwargs["data"] = data
        elif data is not None:
            kwargs["json"] = data

        logger.debug(f"{method} {url}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Backend request {method} {url} failed: {e.__class__.__name__}: {e}")
            raise BackendUnavailableError() from e

        if response.status_code == 401:
            logger.warning(f"Backend rejected credentials for {method} {url}")
            raise UnauthorizedError()

        if not response.is_success:
            body = self._decode(response, strict=False)
            message = body.get("message") or body.get("error") or DEFAULT_API_ERROR_MESSAGE
            details = body.get("details") if isinstance(body.get("details"), dict) else None
            logger.warning(
                f"Backend returned {response.status_code} for {method} {url}: {message}"
            )
            raise ApiError(message, status_code=response.status_code, details=details)

        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response, strict: bool = True) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            if strict:
                raise ApiError("Respuesta inválida del servidor", status_code=502)
            return {}
        if isinstance(body, dict):
            return body
        # Bare JSON arrays are wrapped so callers always get a mapping
        return {"data": body}

    async def get(self, endpoint: str, **kwargs) -> Dict[str, Any]:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, data: Any = None, **kwargs) -> Dict[str, Any]:
        return await self.request("POST", endpoint, data=data, **kwargs)

    async def put(self, endpoint: str, data: Any = None, **kwargs) -> Dict[str, Any]:
        return await self.request("PUT", endpoint, data=data, **kwargs)

    async def patch(self, endpoint: str, data: Any = None, **kwargs) -> Dict[str, Any]:
        return await self.request("PATCH", endpoint, data=data, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> Dict[str, Any]:
        return await self.request("DELETE", endpoint, **kwargs)


def unwrap_data(body: Dict[str, Any]) -> Any:
    """Return the `data` member of the backend envelope, or the body itself."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def unwrap_list(body: Dict[str, Any], key: str = None) -> List[Any]:
    """
    Extract a list from the backend's envelope variants.

    Handles `{data: [...]}`, `{data: {key: [...]}}` and `{key: [...]}`.
    """
    data = unwrap_data(body)
    if isinstance(data, list):
        return data
    if key and isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    if key and isinstance(body, dict) and isinstance(body.get(key), list):
        return body[key]
    return []


def unwrap_total(body: Dict[str, Any], key: str = None) -> int:
    """Total count reported by the backend, or the size of the returned list."""
    data = unwrap_data(body)
    for container in (data, body):
        if isinstance(container, dict):
            if container.get("total"):
                return int(container["total"])
            pagination = container.get("pagination")
            if isinstance(pagination, dict) and pagination.get("total"):
                return int(pagination["total"])
    return len(unwrap_list(body, key))


# Create a global instance of the backend client
api_client = BackendApiClient()
