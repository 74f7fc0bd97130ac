"""Client for the external tour API's update-request endpoints."""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..core.config import settings
from ..schemas.tour import UpdateRequest

logger = logging.getLogger(__name__)

# (filename, content, content type)
CoverImage = Tuple[str, bytes, str]


class UpdateRequestClientError(Exception):
    """The external API rejected a call or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpdateRequestClient:
    """
    Async client for the external update-request endpoints.

    Usage:
        async with UpdateRequestClient(base_url) as client:
            pending = await client.list_pending_update_requests()
            await client.create_update_request(tour_id, payload)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        authorization: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Tour API base URL (e.g., http://localhost:8080/api/tour)
            timeout: Request timeout in seconds
            authorization: Authorization header forwarded as-is
            transport: Optional transport, used to stub the API in tests
        """
        self.base_url = (base_url or settings.update_request_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.update_request_timeout_seconds
        self.authorization = authorization
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "UpdateRequestClient":
        headers = {"Accept": "application/json"}
        if self.authorization:
            headers["Authorization"] = self.authorization
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=headers,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get HTTP client, raise if not initialized."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with UpdateRequestClient(...)' context.")
        return self._client

    async def create_update_request(
        self,
        tour_id: str,
        payload: Dict[str, Any],
        cover_image: Optional[CoverImage] = None,
    ) -> Any:
        """
        Submit an update request as multipart form data.

        The payload travels as a JSON part named ``data``; the optional cover
        image as a file part named ``tourImg``.

        Raises:
            UpdateRequestClientError: On transport failure or a non-2xx response
        """
        url = f"{self.base_url}/{tour_id}/update-request"
        files: Dict[str, Any] = {
            "data": ("data.json", json.dumps(payload, ensure_ascii=False).encode("utf-8"), "application/json"),
        }
        if cover_image is not None:
            files["tourImg"] = cover_image

        logger.info(
            "Submitting update request",
            extra={"tour_id": tour_id, "has_cover_image": cover_image is not None}
        )
        response = await self._send("POST", url, files=files)
        return self._body(response)

    async def list_pending_update_requests(self) -> List[UpdateRequest]:
        """
        Fetch pending update requests.

        Raises:
            UpdateRequestClientError: On transport failure or a non-2xx response
        """
        url = f"{self.base_url}/update-requests/pending"
        response = await self._send("GET", url)
        data = self._body(response)
        if not isinstance(data, list):
            logger.warning("Pending update requests response is not a list", extra={"type": type(data).__name__})
            return []
        return [UpdateRequest.model_validate(item) for item in data if isinstance(item, dict)]

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            body = self._body(e.response)
            logger.error(
                "Update request API returned an error",
                extra={"url": url, "status": e.response.status_code}
            )
            raise UpdateRequestClientError(
                f"HTTP {e.response.status_code} from {url}",
                status_code=e.response.status_code,
                body=body,
            ) from e
        except httpx.HTTPError as e:
            logger.error("Update request API unreachable", extra={"url": url, "error": str(e)})
            raise UpdateRequestClientError(f"Request to {url} failed: {e}") from e

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
