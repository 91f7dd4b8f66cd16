"""SiyuanClient — stateless async wrapper around the SiYuan HTTP API.

No caching and no path logic: every method is one ``POST`` that returns a
validated wire model (or plain value).  Errors are mapped onto the
SiYuanFS exception hierarchy at this boundary.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx
import pydantic

from siyuanfs.models.wire import ApiResponse, BlockKramdown, DocListing, Notebook, NotebookList

from .exceptions import (
    ApiError,
    AuthenticationError,
    NetworkError,
    PathNotFoundError,
    PermissionDeniedError,
    SiyuanFSError,
    ValidationError,
)

if TYPE_CHECKING:
    from .config import ConnectionConfig

logger = logging.getLogger(__name__)


class SiyuanClient:
    """Async client for one SiYuan instance.

    The underlying ``httpx.AsyncClient`` is created lazily and reused.
    Pass *transport* to route requests somewhere other than the network
    (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=self.config.headers(),
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> SiyuanClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def request(self, endpoint: str, payload: dict[str, Any] | None = None) -> Any:
        """POST *payload* to *endpoint* and return the envelope's ``data``."""
        logger.debug("POST %s%s %s", self.base_url, endpoint, payload)
        try:
            response = await self.client.post(endpoint, json=payload or {})
        except httpx.TimeoutException as err:
            raise NetworkError(f"Request to {endpoint} timed out") from err
        except httpx.HTTPError as err:
            raise NetworkError(f"Request to {endpoint} failed: {err}") from err

        envelope = self._handle_response(endpoint, response)
        if envelope.code != 0:
            raise ApiError(envelope.code, envelope.msg, envelope.data)
        return envelope.data

    @staticmethod
    def _handle_response(endpoint: str, response: httpx.Response) -> ApiResponse:
        if response.status_code == 401:
            raise AuthenticationError("Authentication failed; check the API token")
        if response.status_code == 403:
            raise PermissionDeniedError(f"Access denied: {endpoint}")
        if response.status_code == 404:
            raise PathNotFoundError(f"Endpoint not found: {endpoint}")
        if response.status_code >= 400:
            raise NetworkError(f"HTTP {response.status_code}: {response.reason_phrase}")

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as err:
            raise NetworkError(f"Invalid response format from {endpoint}") from err

        try:
            return ApiResponse.model_validate(body)
        except pydantic.ValidationError as err:
            raise ValidationError(f"Unexpected response envelope from {endpoint}") from err

    @staticmethod
    def _decode(model: type[Any], data: Any, endpoint: str) -> Any:
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as err:
            raise ValidationError(f"Unexpected response shape from {endpoint}") from err

    # ------------------------------------------------------------------
    # Notebooks
    # ------------------------------------------------------------------

    async def list_notebooks(self) -> list[Notebook]:
        endpoint = "/api/notebook/lsNotebooks"
        data = await self.request(endpoint)
        return self._decode(NotebookList, data, endpoint).notebooks

    async def open_notebook(self, notebook_id: str) -> None:
        await self.request("/api/notebook/openNotebook", {"notebook": notebook_id})

    async def close_notebook(self, notebook_id: str) -> None:
        await self.request("/api/notebook/closeNotebook", {"notebook": notebook_id})

    # ------------------------------------------------------------------
    # File tree
    # ------------------------------------------------------------------

    async def get_ids_by_hpath(self, hpath: str, notebook_id: str) -> list[str]:
        """Identifiers of the documents at human-readable *hpath* (may be empty)."""
        endpoint = "/api/filetree/getIDsByHPath"
        data = await self.request(endpoint, {"path": hpath, "notebook": notebook_id})
        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(i, str) for i in data):
            raise ValidationError(f"Unexpected response shape from {endpoint}")
        return data

    async def list_docs_by_path(self, notebook_id: str, path: str) -> DocListing:
        """Children of the resolved *path* (``"/"`` or ``"/id/.../id.sy"``)."""
        endpoint = "/api/filetree/listDocsByPath"
        data = await self.request(endpoint, {"notebook": notebook_id, "path": path})
        return self._decode(DocListing, data, endpoint)

    async def remove_doc_by_id(self, block_id: str) -> None:
        await self.request("/api/filetree/removeDocByID", {"id": block_id})

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    async def get_block_kramdown(self, block_id: str) -> BlockKramdown:
        endpoint = "/api/block/getBlockKramdown"
        data = await self.request(endpoint, {"id": block_id})
        return self._decode(BlockKramdown, data, endpoint)

    async def update_block(self, block_id: str, markdown: str) -> None:
        await self.request(
            "/api/block/updateBlock",
            {"dataType": "markdown", "data": markdown, "id": block_id},
        )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def test_connection(self) -> bool:
        """True when the instance answers a notebook listing."""
        try:
            await self.list_notebooks()
        except SiyuanFSError as err:
            logger.warning("Connection test against %s failed: %s", self.base_url, err)
            return False
        return True
