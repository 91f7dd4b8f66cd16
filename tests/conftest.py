"""Shared fixtures for SiYuanFS tests.

``FakeSiyuan`` is an in-memory stand-in for the remote store, served to
the client through ``httpx.MockTransport``.  It records every call so
tests can assert on remote traffic.
"""

from __future__ import annotations

import asyncio
import json
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from siyuanfs.fs.client import SiyuanClient
from siyuanfs.fs.config import CacheConfig, ConnectionConfig
from siyuanfs.fs.siyuan_fs import SiyuanFileSystem

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

BASE_URL = "http://siyuan.test"
TOKEN = "secret-token"


@dataclass
class FakeDoc:
    id: str
    notebook: str
    title: str
    parent: str | None = None
    content: str = ""
    ctime: int = 1_704_067_200
    mtime: int = 1_704_067_200


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSiyuan:
    """In-memory SiYuan server speaking the ``{code, msg, data}`` envelope."""

    def __init__(self) -> None:
        self.notebooks: list[dict[str, Any]] = []
        self.docs: dict[str, FakeDoc] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, httpx.Response | Exception] = {}
        self.token: str | None = TOKEN
        self.delay: float = 0.0

    # ------------------------------------------------------------------
    # Setup helpers
    # ------------------------------------------------------------------

    def add_notebook(self, nb_id: str, name: str, *, closed: bool = False, sort: int = 0) -> None:
        self.notebooks.append(
            {"id": nb_id, "name": name, "icon": "", "sort": sort, "closed": closed}
        )

    def add_doc(
        self, doc_id: str, notebook: str, title: str, parent: str | None = None, content: str = ""
    ) -> FakeDoc:
        doc = FakeDoc(id=doc_id, notebook=notebook, title=title, parent=parent, content=content)
        self.docs[doc_id] = doc
        return doc

    def fail(self, endpoint: str, failure: httpx.Response | Exception) -> None:
        self.failures[endpoint] = failure

    def count(self, endpoint: str) -> int:
        return Counter(name for name, _ in self.calls)[endpoint]

    def reset_calls(self) -> None:
        self.calls.clear()

    # ------------------------------------------------------------------
    # Tree helpers
    # ------------------------------------------------------------------

    def _children(self, notebook: str, parent: str | None) -> list[FakeDoc]:
        return [d for d in self.docs.values() if d.notebook == notebook and d.parent == parent]

    def _chain(self, doc: FakeDoc) -> list[FakeDoc]:
        chain = [doc]
        while chain[0].parent is not None:
            chain.insert(0, self.docs[chain[0].parent])
        return chain

    def _hpath(self, doc: FakeDoc) -> str:
        return "/" + "/".join(d.title for d in self._chain(doc))

    def _id_path(self, doc: FakeDoc) -> str:
        return "/" + "/".join(d.id for d in self._chain(doc)) + ".sy"

    def _entry(self, doc: FakeDoc) -> dict[str, Any]:
        return {
            "id": doc.id,
            "name": doc.title + ".sy",
            "path": self._id_path(doc),
            "size": len(doc.content.encode("utf-8")),
            "ctime": doc.ctime,
            "mtime": doc.mtime,
            "subFileCount": len(self._children(doc.notebook, doc.id)),
        }

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def handle(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path
        payload = json.loads(request.content or b"{}")
        self.calls.append((endpoint, payload))
        if self.delay:
            await asyncio.sleep(self.delay)

        failure = self.failures.get(endpoint)
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            return failure

        if self.token and request.headers.get("Authorization") != f"Token {self.token}":
            return httpx.Response(401, json={"code": -1, "msg": "Auth failed", "data": None})

        handler = getattr(self, "_api_" + endpoint.rsplit("/", 1)[-1], None)
        if handler is None:
            return httpx.Response(404, text="404 page not found")
        try:
            data = handler(payload)
        except LookupError as err:
            return httpx.Response(200, json={"code": -1, "msg": str(err), "data": None})
        return httpx.Response(200, json={"code": 0, "msg": "", "data": data})

    def _api_lsNotebooks(self, payload: dict[str, Any]) -> Any:  # noqa: N802
        return {"notebooks": [dict(nb) for nb in self.notebooks]}

    def _api_openNotebook(self, payload: dict[str, Any]) -> Any:  # noqa: N802
        self._notebook(payload["notebook"])["closed"] = False

    def _api_closeNotebook(self, payload: dict[str, Any]) -> Any:  # noqa: N802
        self._notebook(payload["notebook"])["closed"] = True

    def _notebook(self, nb_id: str) -> dict[str, Any]:
        for nb in self.notebooks:
            if nb["id"] == nb_id:
                return nb
        raise LookupError(f"notebook {nb_id} not found")

    def _api_getIDsByHPath(self, payload: dict[str, Any]) -> Any:  # noqa: N802
        return [
            d.id
            for d in self.docs.values()
            if d.notebook == payload["notebook"] and self._hpath(d) == payload["path"]
        ]

    def _api_listDocsByPath(self, payload: dict[str, Any]) -> Any:  # noqa: N802
        path = payload["path"]
        parent = None if path == "/" else path.rsplit("/", 1)[-1].removesuffix(".sy")
        files = [self._entry(d) for d in self._children(payload["notebook"], parent)]
        return {"box": payload["notebook"], "path": path, "files": files}

    def _api_getBlockKramdown(self, payload: dict[str, Any]) -> Any:  # noqa: N802
        doc = self.docs.get(payload["id"])
        if doc is None:
            raise LookupError(f"block {payload['id']} not found")
        return {"id": doc.id, "kramdown": doc.content}

    def _api_updateBlock(self, payload: dict[str, Any]) -> Any:  # noqa: N802
        doc = self.docs.get(payload["id"])
        if doc is None:
            raise LookupError(f"block {payload['id']} not found")
        doc.content = payload["data"]
        doc.mtime += 60
        return [{"doOperations": [{"action": "update", "id": doc.id}]}]

    def _api_removeDocByID(self, payload: dict[str, Any]) -> Any:  # noqa: N802
        doomed = [payload["id"]]
        while doomed:
            doc_id = doomed.pop()
            doc = self.docs.pop(doc_id, None)
            if doc is not None:
                doomed.extend(d.id for d in self._children(doc.notebook, doc.id))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def server() -> FakeSiyuan:
    """Notebook "Work" holding Plan (with child Tasks) and Notes; "Archive" is closed."""
    fake = FakeSiyuan()
    fake.add_notebook("nb1", "Work")
    fake.add_notebook("nb2", "Archive", closed=True, sort=1)
    fake.add_doc("d1", "nb1", "Plan", content="# Plan")
    fake.add_doc("d2", "nb1", "Tasks", parent="d1", content="- [ ] ship")
    fake.add_doc("d3", "nb1", "Notes", content="notes")
    return fake


@pytest.fixture
def transport(server: FakeSiyuan) -> httpx.MockTransport:
    return httpx.MockTransport(server.handle)


@pytest.fixture
def config() -> ConnectionConfig:
    return ConnectionConfig(base_url=BASE_URL, api_token=TOKEN)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def client(
    config: ConnectionConfig, transport: httpx.MockTransport
) -> AsyncIterator[SiyuanClient]:
    async with SiyuanClient(config, transport=transport) as c:
        yield c


@pytest.fixture
async def siyuan_fs(
    config: ConnectionConfig, transport: httpx.MockTransport, clock: FakeClock
) -> AsyncIterator[SiyuanFileSystem]:
    fs = SiyuanFileSystem(
        config,
        CacheConfig(flush_delay=0.001),
        transport=transport,
        clock=clock,
    )
    yield fs
    await fs.close()
