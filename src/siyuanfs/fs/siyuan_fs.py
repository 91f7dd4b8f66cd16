"""SiyuanFileSystem — a SiYuan instance as a hierarchical virtual filesystem.

Every operation follows the same path: consult the cache, otherwise resolve
the virtual path to its identifier chain, call the remote store, populate
the cache and return.  Remote and resolver errors are translated into the
host vocabulary (``FileNotFound``, ``NoPermissions``, ``Unavailable``) at
this boundary.

Namespace::

    /                       open notebooks, one directory each
    /Work                   children of notebook "Work"
    /Work/Plan.sy           document "Plan" (file, its kramdown source)
    /Work/Plan              children of "Plan" (directory)
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from siyuanfs.events import EventBus, EventType, FileEvent

from .cache import TTLCache
from .client import SiyuanClient
from .config import CacheConfig
from .exceptions import (
    ApiError,
    AuthenticationError,
    FileNotFound,
    FileSystemError,
    NetworkError,
    NoPermissions,
    PathNotFoundError,
    PermissionDeniedError,
    Unavailable,
    UnsupportedOperationError,
    ValidationError,
)
from .registry import NotebookRegistry
from .resolver import PathResolver
from .types import DeleteResult, FileInfo, ListResult, WriteResult
from .utils import (
    DOCUMENT_SUFFIX,
    document_name,
    hpath_for,
    is_document_name,
    join_path,
    normalize_path,
    path_segments,
    split_path,
    strip_document_suffix,
)
from .watch import ChangeNotifier

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    import httpx

    from siyuanfs.models.wire import DocEntry, Notebook

    from .config import ConnectionConfig
    from .types import ResolvedPath
    from .watch import BatchHandler, Watch

logger = logging.getLogger(__name__)


@contextmanager
def _translated(path: str) -> Iterator[None]:
    """Re-raise remote and resolver errors as host filesystem errors."""
    try:
        yield
    except FileSystemError:
        raise
    except PathNotFoundError as err:
        raise FileNotFound(str(err), path) from err
    except (AuthenticationError, PermissionDeniedError) as err:
        raise NoPermissions(str(err), path) from err
    except (NetworkError, ValidationError, ApiError) as err:
        raise Unavailable(str(err), path) from err


class SiyuanFileSystem:
    """Virtual filesystem over one remote SiYuan instance.

    Owns the instance's client, notebook registry, path resolver and
    content/metadata cache; none of them are shared with other instances.
    Cache keys are ``("stat", path)`` and ``("content", path)`` where
    *path* is the normalized virtual path.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        cache_config: CacheConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.cache_config = cache_config or CacheConfig()
        self._transport = transport

        self._client = SiyuanClient(config, transport=transport)
        self._registry = NotebookRegistry(self._client)
        self._resolver = PathResolver(
            self._client, self._registry, ttl=self.cache_config.ttl, clock=clock
        )
        self._cache = TTLCache(self.cache_config.ttl, clock=clock)
        self._generation = 0
        self._notifier = ChangeNotifier(self.cache_config.flush_delay)
        self._events = EventBus()
        self._events.register(None, self._notifier.handle)

    @property
    def client(self) -> SiyuanClient:
        return self._client

    @property
    def registry(self) -> NotebookRegistry:
        return self._registry

    @property
    def resolver(self) -> PathResolver:
        return self._resolver

    @property
    def cache(self) -> TTLCache:
        return self._cache

    @property
    def notifier(self) -> ChangeNotifier:
        return self._notifier

    @property
    def events(self) -> EventBus:
        """Bus receiving every change made through this instance."""
        return self._events

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Start the periodic cache sweepers on the running loop."""
        self._cache.start_sweeper(self.cache_config.sweep_interval)
        self._resolver.start_sweeper(self.cache_config.sweep_interval)

    async def close(self) -> None:
        """Stop sweepers, flush pending change events, close the HTTP client."""
        await self._cache.stop_sweeper()
        await self._resolver.stop_sweeper()
        await self._notifier.close()
        await self._client.close()

    async def __aenter__(self) -> SiyuanFileSystem:
        await self.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    def clear_cache(self) -> None:
        """Forget cached content, metadata, identifier lookups and notebooks."""
        self._cache.clear()
        self._generation += 1
        self._resolver.clear()
        self._registry.clear()

    async def update_config(self, config: ConnectionConfig) -> None:
        """Switch to a new connection; everything cached is dropped."""
        old = self._client
        self.config = config
        self._client = SiyuanClient(config, transport=self._transport)
        self._registry.bind(self._client)
        self._resolver.bind(self._client)
        self._cache.clear()
        self._generation += 1
        await old.close()
        logger.info("Reconfigured SiYuan connection to %s", config.base_url)

    async def test_connection(self) -> bool:
        return await self._client.test_connection()

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def stat(self, path: str) -> FileInfo:
        """Metadata for *path*.

        Root and notebook roots are synthesized from the notebook listing.
        Document form is a file; container form is a directory, including
        when the document has no children.
        """
        path = normalize_path(path)
        if path == "/":
            return FileInfo(path="/", name="", is_directory=True)

        key = ("stat", path)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        generation = self._generation
        with _translated(path):
            resolved = await self._resolver.resolve(path)
            if resolved.is_notebook_root:
                notebook = await self._registry.get(resolved.notebook_name)
                info = self._notebook_info(notebook)
            else:
                entry = await self._find_entry(resolved)
                info = self._entry_info(path, entry, resolved)

        if generation == self._generation:
            self._cache.set(key, info)
        return info

    async def exists(self, path: str) -> bool:
        try:
            await self.stat(path)
        except FileNotFound:
            return False
        return True

    async def list_dir(self, path: str = "/") -> ListResult:
        """Children of a root, notebook or container path.

        Every child document appears as a file ``<name>.sy``; children that
        have children of their own also appear as a directory ``<name>``.
        """
        path = normalize_path(path)
        if path == "/":
            with _translated(path):
                return await self._list_root()

        with _translated(path):
            resolved = await self._resolver.resolve(path)
            if not resolved.is_container:
                raise PathNotFoundError(f"Not a directory: {path}")
            listing = await self._client.list_docs_by_path(resolved.notebook_id, resolved.path)

        entries: list[FileInfo] = []
        for doc in listing.files:
            entries.append(self._document_info(path, doc, resolved.notebook_id))
            if doc.has_children:
                name = doc.display_name
                entries.append(
                    FileInfo(
                        path=join_path(path, name),
                        name=name,
                        is_directory=True,
                        created_at=doc.created_at,
                        updated_at=doc.updated_at,
                        block_id=doc.id,
                        notebook_id=resolved.notebook_id,
                        has_children=True,
                    )
                )

        return ListResult(
            path=path,
            entries=entries,
            message=f"Found {len(listing.files)} document(s)",
        )

    async def _list_root(self) -> ListResult:
        notebooks = await self._registry.list_notebooks()
        entries = [self._notebook_info(nb) for nb in notebooks]
        return ListResult(path="/", entries=entries, message=f"Found {len(entries)} notebook(s)")

    async def list_documents(self, limit: int | None = 200) -> ListResult:
        """Top-level documents of every open notebook, as one flat listing.

        Entries are document-form files at ``/<notebook>/<name>.sy``, in
        notebook order.  At most *limit* entries are returned; ``None``
        returns all of them.
        """
        with _translated("/"):
            notebooks = await self._registry.list_notebooks()
            listings = await asyncio.gather(
                *(self._client.list_docs_by_path(nb.id, "/") for nb in notebooks)
            )

        entries = [
            self._document_info("/" + nb.name, doc, nb.id)
            for nb, listing in zip(notebooks, listings, strict=True)
            for doc in listing.files
        ]
        if limit is not None and len(entries) > limit:
            logger.debug("Truncating document listing from %d to %d", len(entries), limit)
            entries = entries[:limit]
        return ListResult(
            path="/",
            entries=entries,
            message=f"Found {len(entries)} document(s) in {len(notebooks)} notebook(s)",
        )

    async def read(self, path: str) -> bytes:
        """UTF-8 kramdown source of the document at *path*."""
        path = normalize_path(path)
        key = ("content", path)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        segments = path_segments(path)
        if len(segments) < 2 or not is_document_name(segments[-1]):
            raise FileNotFound(f"Not a document: {path}", path)

        generation = self._generation
        with _translated(path):
            resolved = await self._resolver.resolve(path)
            assert resolved.block_id is not None
            block = await self._client.get_block_kramdown(resolved.block_id)

        data = block.kramdown.encode("utf-8")
        if generation == self._generation:
            self._cache.set(key, data)
        return data

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def write(self, path: str, content: bytes | str) -> WriteResult:
        """Replace the whole content of an existing document.

        The new content is written through to the cache only after the
        remote update succeeds.  Documents are never created here.
        """
        path = normalize_path(path)
        segments = path_segments(path)
        if len(segments) < 2 or not is_document_name(segments[-1]):
            raise NoPermissions(f"Only documents can be written: {path}", path)

        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        try:
            markdown = data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise NoPermissions(f"Content is not valid UTF-8: {path}", path) from err

        with _translated(path):
            resolved = await self._resolver.resolve(path)
            assert resolved.block_id is not None
            await self._client.update_block(resolved.block_id, markdown)

        self._cache.set(("content", path), data)
        self._cache.delete(("stat", path))
        self._cache.delete(("stat", strip_document_suffix(path)))
        logger.debug("Wrote %d bytes to %s (%s)", len(data), path, resolved.block_id)

        await self._emit(
            FileEvent(
                event_type=EventType.FILE_CHANGED,
                path=path,
                content=markdown,
                block_id=resolved.block_id,
                notebook_id=resolved.notebook_id,
            )
        )
        return WriteResult(
            file_path=path,
            size_bytes=len(data),
            message=f"Wrote {len(data)} bytes",
            block_id=resolved.block_id,
            notebook_id=resolved.notebook_id,
        )

    async def delete(self, path: str) -> DeleteResult:
        """Remove the document at *path* together with its children.

        The container form addresses the same document and deletes it too.
        """
        path = normalize_path(path)
        segments = path_segments(path)
        if len(segments) < 2:
            raise NoPermissions(f"Cannot delete a notebook or the root: {path}", path)

        with _translated(path):
            resolved = await self._resolver.resolve(path)
            assert resolved.block_id is not None
            await self._client.remove_doc_by_id(resolved.block_id)

        self._evict(path)
        self._resolver.invalidate(resolved.notebook_id, hpath_for(segments[1:]))
        logger.debug("Deleted %s (%s)", path, resolved.block_id)

        doc_path = document_name(path)
        await self._emit(
            FileEvent(
                event_type=EventType.FILE_DELETED,
                path=doc_path,
                block_id=resolved.block_id,
                notebook_id=resolved.notebook_id,
            )
        )
        return DeleteResult(
            file_path=doc_path,
            message=f"Deleted {doc_path}",
            block_id=resolved.block_id,
            notebook_id=resolved.notebook_id,
        )

    async def mkdir(self, path: str) -> None:
        raise UnsupportedOperationError(
            f"Creating directories is not supported: {normalize_path(path)}", path
        )

    async def move(self, src: str, dest: str) -> None:
        raise UnsupportedOperationError(
            f"Moving or renaming is not supported: {normalize_path(src)} -> {normalize_path(dest)}",
            src,
        )

    # ------------------------------------------------------------------
    # Notebooks
    # ------------------------------------------------------------------

    async def open_notebook(self, name: str) -> None:
        with _translated("/" + name):
            notebook = await self._registry.get(name)
            await self._client.open_notebook(notebook.id)
            await self._registry.refresh()

    async def close_notebook(self, name: str) -> None:
        with _translated("/" + name):
            notebook = await self._registry.get(name)
            await self._client.close_notebook(notebook.id)
            await self._registry.refresh()
        self._evict("/" + name)
        self._resolver.invalidate(notebook.id)

    # ------------------------------------------------------------------
    # Change events
    # ------------------------------------------------------------------

    def watch(
        self,
        path: str,
        handler: BatchHandler,
        *,
        recursive: bool = True,
        excludes: Iterable[str] = (),
    ) -> Watch:
        """Call *handler* with batches of changes made through this instance."""
        return self._notifier.watch(path, handler, recursive=recursive, excludes=excludes)

    async def _emit(self, event: FileEvent) -> None:
        await self._events.emit(event)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _find_entry(self, resolved: ResolvedPath) -> DocEntry:
        listing = await self._client.list_docs_by_path(resolved.notebook_id, resolved.parent_path)
        for entry in listing.files:
            if entry.id == resolved.block_id:
                return entry
        raise PathNotFoundError(f"Document {resolved.block_id} is not listed under its parent")

    def _evict(self, path: str) -> None:
        """Drop cached content and metadata for both forms of *path* and below."""
        container = strip_document_suffix(path)
        forms = {container, document_name(container)}
        prefix = container + "/"
        self._cache.delete_where(
            lambda key: isinstance(key, tuple) and (key[1] in forms or key[1].startswith(prefix))
        )
        parent = split_path(container)[0]
        if parent != "/":
            self._cache.delete(("stat", parent))
            self._cache.delete(("stat", document_name(parent)))

    @staticmethod
    def _notebook_info(notebook: Notebook) -> FileInfo:
        return FileInfo(
            path="/" + notebook.name,
            name=notebook.name,
            is_directory=True,
            created_at=notebook.created_at,
            updated_at=notebook.created_at,
            notebook_id=notebook.id,
            has_children=True,
        )

    @staticmethod
    def _document_info(parent: str, doc: DocEntry, notebook_id: str) -> FileInfo:
        file_name = doc.display_name + DOCUMENT_SUFFIX
        return FileInfo(
            path=join_path(parent, file_name),
            name=file_name,
            is_directory=False,
            size_bytes=doc.size,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
            block_id=doc.id,
            notebook_id=notebook_id,
            has_children=doc.has_children,
        )

    @staticmethod
    def _entry_info(path: str, entry: DocEntry, resolved: ResolvedPath) -> FileInfo:
        return FileInfo(
            path=path,
            name=split_path(path)[1],
            is_directory=resolved.is_container,
            size_bytes=0 if resolved.is_container else entry.size,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            block_id=entry.id,
            notebook_id=resolved.notebook_id,
            has_children=entry.has_children,
        )
