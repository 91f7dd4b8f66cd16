"""Tests for VFS — routing across mounted instances."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import pytest

from siyuanfs.events import EventBus, EventType, FileEvent
from siyuanfs.fs.config import CacheConfig, ConnectionConfig
from siyuanfs.fs.exceptions import FileNotFound, NoPermissions, UnsupportedOperationError
from siyuanfs.fs.mounts import MountConfig, MountRegistry
from siyuanfs.fs.permissions import Permission
from siyuanfs.fs.siyuan_fs import SiyuanFileSystem
from siyuanfs.fs.vfs import VFS

from conftest import FakeSiyuan

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture
def team_server() -> FakeSiyuan:
    fake = FakeSiyuan()
    fake.add_notebook("tnb", "Shared")
    fake.add_doc("t1", "tnb", "Roadmap", content="# Roadmap")
    return fake


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
async def vfs(
    config: ConnectionConfig,
    transport: httpx.MockTransport,
    team_server: FakeSiyuan,
    bus: EventBus,
) -> AsyncIterator[VFS]:
    registry = MountRegistry()
    cache_config = CacheConfig(flush_delay=0.001)
    registry.add_mount(
        MountConfig(
            mount_path="/personal",
            backend=SiyuanFileSystem(config, cache_config, transport=transport),
        )
    )
    registry.add_mount(
        MountConfig(
            mount_path="/team",
            backend=SiyuanFileSystem(
                config, cache_config, transport=httpx.MockTransport(team_server.handle)
            ),
            permission=Permission.READ_ONLY,
        )
    )
    router = VFS(registry, bus)
    yield router
    await router.close()


class TestReadRouting:
    async def test_root_lists_mounts(self, vfs: VFS) -> None:
        result = await vfs.list_dir("/")
        assert [(e.path, e.is_directory) for e in result.entries] == [
            ("/personal", True),
            ("/team", True),
        ]

    async def test_mount_root_lists_notebooks(self, vfs: VFS) -> None:
        result = await vfs.list_dir("/personal")
        assert [e.path for e in result.entries] == ["/personal/Work"]
        assert result.entries[0].mount_type == "siyuan"
        assert result.entries[0].permission == "read_write"

    async def test_list_nested(self, vfs: VFS) -> None:
        result = await vfs.list_dir("/personal/Work/Plan")
        assert [e.path for e in result.entries] == ["/personal/Work/Plan/Tasks.sy"]
        assert result.path == "/personal/Work/Plan"

    async def test_instances_are_independent(self, vfs: VFS) -> None:
        assert await vfs.read("/team/Shared/Roadmap.sy") == b"# Roadmap"
        assert await vfs.read("/personal/Work/Plan.sy") == b"# Plan"

    async def test_stat_prefixes_path(self, vfs: VFS) -> None:
        info = await vfs.stat("/team/Shared/Roadmap.sy")
        assert info.path == "/team/Shared/Roadmap.sy"
        assert info.permission == "read_only"

    async def test_stat_does_not_mutate_backend_cache(self, vfs: VFS) -> None:
        await vfs.stat("/personal/Work/Plan.sy")
        await vfs.stat("/personal/Work/Plan.sy")
        mount, _ = vfs._registry.resolve("/personal")
        assert (await mount.backend.stat("/Work/Plan.sy")).path == "/Work/Plan.sy"

    async def test_stat_mount(self, vfs: VFS) -> None:
        info = await vfs.stat("/team")
        assert info.is_directory
        assert info.name == "team"

    async def test_unknown_mount(self, vfs: VFS) -> None:
        with pytest.raises(FileNotFound):
            await vfs.read("/nope/Work/Plan.sy")
        assert not await vfs.exists("/nope")

    async def test_list_documents(self, vfs: VFS) -> None:
        result = await vfs.list_documents("team")
        assert result.path == "/team"
        assert [e.path for e in result.entries] == ["/team/Shared/Roadmap.sy"]
        assert result.entries[0].permission == "read_only"

    async def test_list_documents_unknown_mount(self, vfs: VFS) -> None:
        with pytest.raises(FileNotFound):
            await vfs.list_documents("/nope")

    async def test_exists(self, vfs: VFS) -> None:
        assert await vfs.exists("/")
        assert await vfs.exists("/personal/Work/Plan")
        assert not await vfs.exists("/personal/Work/Missing.sy")


class TestWriteRouting:
    async def test_write(self, vfs: VFS, server: FakeSiyuan) -> None:
        result = await vfs.write("/personal/Work/Plan.sy", "# Updated")
        assert result.file_path == "/personal/Work/Plan.sy"
        assert server.docs["d1"].content == "# Updated"

    async def test_read_only_mount_rejects_write(
        self, vfs: VFS, team_server: FakeSiyuan
    ) -> None:
        team_server.reset_calls()
        with pytest.raises(NoPermissions, match="read-only"):
            await vfs.write("/team/Shared/Roadmap.sy", "x")
        assert team_server.calls == []

    async def test_read_only_mount_rejects_delete(self, vfs: VFS) -> None:
        with pytest.raises(NoPermissions):
            await vfs.delete("/team/Shared/Roadmap.sy")

    async def test_delete(self, vfs: VFS, server: FakeSiyuan) -> None:
        result = await vfs.delete("/personal/Work/Notes")
        assert result.file_path == "/personal/Work/Notes.sy"
        assert "d3" not in server.docs

    async def test_mkdir_and_move_unsupported(self, vfs: VFS) -> None:
        with pytest.raises(UnsupportedOperationError):
            await vfs.mkdir("/personal/Work/New")
        with pytest.raises(UnsupportedOperationError):
            await vfs.move("/personal/Work/Plan.sy", "/personal/Work/Other.sy")

    @pytest.mark.parametrize("path", ["/", "/nomount/x", "/personal"])
    async def test_mkdir_unsupported_everywhere(self, vfs: VFS, path: str) -> None:
        with pytest.raises(UnsupportedOperationError):
            await vfs.mkdir(path)

    @pytest.mark.parametrize(
        ("src", "dest"),
        [
            ("/personal/Work/Plan.sy", "/nomount/x.sy"),
            ("/", "/personal/x"),
            ("/nomount/a.sy", "/team/Shared/b.sy"),
        ],
    )
    async def test_move_unsupported_everywhere(
        self, vfs: VFS, server: FakeSiyuan, src: str, dest: str
    ) -> None:
        server.reset_calls()
        with pytest.raises(UnsupportedOperationError):
            await vfs.move(src, dest)
        assert server.calls == []


class TestEvents:
    async def test_events_carry_full_paths(self, vfs: VFS, bus: EventBus) -> None:
        seen: list[FileEvent] = []

        async def handler(event: FileEvent) -> None:
            seen.append(event)

        bus.register(EventType.FILE_CHANGED, handler)
        bus.register(EventType.FILE_DELETED, handler)
        await vfs.write("/personal/Work/Plan.sy", "x")
        await vfs.delete("/personal/Work/Notes.sy")
        assert [(e.event_type, e.path, e.instance, e.block_id) for e in seen] == [
            (EventType.FILE_CHANGED, "/personal/Work/Plan.sy", "personal", "d1"),
            (EventType.FILE_DELETED, "/personal/Work/Notes.sy", "personal", "d3"),
        ]

    async def test_watch_sees_full_paths(self, vfs: VFS) -> None:
        batches: list[list[FileEvent]] = []

        async def handler(events: list[FileEvent]) -> None:
            batches.append(events)

        vfs.watch("/personal/Work", handler, excludes=["/personal/Work/Plan/*"])
        await vfs.write("/personal/Work/Plan.sy", "x")
        await vfs.write("/personal/Work/Plan/Tasks.sy", "y")
        await asyncio.sleep(0.05)
        paths = [e.path for batch in batches for e in batch]
        assert paths == ["/personal/Work/Plan.sy"]
        assert batches[0][0].instance == "personal"
