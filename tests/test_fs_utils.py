"""Tests for fs/utils.py — path helpers, document/container naming, block ids."""

from __future__ import annotations

from datetime import datetime

import pytest

from siyuanfs.fs.utils import (
    block_id_time,
    document_name,
    hpath_for,
    is_document_name,
    join_path,
    normalize_path,
    path_segments,
    split_path,
    strip_document_suffix,
)

# ---------------------------------------------------------------------------
# Path Utilities
# ---------------------------------------------------------------------------


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("input_path", "expected"),
        [
            pytest.param("", "/", id="empty"),
            pytest.param("/", "/", id="root"),
            pytest.param("Work/Plan.sy", "/Work/Plan.sy", id="relative"),
            pytest.param("/Work//Plan", "/Work/Plan", id="double-slash"),
            pytest.param("//Work", "/Work", id="leading-double-slash"),
            pytest.param("/Work/../Home", "/Home", id="dotdot"),
            pytest.param("/Work/./Plan", "/Work/Plan", id="dot"),
            pytest.param("/Work/", "/Work", id="trailing-slash"),
            pytest.param("  /Work  ", "/Work", id="whitespace"),
        ],
    )
    def test_normalize(self, input_path: str, expected: str) -> None:
        assert normalize_path(input_path) == expected


class TestSplitPath:
    def test_document(self) -> None:
        assert split_path("/Work/Plan.sy") == ("/Work", "Plan.sy")

    def test_notebook(self) -> None:
        assert split_path("/Work") == ("/", "Work")

    def test_root(self) -> None:
        assert split_path("/") == ("/", "")


class TestPathSegments:
    def test_root_has_no_segments(self) -> None:
        assert path_segments("/") == []

    def test_nested(self) -> None:
        assert path_segments("/Work/Plan/Tasks.sy") == ["Work", "Plan", "Tasks.sy"]

    def test_normalizes_first(self) -> None:
        assert path_segments("Work//Plan/") == ["Work", "Plan"]


class TestJoinPath:
    def test_join(self) -> None:
        assert join_path("/Work", "Plan.sy") == "/Work/Plan.sy"

    def test_join_from_root(self) -> None:
        assert join_path("/", "Work") == "/Work"

    def test_ignores_empty_parts(self) -> None:
        assert join_path("/Work", "", "Plan") == "/Work/Plan"


# ---------------------------------------------------------------------------
# Document / Container Form
# ---------------------------------------------------------------------------


class TestDocumentNames:
    def test_is_document_name(self) -> None:
        assert is_document_name("Plan.sy")
        assert not is_document_name("Plan")
        assert not is_document_name(".sy")

    def test_strip_suffix(self) -> None:
        assert strip_document_suffix("Plan.sy") == "Plan"
        assert strip_document_suffix("Plan") == "Plan"

    def test_document_name(self) -> None:
        assert document_name("Plan") == "Plan.sy"
        assert document_name("Plan.sy") == "Plan.sy"

    def test_document_name_of_path(self) -> None:
        assert document_name("/Work/Plan") == "/Work/Plan.sy"


class TestHPathFor:
    def test_single(self) -> None:
        assert hpath_for(["Plan"]) == "/Plan"

    def test_document_suffix_dropped(self) -> None:
        assert hpath_for(["Plan", "Tasks.sy"]) == "/Plan/Tasks"

    def test_document_and_container_agree(self) -> None:
        assert hpath_for(["Plan.sy"]) == hpath_for(["Plan"])


class TestBlockIdTime:
    def test_parses_prefix(self) -> None:
        assert block_id_time("20240705122434-xzm9uhi") == datetime(2024, 7, 5, 12, 24, 34)

    @pytest.mark.parametrize(
        "block_id",
        [
            pytest.param("d1", id="short"),
            pytest.param("20241399999999-abc", id="invalid-date"),
            pytest.param("2024070512243-abc", id="wrong-length"),
            pytest.param("20240705122434", id="no-dash"),
        ],
    )
    def test_malformed_returns_none(self, block_id: str) -> None:
        assert block_id_time(block_id) is None
