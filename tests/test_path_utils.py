"""Tests for path helpers."""

import pytest

from analyzers.path_utils import (
    count_segments,
    join_paths,
    normalize_mount_prefix,
    normalize_path,
    strip_extension,
)


class TestNormalizePath:
    """Test normalize_path."""

    @pytest.mark.parametrize("raw, expected", [
        ("", "/"),
        ("/", "/"),
        ("users", "/users"),
        ("/users", "/users"),
        ("//api///v1//users", "/api/v1/users"),
        ("api/v1/", "/api/v1/"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize("raw", ["", "a//b", "/x/", "///", ":id"])
    def test_idempotent(self, raw):
        once = normalize_path(raw)
        assert normalize_path(once) == once
        assert once.startswith("/")
        assert "//" not in once


class TestNormalizeMountPrefix:
    """Test normalize_mount_prefix."""

    def test_root_is_empty(self):
        assert normalize_mount_prefix("") == ""
        assert normalize_mount_prefix("/") == ""

    def test_regular_prefix(self):
        assert normalize_mount_prefix("api//v1") == "/api/v1"
        assert normalize_mount_prefix("/api/v1/") == "/api/v1"
        assert normalize_mount_prefix("//") == ""


class TestJoinPaths:
    """Test join_paths."""

    def test_join_prefix_and_route(self):
        assert join_paths("/api", "/v1/things") == "/api/v1/things"

    def test_empty_prefix(self):
        assert join_paths("", "things") == "/things"

    def test_empty_route(self):
        assert join_paths("/api/", "") == "/api/"

    def test_both_empty(self):
        assert join_paths("", "") == "/"

    def test_extra_slashes(self):
        assert join_paths("/api/", "/users") == "/api/users"
        assert join_paths("api//", "//users//list") == "/api/users/list"


class TestStripExtension:
    """Test strip_extension."""

    @pytest.mark.parametrize("path", [
        "/p/routes/users.js",
        "/p/routes/users.ts",
        "/p/routes/users.TSX",
        "/p/routes/users.mjs",
        "/p/routes/users.cts",
    ])
    def test_source_extensions(self, path):
        assert strip_extension(path) == "/p/routes/users"

    def test_other_extensions_kept(self):
        assert strip_extension("/p/routes/users.json") == "/p/routes/users.json"
        assert strip_extension("/p/routes/users") == "/p/routes/users"


def test_count_segments():
    assert count_segments("") == 0
    assert count_segments("/") == 0
    assert count_segments("/api/v1/users") == 3
