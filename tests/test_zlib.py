from pathlib import Path

import pytest

from grpcsys.zlib import patched_prefix_path, reconciled_prefix_path, zlib_link_dirs


def test_reconciled_prefix_path_appends_build_dir() -> None:
    assert reconciled_prefix_path(None, "/deps/z") == "/deps/z/build"
    assert reconciled_prefix_path("", "/deps/z") == "/deps/z/build"
    assert reconciled_prefix_path("/a;/b", "/deps/z") == "/a;/b;/deps/z/build"


def test_zlib_link_dirs_cover_build_output_then_lib() -> None:
    assert zlib_link_dirs("/deps/z") == (Path("/deps/z/build"), Path("/deps/z/lib"))


def test_patched_prefix_path_appends_dependency_roots_and_restores() -> None:
    environ = {"CMAKE_PREFIX_PATH": "/opt/prefix"}

    with patched_prefix_path(
        environ,
        "/deps/z",
        ["/deps/z", "/deps/openssl"],
        base="/opt/prefix",
    ) as value:
        assert value == "/opt/prefix;/deps/z/build;/deps/z;/deps/openssl"
        assert environ["CMAKE_PREFIX_PATH"] == value

    assert environ == {"CMAKE_PREFIX_PATH": "/opt/prefix"}


def test_patched_prefix_path_starts_from_base_not_live_value() -> None:
    environ = {"CMAKE_PREFIX_PATH": "/live/prefix"}

    with patched_prefix_path(environ, "/deps/z", base="/captured/prefix") as value:
        assert value == "/captured/prefix;/deps/z/build"

    assert environ["CMAKE_PREFIX_PATH"] == "/live/prefix"


def test_patched_prefix_path_removes_variable_it_introduced() -> None:
    environ: dict[str, str] = {}

    with patched_prefix_path(environ, "/deps/z"):
        assert environ["CMAKE_PREFIX_PATH"] == "/deps/z/build"

    assert "CMAKE_PREFIX_PATH" not in environ


def test_patched_prefix_path_restores_on_error() -> None:
    environ = {"CMAKE_PREFIX_PATH": "/opt/prefix"}

    with pytest.raises(RuntimeError):
        with patched_prefix_path(environ, "/deps/z"):
            raise RuntimeError("native build failed")

    assert environ["CMAKE_PREFIX_PATH"] == "/opt/prefix"
