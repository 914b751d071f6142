from pathlib import Path

import pytest

from grpcsys.errors import HeaderScanError
from grpcsys.headers import scan_headers


def test_scan_selects_marked_headers_sorted(source_tree: Path) -> None:
    include = source_tree / "grpc" / "include"
    (include / "grpc" / "byte_buffer.h").write_text("GRPCAPI int f(void);\n", encoding="utf-8")

    headers = scan_headers(include)

    assert [path.relative_to(include).as_posix() for path in headers] == [
        "grpc/byte_buffer.h",
        "grpc/grpc.h",
        "grpc/support/log.h",
    ]


def test_scan_skips_symlinked_headers(source_tree: Path) -> None:
    include = source_tree / "grpc" / "include"
    (include / "grpc" / "alias.h").symlink_to(include / "grpc" / "grpc.h")

    headers = scan_headers(include)

    assert "alias.h" not in [path.name for path in headers]
    assert include / "grpc" / "grpc.h" in headers


def test_scan_is_stable_and_duplicate_free(source_tree: Path) -> None:
    include = source_tree / "grpc" / "include"

    first = scan_headers(include)
    second = scan_headers(include)

    assert first == second
    assert len(set(first)) == len(first)
    assert list(first) == sorted(first, key=lambda p: p.as_posix())


def test_scan_honours_custom_markers(source_tree: Path) -> None:
    include = source_tree / "grpc" / "include"

    headers = scan_headers(include, markers=("internal",))

    assert [path.name for path in headers] == ["impl.h"]


def test_scan_fails_on_non_utf8_header(source_tree: Path) -> None:
    include = source_tree / "grpc" / "include"
    bad = include / "grpc" / "latin1.h"
    bad.write_bytes(b"/* caf\xe9 */ GRPCAPI\n")

    with pytest.raises(HeaderScanError) as excinfo:
        scan_headers(include)

    assert excinfo.value.context["path"] == str(bad)


def test_scan_fails_on_missing_include_dir(tmp_path: Path) -> None:
    with pytest.raises(HeaderScanError) as excinfo:
        scan_headers(tmp_path / "include")

    assert excinfo.value.code == "E_HEADER_SCAN"
