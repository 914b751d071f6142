from pathlib import Path
from typing import Any

import pytest

from grpcsys.errors import NativeBuildError
from grpcsys.linkplan import LinkLibrary, LinkSearchPath
from grpcsys.pkgconfig import probe_library


class FakeResult:
    def __init__(self, stdout: str = "", returncode: int = 0, stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def test_probe_collects_include_and_link_metadata(monkeypatch: pytest.MonkeyPatch) -> None:
    outputs = {
        "--atleast-version=1.29.1": "",
        "--cflags-only-I": "-I/usr/local/include -I/usr/local/include/grpc\n",
        "--libs": "-L/usr/local/lib -lgrpc_unsecure -lgpr -pthread\n",
    }
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], **kwargs: Any) -> FakeResult:
        calls.append(cmd)
        return FakeResult(stdout=outputs[cmd[1]])

    monkeypatch.setattr("grpcsys.pkgconfig.shutil.which", lambda _: "/usr/bin/pkg-config")
    monkeypatch.setattr("grpcsys.pkgconfig.subprocess.run", fake_run)

    library = probe_library("grpc_unsecure")

    assert calls[0] == ["pkg-config", "--atleast-version=1.29.1", "grpc_unsecure"]
    assert library.include_paths == (Path("/usr/local/include"), Path("/usr/local/include/grpc"))
    assert library.libs == ("grpc_unsecure", "gpr")
    plan = library.link_plan()
    assert plan.search_paths == (LinkSearchPath(Path("/usr/local/lib")),)
    assert plan.libraries == (
        LinkLibrary("grpc_unsecure", kind="dylib"),
        LinkLibrary("gpr", kind="dylib"),
    )


def test_probe_fails_when_version_too_old(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("grpcsys.pkgconfig.shutil.which", lambda _: "/usr/bin/pkg-config")
    monkeypatch.setattr(
        "grpcsys.pkgconfig.subprocess.run",
        lambda *a, **kw: FakeResult(returncode=1, stderr="Requested 'grpc >= 1.29.1'"),
    )

    with pytest.raises(NativeBuildError) as excinfo:
        probe_library("grpc")

    assert "Can't find library grpc via pkg-config" in str(excinfo.value)
    assert excinfo.value.context["library"] == "grpc"


def test_probe_requires_pkg_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("grpcsys.pkgconfig.shutil.which", lambda _: None)

    with pytest.raises(NativeBuildError, match="pkg-config"):
        probe_library("grpc")
