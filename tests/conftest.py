from pathlib import Path

import pytest

from treeserve.bridge import Bridge
from treeserve.bridge import run as bridge
from treeserve.config import ServerConfig
from treeserve.resolver import ResolvedTarget, TargetKind
from treeserve.services.files import FileService
from treeserve.utils.logging import getLevel, setLevel


class Response:
    """A raw HTTP response split into its parts."""

    def __init__(self, payload: bytes):
        head, _, self.body = payload.partition(b"\r\n\r\n")
        lines = head.decode("latin-1").split("\r\n")
        protocol, status, *message = lines[0].split(" ", 2)
        self.protocol: str = protocol
        self.status: int = int(status)
        self.message: str = message[0] if message else ""
        self.headers: dict[str, str] = dict(_.split(": ", 1) for _ in lines[1:])

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


@pytest.fixture(autouse=True)
def logLevel():
    level = getLevel()
    yield level
    setLevel(level)


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """A small tree with documents, raw files and directories."""
    res = tmp_path / "root"
    res.mkdir()
    (res / "readme.md").write_text("# Hi\n")
    (res / "notes.txt").write_text("plain notes\n")
    (res / "data.bin").write_bytes(bytes(range(256)) * 64)
    (res / "empty").mkdir()
    (res / "docs").mkdir()
    (res / "docs" / "guide.markdown").write_text("## Guide\n\nSee [home](/).\n")
    (res / "docs" / "a b.txt").write_text("spaced")
    (res / "docs" / "inner").mkdir()
    (tmp_path / "secret.txt").write_text("outside of the root")
    return res.resolve()


@pytest.fixture
def config(root: Path) -> ServerConfig:
    return ServerConfig.Make(root)


@pytest.fixture
def server(config: ServerConfig) -> Bridge:
    return bridge(FileService(config))


def get(server: Bridge, path: str, method: str = "GET") -> Response:
    return Response(server.get(path, method))


def target(root: Path, relative: str = "") -> ResolvedTarget:
    path = root.joinpath(relative) if relative else root
    return ResolvedTarget(
        path=path,
        kind=TargetKind.Directory if path.is_dir() else TargetKind.File,
        relative=relative,
    )


# EOF
