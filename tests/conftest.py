"""Shared fixtures: a scripted Docker CLI and a scripted Trivy CLI."""

import fnmatch
import posixpath
import re
import shlex
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

from apisix_validator.engine.docker_engine import CommandResult, DockerEngine
from apisix_validator.errors import EngineError
from apisix_validator.scanners.trivy import TrivyScanner
from apisix_validator.utils.config import Config, EngineConfig

CONTAINER_ID = "f3a1c2d4e5b6" + "0" * 52

GLIBC_LDD = (
    "\tlinux-vdso.so.1 (0x00007ffd)\n"
    "\tlibpcre.so.3 => /lib/x86_64-linux-gnu/libpcre.so.3 (0x00007f01)\n"
    "\tlibc.so.6 => /lib/x86_64-linux-gnu/libc.so.6 (0x00007f02)\n"
    "\t/lib64/ld-linux-x86-64.so.2 (0x00007f03)\n"
)

HEALTHY_FILES = {
    "/usr/local/apisix",
    "/usr/local/openresty",
    "/usr/local/openresty/nginx/sbin/nginx",
    "/usr/local/openresty/luajit/bin/luajit",
    "/usr/bin/apisix",
    "/docker-entrypoint.sh",
}


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(code=0, stdout=stdout)


def failed(code: int = 1, stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(code=code, stdout=stdout, stderr=stderr)


class FakeDockerEngine(DockerEngine):
    """
    DockerEngine whose ``docker`` invocations are answered from an in-memory image.
    """

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        super().__init__(config or EngineConfig(settle_seconds=0))
        self.daemon_up = True
        self.images: Set[str] = {"genesis-apisix:local-test"}
        self.files: Set[str] = set(HEALTHY_FILES)
        self.library_files: List[str] = [
            "/lib/x86_64-linux-gnu/libpcre.so.3",
            "/usr/lib/x86_64-linux-gnu/libyaml-0.so.2",
        ]
        self.file_types: Dict[str, str] = {"/usr/bin/apisix": "Bourne-Again shell script, ASCII text executable"}
        self.ldd: Dict[str, CommandResult] = {}
        self.version = ok("APISIX version 3.15.0\n")
        self.running = True
        self.container_logs = ""
        self.build_ok = True
        self.raise_on: Set[str] = set()
        self.calls: List[Tuple[str, ...]] = []
        self.removed: List[str] = []

    def _exec(self, args: Sequence[str], timeout=None, capture: bool = True) -> CommandResult:
        args = tuple(args)
        self.calls.append(args)
        sub = args[0]
        if sub in self.raise_on:
            raise EngineError(f"docker {sub} timed out")

        if sub == "info":
            return ok("Server Version: 27.0") if self.daemon_up else failed(stderr="Cannot connect")
        if sub == "image":
            return ok("[]") if args[2] in self.images else failed(stderr="No such image")
        if sub == "images":
            if len(args) > 1:
                return ok("512MB\n")
            rows = ["REPOSITORY   TAG   IMAGE ID"] + [f"{i.split(':')[0]}   {i.split(':')[1]}   abc" for i in self.images]
            return ok("\n".join(rows))
        if sub == "build":
            return ok() if self.build_ok else failed()
        if sub == "run" and args[1] == "--rm":
            return self._run_in_image(args[3:])
        if sub == "run" and args[1] == "-d":
            return ok(CONTAINER_ID + "\n")
        if sub == "ps":
            return ok(CONTAINER_ID[:12] + "\n") if self.running else ok("")
        if sub == "logs":
            return ok(self.container_logs)
        if sub == "rm":
            self.removed.append(args[2])
            return ok(args[2])
        raise AssertionError(f"unexpected docker call: {args}")

    def _run_in_image(self, command: Sequence[str]) -> CommandResult:
        program = command[0]
        if program == "test":
            return ok() if command[2] in self.files else failed()
        if program == "sh":
            pattern = shlex.split(re.search(r"-name (\S+)", command[2]).group(1))[0]
            matches = [p for p in self.library_files if fnmatch.fnmatch(posixpath.basename(p), pattern)]
            return ok(matches[0] + "\n" if matches else "")
        if program == "file":
            return ok(self.file_types.get(command[2], "ELF 64-bit LSB pie executable, x86-64") + "\n")
        if program == "ldd":
            return self.ldd.get(command[1], ok(GLIBC_LDD))
        if program == "apisix":
            if isinstance(self.version, EngineError):
                raise self.version
            return self.version
        raise AssertionError(f"unexpected container command: {command}")

    def container_commands(self, program: str) -> List[Tuple[str, ...]]:
        return [c[3:] for c in self.calls if c[:2] == ("run", "--rm") and c[3] == program]


class FakeTrivyScanner(TrivyScanner):
    def __init__(self, installed: bool = True, result: Optional[CommandResult] = None) -> None:
        super().__init__()
        self.installed = installed
        self.result = result or ok("genesis-apisix:local-test (alpine 3.20)\nTotal: 0 (HIGH: 0, CRITICAL: 0)\n")
        self.commands: List[List[str]] = []

    def is_available(self) -> bool:
        return self.installed

    def _run(self, args: List[str]) -> CommandResult:
        self.commands.append(args)
        return self.result


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch) -> FakeDockerEngine:
    monkeypatch.setattr(
        "apisix_validator.engine.docker_engine.shutil.which",
        lambda name: "/usr/bin/docker" if name == "docker" else None,
    )
    return FakeDockerEngine()


@pytest.fixture
def scanner() -> FakeTrivyScanner:
    return FakeTrivyScanner()


@pytest.fixture
def config() -> Config:
    return Config(engine=EngineConfig(settle_seconds=0))


@pytest.fixture
def image() -> str:
    return "genesis-apisix:local-test"
