"""
Git smart HTTP transport: service names, pkt-line framing and the executor
that runs upload-pack / receive-pack in advertise or stateless-rpc mode.
"""

import logging
from enum import Enum
from typing import Protocol

from githost.exceptions import UnexpectedServiceError
from githost.services.process import GitProcess, spawn_git
from githost.services.repository import HostedRepository

logger = logging.getLogger(__name__)

FLUSH_PKT = b"0000"

# Git clients put the git- prefixed program name on the wire
WIRE_PREFIX = "git-"

PROTOCOL_ENV = {"GIT_PROTOCOL": "version=2"}


class Service(str, Enum):
    UPLOAD_PACK = "upload-pack"
    RECEIVE_PACK = "receive-pack"


def parse_service(name: str | None) -> Service:
    """Map a requested service name to a Service, accepting the git- prefixed form."""
    if name is None:
        raise UnexpectedServiceError("")
    candidate = name[len(WIRE_PREFIX):] if name.startswith(WIRE_PREFIX) else name
    try:
        return Service(candidate)
    except ValueError:
        raise UnexpectedServiceError(name) from None


def pkt_line(data: bytes) -> bytes:
    """Encode data as a git pkt-line."""
    length = len(data) + 4  # +4 for the length prefix itself
    return f"{length:04x}".encode() + data


def service_prelude(service_name: str) -> bytes:
    """The '# service=...' announcement and flush that open an info/refs response."""
    return pkt_line(f"# service={service_name}\n".encode()) + FLUSH_PKT


class TransportExecutor(Protocol):
    """Runs a transport service for a hosted repository."""

    async def advertise(self, repo: HostedRepository, service: Service) -> GitProcess:
        ...

    async def stateless_rpc(self, repo: HostedRepository, service: Service) -> GitProcess:
        ...


class GitTransport:
    """TransportExecutor backed by the git executable."""

    def __init__(self, git_executable: str = "git"):
        self.git_executable = git_executable

    def command(self, service: Service, advertise_refs: bool) -> list[str]:
        args = [self.git_executable, service.value, "--stateless-rpc"]
        if advertise_refs:
            args.append("--advertise-refs")
        args.append(".")
        return args

    async def _spawn(self, repo: HostedRepository, service: Service, advertise_refs: bool) -> GitProcess:
        logger.debug(f"calling service {service.value} (advertise={advertise_refs}) for {repo.full_path}")
        return await spawn_git(
            self.command(service, advertise_refs),
            cwd=repo.full_path,
            debug=repo.debug,
            extra_env=PROTOCOL_ENV,
            stdin=not advertise_refs,
        )

    async def advertise(self, repo: HostedRepository, service: Service) -> GitProcess:
        return await self._spawn(repo, service, advertise_refs=True)

    async def stateless_rpc(self, repo: HostedRepository, service: Service) -> GitProcess:
        return await self._spawn(repo, service, advertise_refs=False)
