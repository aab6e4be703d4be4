from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Tuple
import datetime as dt

HEALTHY = "healthy"
ZOMBIE = "zombie"
STOPPED = "stopped"
HIGH_CPU = "high-cpu"
HIGH_MEM = "high-mem"


class ProcessNotFound(LookupError):
    """Raised by a process reader when a PID cannot be read."""

    def __init__(self, pid: int, reason: str = ""):
        self.pid = pid
        self.reason = reason
        msg = f"cannot read process {pid}"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class TargetError(Exception):
    """Raised when a name or port cannot be resolved to exactly one PID."""

    def __init__(self, message: str, candidates: Tuple[Tuple[int, str], ...] = ()):
        super().__init__(message)
        self.candidates = candidates


class ProcessLike(Protocol):
    """Read-only view of a process used by ancestry, detection and warnings."""

    @property
    def pid(self) -> int: ...
    @property
    def ppid(self) -> int: ...
    @property
    def command(self) -> str: ...
    @property
    def cmdline(self) -> str: ...
    @property
    def user(self) -> str: ...
    @property
    def working_dir(self) -> str: ...
    @property
    def bind_addresses(self) -> Tuple[str, ...]: ...
    @property
    def health(self) -> str: ...
    @property
    def container(self) -> str: ...
    @property
    def started_at(self) -> Optional[dt.datetime]: ...


@dataclass(frozen=True)
class Process:
    pid: int
    ppid: int = 0
    command: str = ""              # short name (comm)
    cmdline: str = ""
    user: str = ""
    started_at: Optional[dt.datetime] = None
    working_dir: str = ""
    git_repo: str = ""
    git_branch: str = ""
    container: str = ""            # docker, containerd, kubernetes or ""
    listening_ports: Tuple[int, ...] = ()
    bind_addresses: Tuple[str, ...] = ()   # index-aligned with listening_ports
    health: str = HEALTHY
    env: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "PID": self.pid,
            "PPID": self.ppid,
            "Command": self.command,
            "Cmdline": self.cmdline,
            "User": self.user,
            "StartedAt": self.started_at.isoformat() if self.started_at else None,
            "WorkingDir": self.working_dir,
            "GitRepo": self.git_repo,
            "GitBranch": self.git_branch,
            "Container": self.container,
            "ListeningPorts": list(self.listening_ports),
            "BindAddresses": list(self.bind_addresses),
            "Health": self.health,
            "Env": list(self.env),
        }


class SourceType(str, Enum):
    CONTAINER = "container"
    SYSTEMD = "systemd"
    LAUNCHD = "launchd"
    SUPERVISOR = "supervisor"
    CRON = "cron"
    SHELL = "shell"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Source:
    type: SourceType
    name: str
    confidence: float
    details: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence out of range: {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Type": self.type.value,
            "Name": self.name,
            "Confidence": self.confidence,
            "Details": dict(self.details),
        }


def now_utc() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(ts: dt.datetime) -> dt.datetime:
    """Naive timestamps are taken to be UTC."""
    return ts.replace(tzinfo=dt.timezone.utc) if ts.tzinfo is None else ts
