from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import datetime as dt

import psutil

from .config import DEFAULT_CONFIG
from .models import (
    HEALTHY, HIGH_CPU, HIGH_MEM, STOPPED, ZOMBIE,
    Process, ProcessNotFound, TargetError,
)
from .network import Listener, find_pid_by_port, get_process_listeners
from .utils import is_dir, read_text

PROC_ATTRS = [
    "ppid", "name", "cmdline", "username", "create_time",
    "cwd", "status", "cpu_times", "memory_info", "environ",
]

CGROUP_RUNTIMES = (
    ("docker", "docker"),
    ("containerd", "containerd"),
    ("kubepods", "kubernetes"),
)


def container_runtime(pid: int) -> str:
    cgroup = read_text(Path(f"/proc/{pid}/cgroup"))
    for marker, runtime in CGROUP_RUNTIMES:
        if marker in cgroup:
            return runtime
    return ""


def find_git_root(cwd: str) -> Optional[Path]:
    if not cwd:
        return None
    path = Path(cwd)
    for candidate in (path, *path.parents):
        if str(candidate) == "/":
            break
        if is_dir(candidate / ".git"):
            return candidate
    return None


def read_git_branch(repo_root: Path) -> str:
    head = read_text(repo_root / ".git" / "HEAD").strip()
    prefix = "ref: refs/heads/"
    return head[len(prefix):] if head.startswith(prefix) else ""


def health_label(info: Dict[str, Any], cfg: Dict[str, Any]) -> str:
    """Single health label; resource checks override the state check."""
    health = HEALTHY
    status = info.get("status")
    if status == psutil.STATUS_ZOMBIE:
        health = ZOMBIE
    elif status in (psutil.STATUS_STOPPED, psutil.STATUS_TRACING_STOP):
        health = STOPPED

    cpu = info.get("cpu_times")
    if cpu is not None and cpu.user + cpu.system > cfg["high_cpu_seconds"]:
        health = HIGH_CPU
    mem = info.get("memory_info")
    if mem is not None and mem.rss > cfg["high_mem_bytes"]:
        health = HIGH_MEM
    return health


def read_process(pid: int, cfg: Dict[str, Any] | None = None,
                 inode_map: Dict[str, Listener] | None = None) -> Process:
    """Snapshot one process. Attributes the OS refuses to reveal are left empty."""
    cfg = cfg or DEFAULT_CONFIG
    if pid <= 0:
        raise ProcessNotFound(pid, "invalid pid")
    try:
        proc = psutil.Process(pid)
        info = proc.as_dict(attrs=PROC_ATTRS, ad_value=None)
    except psutil.NoSuchProcess:
        raise ProcessNotFound(pid, "no such process")
    except psutil.AccessDenied:
        raise ProcessNotFound(pid, "access denied")

    created = info.get("create_time")
    started_at = dt.datetime.fromtimestamp(created, dt.timezone.utc) if created else None
    cwd = info.get("cwd") or ""
    git_root = find_git_root(cwd)
    listeners = get_process_listeners(pid, inode_map)
    environ = info.get("environ") or {}

    return Process(
        pid=pid,
        ppid=info.get("ppid") or 0,
        command=info.get("name") or "",
        cmdline=" ".join(info.get("cmdline") or []).strip(),
        user=info.get("username") or "",
        started_at=started_at,
        working_dir=cwd,
        git_repo=git_root.name if git_root else "",
        git_branch=read_git_branch(git_root) if git_root else "",
        container=container_runtime(pid),
        listening_ports=tuple(port for _, port in listeners),
        bind_addresses=tuple(addr for addr, _ in listeners),
        health=health_label(info, cfg),
        env=tuple(f"{k}={v}" for k, v in environ.items()),
    )


def get_cmdline(pid: int) -> str:
    try:
        return " ".join(psutil.Process(pid).cmdline())
    except psutil.Error:
        return ""


def find_pids_by_name(name: str) -> List[Tuple[int, str]]:
    matches: List[Tuple[int, str]] = []
    for proc in psutil.process_iter(["pid", "name"]):
        if proc.info.get("name") == name:
            matches.append((proc.info["pid"], get_cmdline(proc.info["pid"])))
    return sorted(matches)


def resolve_name(name: str) -> int:
    matches = find_pids_by_name(name)
    if not matches:
        raise TargetError(f"no process found: {name}")
    if len(matches) > 1:
        raise TargetError("multiple processes found, re-run with: witr --pid <pid>",
                          candidates=tuple(matches))
    return matches[0][0]


def resolve_target(pid: int = 0, port: int = 0, name: str | None = None) -> int:
    if pid > 0:
        return pid
    if port > 0:
        return find_pid_by_port(port)
    if name:
        return resolve_name(name)
    raise TargetError("no target specified. Run: witr --help")
