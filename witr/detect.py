"""
Source detection: decide what started or supervises a process.

Detectors run in a fixed priority order and the first match wins:
container > supervisor > cron > shell > init system. Container evidence is
looked for anywhere in the ancestry; the other detectors prefer the
ancestor nearest to the target.
"""
from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Optional, Sequence, Tuple
import subprocess
import sys

from .enrich import PLATFORM_LOOKUPS, Lookup
from .models import ProcessLike, Source, SourceType

UNKNOWN_CONFIDENCE = 0.2

# registry key (lowercase command or cmdline fragment) -> reported name
SUPERVISORS = MappingProxyType({
    "pm2": "pm2",
    "pm2 god": "pm2",
    "supervisord": "supervisord",
    "gunicorn": "gunicorn",
    "uwsgi": "uwsgi",
    "s6-supervise": "s6",
    "s6": "s6",
    "runsv": "runit",
    "runit": "runit",
    "openrc": "openrc",
    "monit": "monit",
    "circusd": "circus",
    "circus": "circus",
    "daemontools": "daemontools",
    "tini": "tini",
    "docker-init": "docker-init",
})

CRON_NAMES = frozenset({"cron", "crond"})
SHELLS = frozenset({"bash", "zsh", "sh", "fish"})

# platform -> (init program, source type)
INIT_SYSTEMS = MappingProxyType({
    "linux": ("systemd", SourceType.SYSTEMD),
    "darwin": ("launchd", SourceType.LAUNCHD),
})

Ancestry = Sequence[ProcessLike]


@dataclass(frozen=True)
class DetectContext:
    platform: str
    lookup: Optional[Lookup]


@dataclass(frozen=True)
class Detector:
    name: str
    run: Callable[[Ancestry, DetectContext], Optional[Source]]


def detect_container(ancestry: Ancestry, ctx: DetectContext) -> Optional[Source]:
    for proc in ancestry:
        if proc.container:
            return Source(SourceType.CONTAINER, "container", 0.9, {"runtime": proc.container})
    return None


def detect_supervisor(ancestry: Ancestry, ctx: DetectContext) -> Optional[Source]:
    for proc in reversed(ancestry):
        cmd = proc.command.lower()
        cmdline = proc.cmdline.lower()

        if "pm2" in cmd or "pm2" in cmdline:
            return Source(SourceType.SUPERVISOR, "pm2", 0.9)
        if cmd in SUPERVISORS:
            return Source(SourceType.SUPERVISOR, SUPERVISORS[cmd], 0.7)
        # wrapped by an interpreter, e.g. "python /usr/bin/supervisord"
        for key, name in SUPERVISORS.items():
            if key in cmdline:
                return Source(SourceType.SUPERVISOR, name, 0.7)
    return None


def detect_cron(ancestry: Ancestry, ctx: DetectContext) -> Optional[Source]:
    for proc in reversed(ancestry):
        if proc.command in CRON_NAMES:
            return Source(SourceType.CRON, "cron", 0.6)
    return None


def detect_shell(ancestry: Ancestry, ctx: DetectContext) -> Optional[Source]:
    for proc in reversed(ancestry):
        if proc.command in SHELLS:
            return Source(SourceType.SHELL, proc.command, 0.5)
    return None


def detect_init(ancestry: Ancestry, ctx: DetectContext) -> Optional[Source]:
    if not ancestry or ctx.platform not in INIT_SYSTEMS:
        return None
    program, source_type = INIT_SYSTEMS[ctx.platform]
    root = ancestry[0]
    if root.pid != 1 or root.command != program:
        return None

    generic = Source(source_type, program, 0.8)
    if ctx.lookup is None:
        return generic
    try:
        found = ctx.lookup(ancestry[-1].pid)
    except (OSError, subprocess.SubprocessError, ValueError):
        return generic
    if not found or not found[0]:
        return generic
    label, domain = found
    return Source(source_type, label, 0.9, {"domain": domain} if domain else {})


DETECTORS: Tuple[Detector, ...] = (
    Detector("container", detect_container),
    Detector("supervisor", detect_supervisor),
    Detector("cron", detect_cron),
    Detector("shell", detect_shell),
    Detector("init", detect_init),
)


def current_platform() -> str:
    return "linux" if sys.platform.startswith("linux") else sys.platform


def detect(ancestry: Ancestry, platform: str | None = None, lookup: Lookup | None = None) -> Source:
    platform = platform or current_platform()
    if lookup is None:
        lookup = PLATFORM_LOOKUPS.get(platform)
    ctx = DetectContext(platform, lookup)
    for detector in DETECTORS:
        src = detector.run(ancestry, ctx)
        if src is not None:
            return src
    return Source(SourceType.UNKNOWN, "unknown", UNKNOWN_CONFIDENCE)
