from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence
import datetime as dt
import json

from .models import HEALTHY, Process, Source, as_utc, now_utc
from .utils import C


def _paint(text: str, color: str, enabled: bool) -> str:
    return f"{color}{text}{C.RESET}" if enabled else text


def format_time(started_at: Optional[dt.datetime], now: Optional[dt.datetime] = None) -> str:
    if started_at is None:
        return "unknown"
    started_at = as_utc(started_at)
    seconds = (as_utc(now or now_utc()) - started_at).total_seconds()
    hours = seconds / 3600
    if hours >= 48:
        rel = f"{int(hours) // 24} days ago"
    elif hours >= 24:
        rel = "1 day ago"
    elif hours >= 1:
        rel = f"{int(hours)} hours ago"
    elif seconds >= 60:
        rel = f"{int(seconds // 60)} min ago"
    else:
        rel = "just now"
    return f"{rel} ({started_at.astimezone().strftime('%Y-%m-%d %H:%M:%S')})"


def report_dict(ancestry: Sequence[Process], source: Source, warnings: List[str]) -> Dict[str, Any]:
    return {
        "ancestry": [p.to_dict() for p in ancestry],
        "source": source.to_dict(),
        "warnings": list(warnings),
    }


def render_json(ancestry: Sequence[Process], source: Source, warnings: List[str]) -> str:
    return json.dumps(report_dict(ancestry, source, warnings), indent=2)


def render_env(proc: Process, as_json: bool = False, color: bool = True) -> str:
    if as_json:
        return json.dumps({"command": proc.cmdline, "env": list(proc.env)}, indent=2)
    lines = [f"{_paint('Command', C.GREEN, color)}: {proc.cmdline}"]
    if proc.env:
        lines.append(f"{_paint('Environment', C.BLUE, color)}:")
        lines.extend(f"  {e}" for e in proc.env)
    else:
        lines.append(_paint("No environment variables found", C.RED, color))
    return "\n".join(lines)


def render_warnings(warnings: List[str], color: bool = True) -> str:
    if not warnings:
        return "No warnings."
    bullet = _paint("•", C.RED, color)
    return "\n".join(f"{bullet} {w}" for w in warnings)


def _pid_label(proc: Process, color: bool) -> str:
    if color:
        return f"{proc.command} ({C.DIM}pid {proc.pid}{C.RESET})"
    return f"{proc.command} (pid {proc.pid})"


def render_tree(ancestry: Sequence[Process], color: bool = True) -> str:
    lines = []
    for depth, proc in enumerate(ancestry):
        prefix = "└─ " if depth else ""
        name = _paint(proc.command, C.GREEN, color)
        pid = f"{C.DIM}pid {proc.pid}{C.RESET}" if color else f"pid {proc.pid}"
        lines.append(f"{'  ' * depth}{prefix}{name} ({pid})")
    return "\n".join(lines)


def _arrow(color: bool) -> str:
    return f" {C.MAGENTA}→{C.RESET} " if color else " → "


def render_short(ancestry: Sequence[Process], color: bool = True) -> str:
    return _arrow(color).join(_pid_label(p, color) for p in ancestry)


def render_standard(ancestry: Sequence[Process], source: Source, warnings: List[str],
                    color: bool = True, now: Optional[dt.datetime] = None) -> str:
    proc = ancestry[-1]

    def label(s: str) -> str:
        return _paint(s, C.BLUE, color)

    out = [f"{label('Target')}: {proc.command}", ""]
    line = f"{label('Process')}: {proc.command} (pid {proc.pid})"
    if proc.health and proc.health != HEALTHY:
        line += f" [{proc.health}]"
    out.append(line)
    if proc.user:
        out.append(f"{label('User')}: {proc.user}")
    out.append(f"{label('Command')}: {proc.cmdline}")
    out.append(f"{label('Started')}: {format_time(proc.started_at, now)}")

    chain = _arrow(color).join(f"{a.command} (pid {a.pid})" for a in ancestry)
    out += ["", f"{label('Why It Exists')}:", f"  {chain}"]

    src_line = f"{label('Source')}: {source.name}"
    if source.name != source.type.value:
        src_line += f" ({source.type.value})"
    out += ["", src_line]

    if proc.working_dir:
        out += ["", f"{label('Working Dir')}: {proc.working_dir}"]
    if proc.git_repo:
        repo = f"{proc.git_repo} ({proc.git_branch})" if proc.git_branch else proc.git_repo
        out.append(f"{label('Git Repo')}: {repo}")
    for i, port in enumerate(proc.listening_ports):
        addr = proc.bind_addresses[i] if i < len(proc.bind_addresses) else "0.0.0.0"
        endpoint = f"[{addr}]:{port}" if ":" in addr else f"{addr}:{port}"
        out.append(f"{label('Listening')}: {endpoint}" if i == 0 else f"{' ' * 11}{endpoint}")

    if warnings:
        out += ["", f"{label('Warnings')}:"]
        out.extend(f"  • {w}" for w in warnings)
    return "\n".join(out)
