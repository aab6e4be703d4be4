"""Service-label lookups used to enrich an init-system verdict."""
from __future__ import annotations
from pathlib import Path
from typing import Callable, Optional, Tuple
import subprocess

from .utils import read_lines

ServiceLabel = Tuple[str, str]  # (label, domain)
Lookup = Callable[[int], Optional[ServiceLabel]]


def parse_launchctl_blame(output: str) -> Optional[ServiceLabel]:
    # "system/com.apple.example" or "gui/501/com.example.app"
    line = output.strip()
    if "/" not in line:
        return None
    domain, label = line.split("/", 1)
    if domain == "gui" and "/" in label:
        uid, label = label.split("/", 1)
        domain = f"gui/{uid}"
    return (label, domain) if label else None


def launchd_label(pid: int) -> Optional[ServiceLabel]:
    out = subprocess.run(
        ["launchctl", "blame", str(pid)],
        capture_output=True, text=True, check=True, timeout=5,
    )
    return parse_launchctl_blame(out.stdout)


def parse_systemd_cgroup(lines) -> Optional[ServiceLabel]:
    for line in lines:
        parts = line.split(":", 2)
        if len(parts) != 3:
            continue
        hierarchy, controllers, path = parts
        if not (hierarchy == "0" and controllers == "") and controllers != "name=systemd":
            continue
        components = [c for c in path.split("/") if c]
        for unit in reversed(components):
            if unit.endswith(".service"):
                domain = "user" if "user.slice" in components else "system"
                return unit, domain
    return None


def systemd_unit(pid: int) -> Optional[ServiceLabel]:
    return parse_systemd_cgroup(read_lines(Path(f"/proc/{pid}/cgroup")))


PLATFORM_LOOKUPS = {
    "darwin": launchd_label,
    "linux": systemd_unit,
}
