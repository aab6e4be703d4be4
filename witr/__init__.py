"""
witr — why is this running?

Explains a live process: its parent chain up to init, what supervises it
(container, supervisor, cron, shell or init system) and health/security
warnings about it.

CLI entry: witr (see pyproject.toml)
"""

__version__ = "0.1.0"

from .models import Process, Source, SourceType, ProcessNotFound, TargetError
from .ancestry import build_ancestry
from .detect import detect
from .heuristics import WarningEngine, collect_warnings

__all__ = [
    "Process",
    "Source",
    "SourceType",
    "ProcessNotFound",
    "TargetError",
    "build_ancestry",
    "detect",
    "WarningEngine",
    "collect_warnings",
]
