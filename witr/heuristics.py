from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Sequence
import datetime as dt
import ipaddress

from .config import DEFAULT_CONFIG
from .detect import detect
from .models import (
    HIGH_CPU, HIGH_MEM, STOPPED, ZOMBIE,
    ProcessLike, Source, SourceType, as_utc, now_utc,
)


def health_warnings(high_cpu_seconds: float, high_mem_bytes: float) -> Dict[str, str]:
    return {
        ZOMBIE: "Process is a zombie (defunct)",
        STOPPED: "Process is stopped",
        HIGH_CPU: f"Process is using high CPU (>{high_cpu_seconds / 3600:g}h total)",
        HIGH_MEM: f"Process is using high memory (>{high_mem_bytes / 1024 ** 3:g}GB RSS)",
    }


HEALTH_WARNINGS = health_warnings(DEFAULT_CONFIG["high_cpu_seconds"], DEFAULT_CONFIG["high_mem_bytes"])

ANY_ADDRESSES = frozenset({"0.0.0.0", "::", "*", "[::]"})


def is_public_bind(addrs: Iterable[str]) -> bool:
    for addr in addrs:
        if addr in ANY_ADDRESSES:
            return True
        try:
            if ipaddress.ip_address(addr).is_unspecified:
                return True
        except ValueError:
            continue
    return False


class WarningEngine:
    def __init__(self, long_running_days: int = 90, suspicious_dirs: Iterable[str] | None = None,
                 high_cpu_seconds: float = DEFAULT_CONFIG["high_cpu_seconds"],
                 high_mem_bytes: float = DEFAULT_CONFIG["high_mem_bytes"]):
        self.long_running_days = long_running_days
        self.suspicious_dirs = frozenset(suspicious_dirs if suspicious_dirs is not None
                                         else DEFAULT_CONFIG["suspicious_dirs"])
        # thresholds are applied by the reader; here they only label the message
        self.health_warnings = health_warnings(high_cpu_seconds, high_mem_bytes)

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "WarningEngine":
        return cls(
            long_running_days=cfg.get("long_running_days", DEFAULT_CONFIG["long_running_days"]),
            suspicious_dirs=cfg.get("suspicious_dirs"),
            high_cpu_seconds=cfg.get("high_cpu_seconds", DEFAULT_CONFIG["high_cpu_seconds"]),
            high_mem_bytes=cfg.get("high_mem_bytes", DEFAULT_CONFIG["high_mem_bytes"]),
        )

    def evaluate(self, ancestry: Sequence[ProcessLike], source: Optional[Source] = None,
                 now: Optional[dt.datetime] = None) -> List[str]:
        if not ancestry:
            return []
        target = ancestry[-1]
        warnings: List[str] = []
        self._check_health(target, warnings)
        self._check_exposure(target, warnings)
        self._check_privilege(target, warnings)
        self._check_workdir(target, warnings)
        self._check_longevity(target, now or now_utc(), warnings)
        self._check_provenance(ancestry, source, warnings)
        return warnings

    def _check_health(self, target: ProcessLike, warnings: List[str]):
        msg = self.health_warnings.get(target.health)
        if msg:
            warnings.append(msg)

    def _check_exposure(self, target: ProcessLike, warnings: List[str]):
        if is_public_bind(target.bind_addresses):
            warnings.append("Process is listening on a public interface")

    def _check_privilege(self, target: ProcessLike, warnings: List[str]):
        if target.user == "root":
            warnings.append("Process is running as root")

    def _check_workdir(self, target: ProcessLike, warnings: List[str]):
        if target.working_dir in self.suspicious_dirs:
            warnings.append(f"Process running from suspicious directory: {target.working_dir}")

    def _check_longevity(self, target: ProcessLike, now: dt.datetime, warnings: List[str]):
        if target.started_at is None:
            return
        if as_utc(now) - as_utc(target.started_at) > dt.timedelta(days=self.long_running_days):
            warnings.append(f"Process has been running for over {self.long_running_days} days")

    def _check_provenance(self, ancestry: Sequence[ProcessLike], source: Optional[Source],
                          warnings: List[str]):
        verdict = source if source is not None else detect(ancestry)
        if verdict.type == SourceType.UNKNOWN:
            warnings.append("No known supervisor detected")


def collect_warnings(ancestry: Sequence[ProcessLike], source: Optional[Source] = None) -> List[str]:
    return WarningEngine().evaluate(ancestry, source)
