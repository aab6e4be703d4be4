from __future__ import annotations
from typing import Callable, List, Set

from .models import Process, ProcessNotFound
from .proc import read_process

Reader = Callable[[int], Process]


def build_ancestry(pid: int, reader: Reader = read_process) -> List[Process]:
    """
    Walk parent links from ``pid`` up to init.

    Returns the chain ordered root -> target. An empty list means the target
    itself could not be read; a failed read further up just truncates the
    chain at the last ancestor that was readable. The visited set bounds the
    walk even when parent links loop back on themselves.
    """
    chain: List[Process] = []
    seen: Set[int] = set()

    while pid > 0 and pid not in seen:
        seen.add(pid)
        try:
            proc = reader(pid)
        except ProcessNotFound:
            break
        chain.insert(0, proc)
        if proc.pid == 1 or proc.ppid == 0:
            break
        pid = proc.ppid
    return chain
