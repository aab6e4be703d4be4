import os
from itertools import islice
from pathlib import Path
from typing import List


class C:
    RESET = '\033[0m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    DIM = '\033[2m'


# /proc entries vanish or turn unreadable while we look at them;
# every reader below answers with an empty value instead of raising.

def readlink(path: Path) -> str:
    try:
        return str(Path(path).readlink())
    except OSError:
        return ""


def is_dir(path: Path) -> bool:
    try:
        return Path(path).is_dir()
    except OSError:
        return False


def read_text(path: Path, limit: int = 1_000_000) -> str:
    try:
        with Path(path).open(errors="replace") as fh:
            return fh.read(limit)
    except OSError:
        return ""


def read_lines(path: Path, limit_lines: int = 100000) -> List[str]:
    try:
        with Path(path).open(errors="replace") as fh:
            return [line.rstrip("\n") for line in islice(fh, limit_lines)]
    except OSError:
        return []


def listdir(path: Path, max_items: int = 100000) -> List[str]:
    try:
        with os.scandir(path) as entries:
            return [entry.name for entry in islice(entries, max_items)]
    except OSError:
        return []
