from pathlib import Path
import ipaddress
import re
from typing import Dict, List, Sequence, Tuple

import psutil

from .models import TargetError
from .utils import read_lines, readlink, listdir

NET_TCP_FILES = (Path("/proc/net/tcp"), Path("/proc/net/tcp6"))
TCP_LISTEN = "0A"

Listener = Tuple[str, int]  # (bind address, port)


def decode_address(hex_ip: str) -> str:
    raw = bytes.fromhex(hex_ip)
    if len(raw) not in (4, 16):
        raise ValueError(f"unexpected address length: {hex_ip}")
    # the kernel prints each 32-bit word in host byte order
    packed = b"".join(raw[i:i + 4][::-1] for i in range(0, len(raw), 4))
    return str(ipaddress.ip_address(packed))


def get_listening_sockets(paths: Sequence[Path] = NET_TCP_FILES) -> Dict[str, Listener]:
    """Map socket inode -> (address, port) for every TCP socket in LISTEN state."""
    inode_map: Dict[str, Listener] = {}
    local_pattern = re.compile(r"^([0-9A-Fa-f]{8}|[0-9A-Fa-f]{32}):([0-9A-Fa-f]{4})$")

    for file_path in paths:
        for line in read_lines(file_path)[1:]:
            parts = line.split()
            if len(parts) < 10 or parts[3] != TCP_LISTEN or not parts[9].isdigit():
                continue
            match = local_pattern.match(parts[1])
            if not match:
                continue
            try:
                addr = decode_address(match.group(1))
            except ValueError:
                continue
            inode_map[parts[9]] = (addr, int(match.group(2), 16))
    return inode_map


def socket_inodes(pid: int) -> List[str]:
    inodes: List[str] = []
    fd_dir = Path(f"/proc/{pid}/fd")
    for fd in listdir(fd_dir):
        link = readlink(fd_dir / fd)
        if link.startswith("socket:[") and link.endswith("]"):
            inodes.append(link[8:-1])
    return inodes


def have_proc_net() -> bool:
    return NET_TCP_FILES[0].exists()


def get_process_listeners(pid: int, inode_map: Dict[str, Listener] | None = None) -> List[Listener]:
    if not have_proc_net():
        return _psutil_listeners(pid)
    if inode_map is None:
        inode_map = get_listening_sockets()
    return [inode_map[inode] for inode in socket_inodes(pid) if inode in inode_map]


def _psutil_listeners(pid: int) -> List[Listener]:
    try:
        conns = psutil.Process(pid).net_connections(kind="tcp")
    except psutil.Error:
        return []
    return [(c.laddr.ip, c.laddr.port) for c in conns if c.status == psutil.CONN_LISTEN and c.laddr]


def find_pid_by_port(port: int) -> int:
    """Return the PID that owns a listening TCP socket on ``port``."""
    if not have_proc_net():
        return _psutil_pid_by_port(port)

    wanted = {inode for inode, (_, p) in get_listening_sockets().items() if p == port}
    if not wanted:
        raise TargetError(f"no process listening on port {port}")

    for entry in sorted(listdir(Path("/proc")), key=lambda e: (len(e), e)):
        if not entry.isdigit():
            continue
        if wanted.intersection(socket_inodes(int(entry))):
            return int(entry)
    raise TargetError(f"socket found on port {port} but process not detected (try sudo)")


def _psutil_pid_by_port(port: int) -> int:
    try:
        conns = psutil.net_connections(kind="tcp")
    except psutil.AccessDenied:
        raise TargetError(f"socket table for port {port} is not readable (try sudo)")
    matches = [c for c in conns if c.status == psutil.CONN_LISTEN and c.laddr and c.laddr.port == port]
    if not matches:
        raise TargetError(f"no process listening on port {port}")
    for conn in matches:
        if conn.pid:
            return conn.pid
    raise TargetError(f"socket found on port {port} but process not detected (try sudo)")
