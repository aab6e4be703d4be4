import pytest

from witr import network
from witr.models import TargetError
from witr.network import decode_address, get_listening_sockets, get_process_listeners

TCP_HEADER = "  sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode"
TCP = "\n".join([
    TCP_HEADER,
    "   0: 00000000:1F90 00000000:0000 0A 00000000:00000000 00:00000000 00000000  1000        0 1111 1 0000000000000000 100 0 0 10 0",
    "   1: 0100007F:1538 00000000:0000 0A 00000000:00000000 00:00000000 00000000   112        0 2222 1 0000000000000000 100 0 0 10 0",
    "   2: 0F02000A:C350 5A2A1EAC:01BB 01 00000000:00000000 00:00000000 00000000  1000        0 3333 1 0000000000000000 20 4 30 10 -1",
])
TCP6 = "\n".join([
    TCP_HEADER,
    "   0: 00000000000000000000000000000000:0050 00000000000000000000000000000000:0000 0A 00000000:00000000 00:00000000 00000000     0        0 4444 1 0000000000000000 100 0 0 10 0",
    "   1: 00000000000000000000000001000000:0277 00000000000000000000000000000000:0000 0A 00000000:00000000 00:00000000 00000000     0        0 5555 1 0000000000000000 100 0 0 10 0",
])


@pytest.fixture
def net_files(tmp_path):
    tcp = tmp_path / "tcp"
    tcp6 = tmp_path / "tcp6"
    tcp.write_text(TCP + "\n")
    tcp6.write_text(TCP6 + "\n")
    return (tcp, tcp6)


def test_decode_ipv4():
    assert decode_address("0100007F") == "127.0.0.1"
    assert decode_address("00000000") == "0.0.0.0"
    assert decode_address("0F02000A") == "10.0.2.15"


def test_decode_ipv6():
    assert decode_address("00000000000000000000000000000000") == "::"
    assert decode_address("00000000000000000000000001000000") == "::1"


def test_decode_rejects_odd_length():
    with pytest.raises(ValueError):
        decode_address("0100")


def test_listening_sockets_only_in_listen_state(net_files):
    sockets = get_listening_sockets(net_files)

    assert sockets == {
        "1111": ("0.0.0.0", 8080),
        "2222": ("127.0.0.1", 5432),
        "4444": ("::", 80),
        "5555": ("::1", 631),
    }


def test_missing_files_give_empty_table(tmp_path):
    assert get_listening_sockets([tmp_path / "nope"]) == {}


def test_process_listeners_match_inodes(monkeypatch):
    monkeypatch.setattr(network, "have_proc_net", lambda: True)
    monkeypatch.setattr(network, "socket_inodes", lambda pid: ["2222", "9999", "1111"])
    inode_map = {"1111": ("0.0.0.0", 8080), "2222": ("127.0.0.1", 5432)}

    assert get_process_listeners(10, inode_map) == [("127.0.0.1", 5432), ("0.0.0.0", 8080)]


def test_find_pid_by_port(monkeypatch):
    monkeypatch.setattr(network, "have_proc_net", lambda: True)
    monkeypatch.setattr(network, "get_listening_sockets", lambda: {"1111": ("0.0.0.0", 8080)})
    monkeypatch.setattr(network, "listdir", lambda path: ["self", "1", "812", "77"])
    owners = {1: ["10"], 77: [], 812: ["1111"]}
    monkeypatch.setattr(network, "socket_inodes", lambda pid: owners[pid])

    assert network.find_pid_by_port(8080) == 812


def test_find_pid_by_port_nothing_listening(monkeypatch):
    monkeypatch.setattr(network, "have_proc_net", lambda: True)
    monkeypatch.setattr(network, "get_listening_sockets", lambda: {"1111": ("0.0.0.0", 8080)})

    with pytest.raises(TargetError, match="no process listening on port 9090"):
        network.find_pid_by_port(9090)


def test_find_pid_by_port_owner_hidden(monkeypatch):
    monkeypatch.setattr(network, "have_proc_net", lambda: True)
    monkeypatch.setattr(network, "get_listening_sockets", lambda: {"1111": ("0.0.0.0", 8080)})
    monkeypatch.setattr(network, "listdir", lambda path: ["1"])
    monkeypatch.setattr(network, "socket_inodes", lambda pid: [])

    with pytest.raises(TargetError, match="try sudo"):
        network.find_pid_by_port(8080)
