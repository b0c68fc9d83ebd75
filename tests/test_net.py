import socket

import pytest

from smallchat.net import (
    accept_client,
    create_tcp_server,
    set_nonblock_nodelay,
    tcp_connect,
)


@pytest.fixture
def listener():
    sock = create_tcp_server(0)
    yield sock
    sock.close()


def _port(sock):
    return sock.getsockname()[1]


def test_server_is_listening_ipv4(listener):
    assert listener.family == socket.AF_INET
    assert listener.getsockopt(socket.SOL_SOCKET, socket.SO_ACCEPTCONN) == 1
    assert listener.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) != 0


def test_connect_accept_round_trip(listener):
    client = tcp_connect("127.0.0.1", _port(listener), False)
    try:
        conn = accept_client(listener)
        try:
            client.sendall(b"ping")
            assert conn.recv(16) == b"ping"
            conn.sendall(b"pong")
            assert client.recv(16) == b"pong"
        finally:
            conn.close()
    finally:
        client.close()


def test_blocking_connect_returns_blocking_socket(listener):
    client = tcp_connect("localhost", _port(listener), False)
    try:
        assert client.getblocking() is True
        assert client.getpeername()[1] == _port(listener)
    finally:
        client.close()


def test_nonblocking_connect(listener):
    client = tcp_connect("127.0.0.1", _port(listener), True)
    try:
        assert client.getblocking() is False
        conn = accept_client(listener)
        try:
            assert conn.getpeername() == client.getsockname()
        finally:
            conn.close()
    finally:
        client.close()


def test_set_nonblock_nodelay(listener):
    client = tcp_connect("127.0.0.1", _port(listener), False)
    try:
        set_nonblock_nodelay(client)
        assert client.getblocking() is False
        assert client.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY) != 0
    finally:
        client.close()


def test_connect_refused():
    probe = create_tcp_server(0)
    port = _port(probe)
    probe.close()
    with pytest.raises(ConnectionRefusedError):
        tcp_connect("127.0.0.1", port, False)


def test_server_port_in_use(listener):
    with pytest.raises(OSError):
        create_tcp_server(_port(listener))


def test_unknown_host():
    with pytest.raises(socket.gaierror):
        tcp_connect("no-such-host.invalid", 80, False)