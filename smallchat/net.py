"""Small TCP helpers shared by the chat server and client."""

from __future__ import annotations

import errno
import socket

LISTEN_BACKLOG = 511


def set_nonblock_nodelay(sock: socket.socket) -> None:
    """Put ``sock`` in non-blocking mode and, best effort, disable Nagle."""
    sock.setblocking(False)
    try:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    except OSError:
        pass


def create_tcp_server(port: int) -> socket.socket:
    """Return an IPv4 TCP socket listening on ``port`` on all interfaces."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    except OSError:
        pass
    try:
        sock.bind(("", port))
        sock.listen(LISTEN_BACKLOG)
    except OSError:
        sock.close()
        raise
    return sock


def tcp_connect(addr: str, port: int, nonblock: bool = False) -> socket.socket:
    """Connect a TCP socket to ``addr``:``port`` and return it.

    With ``nonblock`` the socket is non-blocking and the connection may
    still be in progress when it is returned.
    """
    infos = socket.getaddrinfo(addr, str(port), socket.AF_UNSPEC, socket.SOCK_STREAM)
    for family, socktype, proto, _canonname, sockaddr in infos:
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError:
            continue
        try:
            if nonblock:
                set_nonblock_nodelay(sock)
            sock.connect(sockaddr)
        except BlockingIOError as exc:
            if nonblock and exc.errno == errno.EINPROGRESS:
                return sock
            sock.close()
            raise
        except OSError:
            sock.close()
            raise
        return sock
    raise OSError(f"unable to connect to {addr}:{port}")


def accept_client(server_socket: socket.socket) -> socket.socket:
    """Accept a pending connection on ``server_socket`` and return its socket."""
    conn, _address = server_socket.accept()
    return conn