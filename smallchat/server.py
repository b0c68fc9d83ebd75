"""A minimal chat server relaying every line to all other clients."""

from __future__ import annotations

import argparse
import select
import socket
import sys
from dataclasses import dataclass

from smallchat.net import accept_client, create_tcp_server, set_nonblock_nodelay

MAX_CLIENTS = 1000
SERVER_PORT = 7711
READ_SIZE = 255
MESSAGE_LIMIT = 255
WELCOME_MESSAGE = b"Welcome to Simple Chat! Use /nick <nick> to set your nick.\n"
UNSUPPORTED_COMMAND = b"Unsupported command\n"


def format_message(nick: bytes, text: bytes) -> bytes:
    """Build the ``nick> text`` line relayed to clients, capped in size."""
    return (nick + b"> " + text)[:MESSAGE_LIMIT]


def parse_command(data: bytes) -> tuple[bytes, bytes | None]:
    """Split a ``/command argument`` line into its name and optional argument."""
    line = data.split(b"\r", 1)[0].split(b"\n", 1)[0]
    command, sep, arg = line.partition(b" ")
    return command, (arg if sep else None)


def _show(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


@dataclass(eq=False)
class Client:
    """A connected chat user."""

    sock: socket.socket
    nick: bytes

    @property
    def fd(self) -> int:
        return self.sock.fileno()


class ChatServer:
    """Accepts clients and fans each message out to everybody else."""

    def __init__(self, port: int = SERVER_PORT) -> None:
        self.server_socket = create_tcp_server(port)
        self.clients: dict[int, Client] = {}

    def __enter__(self) -> ChatServer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _ordered(self) -> list[Client]:
        return [self.clients[fd] for fd in sorted(self.clients)]

    def add_client(self, sock: socket.socket) -> Client:
        """Register a newly connected socket under a default nick."""
        fd = sock.fileno()
        if fd < 0 or fd >= MAX_CLIENTS:
            raise ValueError(f"file descriptor {fd} out of range")
        if fd in self.clients:
            raise ValueError(f"file descriptor {fd} already in use")
        try:
            set_nonblock_nodelay(sock)
        except OSError:
            pass
        client = Client(sock, f"user:{fd}".encode())
        self.clients[fd] = client
        return client

    def remove_client(self, client: Client) -> None:
        """Close a client's socket and forget it."""
        fd = next((k for k, v in self.clients.items() if v is client), None)
        if fd is not None:
            del self.clients[fd]
        client.sock.close()

    @staticmethod
    def _send(client: Client, data: bytes) -> None:
        # No buffering: whatever the kernel does not take is dropped.
        try:
            client.sock.send(data)
        except OSError:
            pass

    def broadcast(self, message: bytes, excluded: Client | None = None) -> None:
        """Send ``message`` to every client except ``excluded``."""
        for client in self._ordered():
            if client is not excluded:
                self._send(client, message)

    def handle_message(self, client: Client, data: bytes) -> bytes | None:
        """Process data read from ``client``; return the relayed line, if any."""
        text = data.split(b"\0", 1)[0]
        if text.startswith(b"/"):
            command, arg = parse_command(text)
            if command == b"/nick" and arg is not None:
                client.nick = arg
            else:
                self._send(client, UNSUPPORTED_COMMAND)
            return None
        message = format_message(client.nick, text)
        print(_show(message), end="", flush=True)
        self.broadcast(message, client)
        return message

    def _accept(self) -> None:
        try:
            sock = accept_client(self.server_socket)
        except OSError:
            return
        try:
            client = self.add_client(sock)
        except ValueError:
            sock.close()
            return
        self._send(client, WELCOME_MESSAGE)
        print(f"Connected client fd={client.fd}", flush=True)

    def poll_once(self, timeout: float | None = 1.0) -> bool:
        """Wait up to ``timeout`` seconds for activity and handle it.

        Returns whether anything was ready.
        """
        watched = [self.server_socket, *(c.sock for c in self._ordered())]
        readable, _, _ = select.select(watched, [], [], timeout)
        if not readable:
            return False
        ready = set(readable)
        if self.server_socket in ready:
            self._accept()
        for client in self._ordered():
            if client.sock not in ready:
                continue
            try:
                data = client.sock.recv(READ_SIZE)
            except BlockingIOError:
                continue
            except OSError:
                data = b""
            if not data:
                print(
                    f"Disconnected client fd={client.fd}, nick={_show(client.nick)}",
                    flush=True,
                )
                self.remove_client(client)
            else:
                self.handle_message(client, data)
        return True

    def serve_forever(self) -> None:
        """Run the event loop until interrupted."""
        while True:
            self.poll_once(1.0)

    def close(self) -> None:
        """Disconnect every client and stop listening."""
        for client in self._ordered():
            self.remove_client(client)
        self.server_socket.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="smallchat-server",
        description=f"Run the chat server on port {SERVER_PORT}.",
    )
    parser.parse_args(argv)
    try:
        server = ChatServer(SERVER_PORT)
    except OSError as exc:
        print(f"Creating listening socket: {exc}", file=sys.stderr)
        return 1
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            return 0
        except OSError as exc:
            print(f"select() error: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())