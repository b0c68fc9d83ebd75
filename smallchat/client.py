"""Terminal client for the chat server with minimal line editing."""

from __future__ import annotations

import argparse
import contextlib
import enum
import errno
import os
import select
import sys
import termios
from typing import BinaryIO

from smallchat.net import tcp_connect

INPUT_CAPACITY = 128
READ_SIZE = 128
BACKSPACE = 127
CLEAR_LINE = b"\x1b[2K"
LINE_START = b"\r"
PROMPT = b"you> "


class FeedResult(enum.Enum):
    """Outcome of feeding one keystroke to an :class:`InputBuffer`."""

    OK = enum.auto()
    GOT_LINE = enum.auto()


class InputBuffer:
    """The line the user is typing, echoed to ``out`` as it changes."""

    def __init__(self, out: BinaryIO, capacity: int = INPUT_CAPACITY) -> None:
        self.out = out
        self.capacity = capacity
        self._buf = bytearray()

    @property
    def line(self) -> bytes:
        """The bytes typed so far."""
        return bytes(self._buf)

    def __len__(self) -> int:
        return len(self._buf)

    def _write(self, data: bytes) -> None:
        self.out.write(data)
        self.out.flush()

    def append(self, byte: int) -> bool:
        """Add ``byte`` to the line; return False when there is no room."""
        if len(self._buf) >= self.capacity:
            return False
        self._buf.append(byte)
        return True

    def feed(self, byte: int) -> FeedResult:
        """Process one keystroke, updating the line and the screen."""
        if byte == ord("\n"):
            return FeedResult.OK
        if byte == ord("\r"):
            return FeedResult.GOT_LINE
        if byte == BACKSPACE:
            if self._buf:
                del self._buf[-1]
                self.hide()
                self.show()
            return FeedResult.OK
        if self.append(byte):
            self._write(bytes((byte,)))
        return FeedResult.OK

    def hide(self) -> None:
        """Erase the line being typed from the terminal."""
        self._write(CLEAR_LINE)
        self._write(LINE_START)

    def show(self) -> None:
        """Print the line being typed again, usually after :meth:`hide`."""
        self._write(bytes(self._buf))

    def clear(self) -> None:
        """Empty the line and erase it from the terminal."""
        self._buf.clear()
        self.hide()


class RawTerminal:
    """Context manager putting a terminal in raw mode and restoring it."""

    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._saved: list | None = None

    def __enter__(self) -> RawTerminal:
        if not os.isatty(self.fd):
            raise OSError(errno.ENOTTY, os.strerror(errno.ENOTTY))
        try:
            original = termios.tcgetattr(self.fd)
            raw = termios.tcgetattr(self.fd)
            iflag, oflag, cflag, lflag, ispeed, ospeed, cc = raw
            iflag &= ~(termios.BRKINT | termios.ICRNL | termios.INPCK
                       | termios.ISTRIP | termios.IXON)
            cflag |= termios.CS8
            lflag &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN)
            cc = list(cc)
            cc[termios.VMIN] = 1
            cc[termios.VTIME] = 0
            termios.tcsetattr(
                self.fd,
                termios.TCSAFLUSH,
                [iflag, oflag, cflag, lflag, ispeed, ospeed, cc],
            )
        except termios.error as exc:
            raise OSError(errno.ENOTTY, os.strerror(errno.ENOTTY)) from exc
        self._saved = original
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._saved is None:
            return
        try:
            termios.tcsetattr(self.fd, termios.TCSAFLUSH, self._saved)
        except termios.error:
            return
        self._saved = None


def run(host: str, port: int) -> int:
    """Chat with the server at ``host``:``port`` until the connection ends."""
    sock = tcp_connect(host, port, False)
    stdin_fd = sys.stdin.fileno()
    out = sys.stdout.buffer

    def write(data: bytes) -> None:
        out.write(data)
        out.flush()

    with sock, contextlib.ExitStack() as stack:
        try:
            stack.enter_context(RawTerminal(stdin_fd))
        except OSError:
            pass

        ib = InputBuffer(out)
        ib.clear()

        while True:
            readable, _, _ = select.select([sock, stdin_fd], [], [])
            if sock in readable:
                try:
                    data = sock.recv(READ_SIZE)
                except OSError:
                    data = b""
                if not data:
                    write(b"Connection lost\n")
                    return 1
                ib.hide()
                write(data)
                ib.show()
            elif stdin_fd in readable:
                typed = os.read(stdin_fd, READ_SIZE)
                if not typed:
                    return 0
                for byte in typed:
                    if ib.feed(byte) is FeedResult.GOT_LINE:
                        ib.append(ord("\n"))
                        ib.hide()
                        write(PROMPT)
                        write(ib.line)
                        sock.sendall(ib.line)
                        ib.clear()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="smallchat-client", description="Connect to a chat server."
    )
    parser.add_argument("host")
    parser.add_argument("port", type=int)
    args = parser.parse_args(argv)
    try:
        sock_result = run(args.host, args.port)
    except ConnectionError as exc:
        print(f"Connecting to server: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Connecting to server: {exc}", file=sys.stderr)
        return 1
    return sock_result


if __name__ == "__main__":
    sys.exit(main())