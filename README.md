# smallchat

A deliberately tiny chat system: a single-process TCP server that relays every
message a client sends to all the other connected clients, and a terminal
client with minimal line editing. It needs a POSIX system (it uses `select` on
sockets and `termios`).

## Installation

```
pip install .
```

## Running the server

```
smallchat-server
```

The server listens on port 7711 on all interfaces and takes no options other
than `--help`. Each new client is sent a welcome message and gets an initial
nick of the form `user:<fd>`, where `<fd>` is the number of its socket. The
server prints a line when a client connects or disconnects.

Whatever a client sends is relayed to everyone else as `nick> text`, capped at
255 bytes, and also printed on the server console. Data starting with `/` is a
command instead; the only one supported is:

```
/nick <newnick>
```

Any other command, or `/nick` without an argument, gets `Unsupported command`
back. Stop the server with Ctrl-C.

## Running the client

```
smallchat-client <host> <port>
```

For example:

```
smallchat-client localhost 7711
```

When standard input is a terminal, the client puts it in raw mode so it sees
each keystroke as it is typed, and restores it when it exits. Incoming messages
are printed above the line being edited, which is redrawn afterwards. Enter
sends the line (shown locally after `you> `), Backspace deletes the last
character. A line holds at most 128 bytes; further keystrokes are dropped. The
client exits with `Connection lost` when the server closes the connection, and
quietly when its input ends.

## Using it as a library

`smallchat.server`:

- `ChatServer(port)` opens the listening socket and keeps the connected
  clients. It is a context manager; `close()` disconnects every client and
  stops listening.
- `poll_once(timeout)` waits up to `timeout` seconds, accepts new clients and
  handles incoming data, and returns whether anything was ready.
  `serve_forever()` repeats it with a one-second timeout.
- `add_client(sock)` and `remove_client(client)` register and drop clients;
  `broadcast(message, excluded)` sends bytes to every client but one;
  `handle_message(client, data)` runs a command or relays a message and returns
  the relayed line, or `None` for a command.
- `Client` holds a client's socket and its `nick` (bytes).
- `format_message(nick, text)` builds the relayed line and
  `parse_command(data)` splits a command into its name and optional argument.

`smallchat.client`:

- `InputBuffer(out, capacity)` is the line editor, writing its echo to any
  binary stream. `feed(byte)` returns a `FeedResult` (`OK` or `GOT_LINE`);
  `append`, `hide`, `show` and `clear` manage the line and the screen, and
  `line` gives the bytes typed so far.
- `RawTerminal(fd)` is a context manager that puts a terminal file descriptor
  into raw mode and restores it afterwards; it raises `OSError` if the
  descriptor is not a terminal.
- `run(host, port)` is the client loop behind the command.

`smallchat.net` has the socket helpers both programs use:
`create_tcp_server`, `tcp_connect`, `accept_client` and
`set_nonblock_nodelay`.

## What it does not do

The server has no way to choose its port, no authentication, no message
history and no commands besides `/nick`. It does no buffering: each read from
a client (up to 255 bytes) is handled as one message, and data a client's
socket cannot take at once is dropped.

## Running the tests

```
pip install .[test]
pytest
```