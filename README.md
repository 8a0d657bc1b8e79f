# jsrv

`jsrv` is a small UDP game server. Clients send datagrams that carry a short
binary header followed by a JSON document. The server tokenizes the JSON with
a lenient tokenizer that is limited to a set number of tokens. It then passes
the decoded values to a game handler, which runs on its own thread.

## Installing

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Running the server

```
jsrv [--host HOST] [--port PORT] [--workers N]
```

By default the server listens on UDP port 8888 on all interfaces (`0.0.0.0`)
and starts 4 worker threads. `--workers` must be at least 1, and `--port` must
be between 0 and 65535.

The built-in handler prints the values of each message on one line, using
`repr` for each value. Press Ctrl-C (SIGINT) to stop the server gracefully. On
shutdown the server does the following:

- it prints `signal_handler(): received signal 2` and then `shutting down...`;
- the receiver stops and closes its socket;
- the workers finish;
- any messages still queued for the game are discarded.

## Wire format

Each datagram is one message:

| Bytes | Meaning                                             |
|-------|-----------------------------------------------------|
| 0–1   | opcode, big-endian (only `0`, the JSON operation)   |
| 2–3   | number of JSON tokens in the payload, big-endian    |
| 4–    | the JSON text                                       |

The token count must be between 1 and 256. It must also be large enough to
hold every token of the JSON text. A worker drops a message and logs a warning
through `logging` in these cases:

- the message is shorter than its 4-byte header;
- it has an unknown opcode;
- its token count is bad;
- its JSON is invalid or incomplete.

A datagram longer than 1024 bytes is treated as a receive failure. A failure
to receive does the same. Either one ends the receiver and shuts down the
whole server.

Every top-level JSON value in the payload becomes one argument for the game
handler. Values are converted like this:

- Objects become dictionaries. Keys that are arrays or objects are frozen into
  tuples or frozensets.
- Arrays become lists.
- Strings become `str` with the text between the quotes kept as written.
  Escape sequences are not decoded.
- Unquoted values are decided by their first character: `t`/`T` gives `True`,
  `f`/`F` gives `False`, and `n`/`N` gives `None`.
- Any other unquoted value becomes an `int` or a `float` if it reads as a
  decimal or hexadecimal number, and `None` otherwise.

If the handler raises, the error is logged and the loop goes on with the next
message.

## Using it as a library

To run a server with your own handler:

```python
from jsrv.main import Server

def on_message(*values):
    print("game received", values)

server = Server(on_message, "0.0.0.0", 8888, 4)
server.start()
try:
    server.wait()
finally:
    server.stop()
```

The `Server` methods and attribute:

- `Server.start()` binds the socket. After that, `server.address` holds the
  bound address; with port `0` the system picks a free port.
- `Server.wait()` blocks until shutdown is requested.
- `Server.graceful_shutdown()` asks every thread to stop.
- `Server.should_shutdown()` reports whether a stop has been asked for.
- `Server.stop()` asks every thread to stop and joins them.

The tokenizer can be used on its own:

```python
from jsrv.jsmn import tokenize, count_tokens, Parser, InvalidJsonError

text = '{"move": [1, 2]}'
needed = count_tokens(text)          # 5
tokens = tokenize(text, needed)      # list of Token
for token in tokens:
    print(token.type, text[token.start:token.end], token.size)
```

`Token.start` and `Token.end` are byte offsets into the encoded input. For a
string token they leave out the quotes. Parsing raises one of three errors,
all subclasses of `JsmnError` (itself a `ValueError`):

- `NotEnoughTokensError`
- `InvalidJsonError`
- `PartialJsonError`

`Parser(max_tokens).parse(js)` does the same as `tokenize`.

The pieces of the pipeline are also available one by one:

- `jsrv.msgqueue.MessageQueue`: a blocking FIFO queue. `pop` takes an optional
  timeout and raises `TimeoutError` when it runs out.
- `jsrv.worker`: `WorkMessage`, `GameMessage`, `MessageError`,
  `json_operation`, `handle_work_message` and `worker_loop`.
- `jsrv.game`: `GameLoop`, `token_values` and `decode_primitive`.
- `jsrv.networkio`: `open_socket`, `handle_datagram` and `recvmsg_loop`.

## What it does not do

The server only receives. It never replies to clients or sends anything back
over the network. It also contains no game rules of its own: the `jsrv`
command only prints what arrives. Any game state or logic has to come from the
handler you pass to `Server`.