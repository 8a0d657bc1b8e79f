"""Worker stage: decode raw datagrams into tokenized game messages."""

from __future__ import annotations

import logging
import struct
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from .jsmn import (
    InvalidJsonError,
    JsmnError,
    NotEnoughTokensError,
    PartialJsonError,
    Token,
    tokenize,
)
from .msgqueue import MessageQueue

__all__ = [
    "BUFFER_SZ",
    "HEADER_SZ",
    "MAX_TOKENS",
    "JSON_OPCODE",
    "WorkMessage",
    "GameMessage",
    "MessageError",
    "json_operation",
    "handle_work_message",
    "worker_loop",
]

logger = logging.getLogger(__name__)

BUFFER_SZ = 1024
"""Largest datagram payload a worker accepts."""

HEADER_SZ = 4
"""Header: big-endian 16-bit opcode followed by a 16-bit token count."""

MAX_TOKENS = 256
"""Most tokens a single JSON message may declare."""

JSON_OPCODE = 0

_HEADER = struct.Struct(">HH")
_POLL_INTERVAL = 0.1


class MessageError(ValueError):
    """A received message is malformed and has been dropped."""


@dataclass(frozen=True)
class WorkMessage:
    """A raw datagram and the address it came from."""

    payload: bytes
    addr: tuple[str, int] = ("0.0.0.0", 0)

    def __post_init__(self) -> None:
        if len(self.payload) > BUFFER_SZ:
            raise ValueError(
                f"payload of {len(self.payload)} bytes exceeds {BUFFER_SZ}"
            )


@dataclass
class GameMessage:
    """A JSON document with its tokens, ready for the game loop."""

    payload: bytes
    raw: WorkMessage
    tokens: list[Token] = field(default_factory=list)
    tok_cnt: int = 0


def _read_header(msg: WorkMessage) -> tuple[int, int]:
    if len(msg.payload) < HEADER_SZ:
        raise MessageError(
            f"message of {len(msg.payload)} bytes is shorter than its header"
        )
    return _HEADER.unpack_from(msg.payload)


def json_operation(msg: WorkMessage) -> GameMessage:
    """Tokenize the JSON body of ``msg`` into a :class:`GameMessage`."""
    _, tok_cnt = _read_header(msg)
    if tok_cnt <= 0 or tok_cnt > MAX_TOKENS:
        raise MessageError(f"bad tok_cnt: {tok_cnt}")

    json_str = msg.payload[HEADER_SZ:]
    try:
        tokens = tokenize(json_str, tok_cnt)
    except NotEnoughTokensError as exc:
        raise MessageError(f"message had incorrect token count: {exc}") from exc
    except PartialJsonError as exc:
        raise MessageError(f"message had incomplete json: {exc}") from exc
    except InvalidJsonError as exc:
        raise MessageError(f"message had invalid json: {exc}") from exc
    except JsmnError as exc:
        raise MessageError(f"something bad happened: {exc}") from exc

    return GameMessage(payload=json_str, raw=msg, tokens=tokens, tok_cnt=tok_cnt)


_OPERATIONS: dict[int, Callable[[WorkMessage], GameMessage]] = {
    JSON_OPCODE: json_operation,
}


def handle_work_message(msg: WorkMessage, game_queue: MessageQueue) -> None:
    """Run the operation ``msg`` asks for and queue its result for the game."""
    opcode, _ = _read_header(msg)
    operation = _OPERATIONS.get(opcode)
    if operation is None:
        raise MessageError(f"bad opcode: {opcode}")
    game_queue.push(operation(msg))


def worker_loop(
    work_queue: MessageQueue,
    game_queue: MessageQueue,
    shutdown: threading.Event,
) -> None:
    """Process work messages until ``shutdown`` is set, dropping bad ones."""
    while not shutdown.is_set():
        try:
            msg = work_queue.pop(timeout=_POLL_INTERVAL)
        except TimeoutError:
            continue
        try:
            handle_work_message(msg, game_queue)
        except MessageError as exc:
            logger.warning("dropped message from %s: %s", msg.addr, exc)