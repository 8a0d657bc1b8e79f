"""Game stage: turn tokenized messages into values and hand them to a handler."""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable, Iterator
from typing import Any

from .jsmn import Token, TokenType
from .msgqueue import MessageQueue
from .worker import GameMessage, MessageError

__all__ = ["decode_primitive", "token_values", "GameLoop"]

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.1

_DEC_INT = re.compile(r"[+-]?\d+")
_DEC_NUM = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_HEX_INT = re.compile(r"[+-]?0[xX][0-9a-fA-F]+")
_HEX_NUM = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?"
)


def _to_number(text: str) -> int | float | None:
    text = text.strip()
    if _DEC_INT.fullmatch(text):
        return int(text)
    if _DEC_NUM.fullmatch(text):
        return float(text)
    if _HEX_INT.fullmatch(text):
        return int(text, 16)
    if _HEX_NUM.fullmatch(text):
        return float.fromhex(text)
    return None


def decode_primitive(text: str) -> bool | int | float | None:
    """Decode an unquoted JSON value.

    Only the first character decides booleans and null (``t``/``T``,
    ``f``/``F``, ``n``/``N``); anything else is a number, or ``None`` when
    it does not read as one.
    """
    if not text:
        return None
    first = text[0]
    if first in "tT":
        return True
    if first in "fF":
        return False
    if first in "nN":
        return None
    return _to_number(text)


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, dict):
        return frozenset((_freeze(k), _freeze(v)) for k, v in value.items())
    return value


def token_values(message: GameMessage) -> Iterator[Any]:
    """Yield one Python value for each top-level JSON element in ``message``."""
    payload = message.payload
    tokens = iter(message.tokens)

    def take() -> Token:
        token = next(tokens, None)
        if token is None:
            raise MessageError("token stream ended inside a container")
        return token

    def build(token: Token) -> Any:
        if token.type == TokenType.OBJECT:
            result: dict[Any, Any] = {}
            for _ in range(token.size):
                key = _freeze(build(take()))
                result[key] = build(take())
            return result
        if token.type == TokenType.ARRAY:
            return [build(take()) for _ in range(token.size)]
        if token.type == TokenType.STRING:
            return payload[token.start : token.end].decode("utf-8", "replace")
        if token.type == TokenType.PRIMITIVE:
            return decode_primitive(payload[token.start : token.end].decode("ascii"))
        raise MessageError("undefined token in message")

    for token in tokens:
        if token.type == TokenType.UNDEFINED:
            return
        yield build(token)


class GameLoop:
    """Feeds queued game messages to ``handler``, one value per argument."""

    def __init__(
        self,
        handler: Callable[..., Any],
        queue: MessageQueue | None = None,
    ) -> None:
        self.handler = handler
        self.queue = queue if queue is not None else MessageQueue()

    def process(self, message: GameMessage) -> Any:
        """Call the handler with the values of ``message``; ``None`` on failure."""
        try:
            args = list(token_values(message))
        except MessageError as exc:
            logger.error("failed to decode message: %s", exc)
            return None
        try:
            return self.handler(*args)
        except Exception:  # the handler is user code; a failure must not stop the loop
            logger.exception("failed to call message handler")
            return None

    def run(self, shutdown: threading.Event) -> None:
        """Process messages until ``shutdown`` is set, then discard the rest."""
        while not shutdown.is_set():
            try:
                message = self.queue.pop(timeout=_POLL_INTERVAL)
            except TimeoutError:
                continue
            self.process(message)
        self.drain()

    def drain(self) -> int:
        """Discard every queued message and return how many there were."""
        dropped = 0
        while self.queue.peek() is not None:
            self.queue.pop()
            dropped += 1
        return dropped