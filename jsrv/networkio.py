"""Network stage: receive UDP datagrams and queue them for the workers."""

from __future__ import annotations

import logging
import socket
import threading

from .msgqueue import MessageQueue
from .worker import BUFFER_SZ, MessageError, WorkMessage

__all__ = ["PORT", "open_socket", "handle_datagram", "recvmsg_loop"]

logger = logging.getLogger(__name__)

PORT = 8888
"""UDP port the server listens on by default."""

_RECV_TIMEOUT = 1.0


def open_socket(host: str = "0.0.0.0", port: int = PORT) -> socket.socket:
    """Return a UDP socket bound to ``host``:``port``."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    return sock


def handle_datagram(
    data: bytes,
    addr: tuple[str, int],
    work_queue: MessageQueue,
) -> WorkMessage:
    """Queue one received datagram for the workers and return it.

    Raises :class:`MessageError` when the datagram does not fit in a
    receive buffer.
    """
    if len(data) > BUFFER_SZ:
        raise MessageError("truncated message")
    msg = WorkMessage(payload=bytes(data), addr=(addr[0], addr[1]))
    work_queue.push(msg)
    return msg


def recvmsg_loop(
    sock: socket.socket,
    work_queue: MessageQueue,
    shutdown: threading.Event,
) -> None:
    """Receive datagrams until ``shutdown`` is set or receiving fails.

    The socket is closed and ``shutdown`` is set when the loop ends, so a
    receive failure brings the whole server down.
    """
    try:
        sock.settimeout(_RECV_TIMEOUT)
        while not shutdown.is_set():
            try:
                data, addr = sock.recvfrom(BUFFER_SZ + 1)
            except socket.timeout:
                continue
            except OSError as exc:
                logger.error("recvfrom() failed: %s", exc)
                break
            try:
                handle_datagram(data, addr, work_queue)
            except MessageError as exc:
                logger.error("handle_datagram() failed: %s", exc)
                break
    finally:
        sock.close()
        shutdown.set()