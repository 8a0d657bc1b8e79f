"""Server wiring: network, worker and game threads plus the command entry."""

from __future__ import annotations

import argparse
import signal
import threading
from collections.abc import Callable, Sequence
from typing import Any

from .game import GameLoop
from .msgqueue import MessageQueue
from .networkio import PORT, open_socket, recvmsg_loop
from .worker import worker_loop

__all__ = ["WORKER_CNT", "Server", "main"]

WORKER_CNT = 4
"""Number of worker threads started by default."""

_WAIT_SLICE = 0.5


class Server:
    """A UDP game server feeding decoded JSON messages to ``handler``."""

    def __init__(
        self,
        handler: Callable[..., Any],
        host: str = "0.0.0.0",
        port: int = PORT,
        workers: int = WORKER_CNT,
    ) -> None:
        if workers < 1:
            raise ValueError("at least one worker is required")
        self.host = host
        self.port = port
        self.workers = workers
        self.work_queue = MessageQueue()
        self.game = GameLoop(handler)
        self._shutdown = threading.Event()
        self._threads: list[threading.Thread] = []
        self.address: tuple[str, int] | None = None

    def start(self) -> None:
        """Bind the socket and start the network, worker and game threads."""
        if self._threads:
            raise RuntimeError("server already started")
        sock = open_socket(self.host, self.port)
        self.address = sock.getsockname()
        self._threads.append(
            threading.Thread(
                target=recvmsg_loop,
                args=(sock, self.work_queue, self._shutdown),
                name="recvmsg",
                daemon=True,
            )
        )
        self._threads.extend(
            threading.Thread(
                target=worker_loop,
                args=(self.work_queue, self.game.queue, self._shutdown),
                name=f"worker-{index}",
                daemon=True,
            )
            for index in range(self.workers)
        )
        self._threads.append(
            threading.Thread(
                target=self.game.run,
                args=(self._shutdown,),
                name="game",
                daemon=True,
            )
        )
        for thread in self._threads:
            thread.start()

    def should_shutdown(self) -> bool:
        """Return whether a shutdown has been requested."""
        return self._shutdown.is_set()

    def graceful_shutdown(self) -> None:
        """Ask every thread to finish."""
        self._shutdown.set()

    def wait(self) -> None:
        """Block until a shutdown has been requested."""
        while not self._shutdown.wait(_WAIT_SLICE):
            pass

    def stop(self) -> None:
        """Request shutdown and wait for every thread to finish."""
        self.graceful_shutdown()
        for thread in self._threads:
            thread.join()


def _print_message(*values: Any) -> None:
    print(" ".join(repr(value) for value in values), flush=True)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="jsrv", description="Receive JSON game messages over UDP."
    )
    parser.add_argument("--host", default="0.0.0.0", help="address to bind")
    parser.add_argument("--port", type=int, default=PORT, help="UDP port")
    parser.add_argument(
        "--workers", type=int, default=WORKER_CNT, help="number of worker threads"
    )
    args = parser.parse_args(argv)
    if args.workers < 1:
        parser.error("--workers must be at least 1")
    if not 0 <= args.port <= 65535:
        parser.error("--port must be between 0 and 65535")
    return args


def main(argv: Sequence[str] | None = None) -> int:
    """Run the server until SIGINT, printing each received message."""
    args = _parse_args(argv)
    server = Server(_print_message, args.host, args.port, args.workers)

    def on_signal(signum: int, _frame: Any) -> None:
        print(f"signal_handler(): received signal {signum}", flush=True)
        server.graceful_shutdown()

    previous = signal.signal(signal.SIGINT, on_signal)
    try:
        server.start()
        server.wait()
        print("shutting down...", flush=True)
        server.stop()
    finally:
        signal.signal(signal.SIGINT, previous)
    return 0