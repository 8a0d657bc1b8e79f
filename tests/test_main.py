import os
import signal
import socket
import struct
import threading

import pytest

from jsrv.main import Server, main
from jsrv.msgqueue import MessageQueue


def _datagram(body: bytes, tok_cnt: int = 16, opcode: int = 0) -> bytes:
    return struct.pack(">HH", opcode, tok_cnt) + body


def _send(address, data):
    client = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        client.sendto(data, address)
    finally:
        client.close()


@pytest.fixture
def running():
    received = MessageQueue()
    server = Server(lambda *args: received.push(args), "127.0.0.1", 0, 2)
    server.start()
    yield server, received
    server.stop()


def test_server_rejects_zero_workers():
    with pytest.raises(ValueError):
        Server(print, "127.0.0.1", 0, 0)


def test_message_reaches_handler(running):
    server, received = running
    _send(server.address, _datagram(b'"move" {"x": 1} [true, null]'))
    assert received.pop(timeout=5) == ("move", {"x": 1}, [True, None])


def test_bad_messages_are_dropped(running):
    server, received = running
    _send(server.address, _datagram(b'"ignored"', opcode=7))
    _send(server.address, _datagram(b'"ignored"', tok_cnt=0))
    _send(server.address, _datagram(b'["unclosed"'))
    _send(server.address, _datagram(b'"kept"'))
    assert received.pop(timeout=5) == ("kept",)
    assert not server.should_shutdown()


def test_graceful_shutdown_releases_wait():
    server = Server(print, "127.0.0.1", 0, 1)
    server.start()
    assert server.should_shutdown() is False
    threading.Timer(0.1, server.graceful_shutdown).start()
    server.wait()
    assert server.should_shutdown() is True
    server.stop()


def test_stop_finishes_all_threads():
    server = Server(print, "127.0.0.1", 0, 3)
    server.start()
    server.stop()
    assert server.should_shutdown()
    assert all(not t.is_alive() for t in server._threads)
    assert len(server._threads) == 3 + 2


def test_start_twice_raises(running):
    server, _ = running
    with pytest.raises(RuntimeError):
        server.start()


def test_main_rejects_zero_workers():
    with pytest.raises(SystemExit) as info:
        main(["--workers", "0"])
    assert info.value.code == 2


def test_main_stops_on_sigint(capsys):
    timer = threading.Timer(0.5, os.kill, args=(os.getpid(), signal.SIGINT))
    timer.start()
    try:
        assert main(["--host", "127.0.0.1", "--port", "0", "--workers", "1"]) == 0
    finally:
        timer.join()
    out = capsys.readouterr().out
    assert "shutting down..." in out
    assert f"received signal {int(signal.SIGINT)}" in out