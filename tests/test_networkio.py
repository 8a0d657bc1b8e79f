import socket
import threading

import pytest

from jsrv.msgqueue import MessageQueue
from jsrv.networkio import handle_datagram, open_socket, recvmsg_loop
from jsrv.worker import BUFFER_SZ, MessageError, WorkMessage


def test_handle_datagram_queues_message():
    queue = MessageQueue()
    msg = handle_datagram(b"\x00\x00\x00\x01true", ("127.0.0.1", 4000), queue)
    assert msg == WorkMessage(b"\x00\x00\x00\x01true", ("127.0.0.1", 4000))
    assert queue.pop(timeout=1) is msg
    assert len(queue) == 0


def test_handle_datagram_accepts_full_buffer():
    queue = MessageQueue()
    data = b"x" * BUFFER_SZ
    handle_datagram(data, ("127.0.0.1", 1), queue)
    assert queue.pop(timeout=1).payload == data


def test_handle_datagram_rejects_truncated():
    queue = MessageQueue()
    with pytest.raises(MessageError):
        handle_datagram(b"x" * (BUFFER_SZ + 1), ("127.0.0.1", 1), queue)
    assert len(queue) == 0


def test_open_socket_binds_udp():
    sock = open_socket("127.0.0.1", 0)
    try:
        host, port = sock.getsockname()
        assert host == "127.0.0.1"
        assert port > 0
        assert sock.type == socket.SOCK_DGRAM
    finally:
        sock.close()


def _start_loop():
    sock = open_socket("127.0.0.1", 0)
    address = sock.getsockname()
    queue = MessageQueue()
    shutdown = threading.Event()
    thread = threading.Thread(target=recvmsg_loop, args=(sock, queue, shutdown))
    thread.start()
    return sock, address, queue, shutdown, thread


def test_recvmsg_loop_receives_and_stops():
    sock, address, queue, shutdown, thread = _start_loop()
    client = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        client.bind(("127.0.0.1", 0))
        client.sendto(b"hello", address)
        msg = queue.pop(timeout=5)
        assert msg.payload == b"hello"
        assert msg.addr == client.getsockname()
    finally:
        client.close()
        shutdown.set()
        thread.join(timeout=5)
    assert not thread.is_alive()
    assert sock.fileno() == -1


def test_recvmsg_loop_shuts_down_on_truncated_message():
    sock, address, queue, shutdown, thread = _start_loop()
    client = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        client.sendto(b"y" * (BUFFER_SZ + 10), address)
        thread.join(timeout=5)
    finally:
        client.close()
        shutdown.set()
        thread.join(timeout=5)
    assert shutdown.is_set()
    assert len(queue) == 0
    assert sock.fileno() == -1