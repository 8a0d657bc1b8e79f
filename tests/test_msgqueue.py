import threading

import pytest

from jsrv.msgqueue import MessageQueue


def test_fifo_order():
    queue = MessageQueue()
    items = ["first", "second", "third"]
    for item in items:
        queue.push(item)
    assert [queue.pop() for _ in items] == items


def test_len_tracks_pushes_and_pops():
    queue = MessageQueue()
    queue.push("a")
    queue.push("b")
    assert len(queue) == 2
    queue.pop()
    assert len(queue) == 1


def test_peek_does_not_remove():
    queue = MessageQueue()
    assert queue.peek() is None
    queue.push("head")
    queue.push("tail")
    assert queue.peek() == "head"
    assert len(queue) == 2
    assert queue.pop() == "head"
    assert queue.peek() == "tail"


def test_push_none_rejected():
    queue = MessageQueue()
    with pytest.raises(ValueError):
        queue.push(None)
    assert len(queue) == 0


def test_pop_times_out_on_empty_queue():
    queue = MessageQueue()
    with pytest.raises(TimeoutError):
        queue.pop(timeout=0.01)


def test_pop_blocks_until_pushed():
    queue = MessageQueue()
    producer = threading.Timer(0.05, queue.push, args=({"msg": 1},))
    producer.start()
    try:
        assert queue.pop(timeout=5) == {"msg": 1}
    finally:
        producer.join(timeout=5)
    assert len(queue) == 0


def test_many_producers_deliver_everything():
    queue = MessageQueue()
    producers = [
        threading.Thread(target=lambda n=n: [queue.push((n, i)) for i in range(50)])
        for n in range(4)
    ]
    for thread in producers:
        thread.start()
    for thread in producers:
        thread.join()
    popped = [queue.pop(timeout=1) for _ in range(200)]
    assert sorted(popped) == sorted((n, i) for n in range(4) for i in range(50))
    assert len(queue) == 0