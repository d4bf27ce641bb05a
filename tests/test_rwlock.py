import threading
import time

from rssreader.rwlock import RWLock


def test_readers_share_the_lock():
    lock = RWLock()
    inside = threading.Barrier(3, timeout=5)

    def reader():
        with lock.read_locked():
            # All three readers must be inside at once to pass the barrier
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)
    assert not any(t.is_alive() for t in threads)


def test_writer_excludes_readers():
    lock = RWLock()
    events = []
    writer_in = threading.Event()

    def writer():
        with lock.write_locked():
            writer_in.set()
            time.sleep(0.05)
            events.append("writer done")

    def reader():
        writer_in.wait(5)
        with lock.read_locked():
            events.append("reader")

    w = threading.Thread(target=writer)
    r = threading.Thread(target=reader)
    w.start()
    r.start()
    w.join(5)
    r.join(5)

    assert events == ["writer done", "reader"]


def test_waiting_writer_blocks_new_readers():
    lock = RWLock()
    order = []
    lock.acquire_read()

    def writer():
        with lock.write_locked():
            order.append("writer")

    def late_reader():
        with lock.read_locked():
            order.append("late reader")

    w = threading.Thread(target=writer)
    w.start()
    # Give the writer time to start waiting
    deadline = time.monotonic() + 5
    while lock._writers_waiting == 0 and time.monotonic() < deadline:
        time.sleep(0.005)

    r = threading.Thread(target=late_reader)
    r.start()
    time.sleep(0.05)
    assert order == []

    lock.release_read()
    w.join(5)
    r.join(5)
    assert order == ["writer", "late reader"]


def test_lock_released_on_exception():
    lock = RWLock()
    try:
        with lock.write_locked():
            raise ValueError("boom")
    except ValueError:
        pass

    acquired = threading.Event()

    def reader():
        with lock.read_locked():
            acquired.set()

    t = threading.Thread(target=reader)
    t.start()
    assert acquired.wait(5)
    t.join(5)
