import os

import pytest

from multiplexer import MultiplexerError
from server import ChatServer


class FakeConnection:
    """In-memory stand-in for a connected client socket."""
    def __init__(self, fileno, chunks=None, fail_send=False):
        self._fileno = fileno
        self.inbound = list(chunks or [])
        self.sent = []
        self.fail_send = fail_send
        self.close_count = 0

    def fileno(self):
        return -1 if self.close_count else self._fileno

    def feed(self, *chunks):
        self.inbound.extend(chunks)

    def recv(self, bufsize):
        if not self.inbound:
            return b""
        chunk = self.inbound.pop(0)
        if isinstance(chunk, Exception):
            raise chunk
        if len(chunk) > bufsize:
            self.inbound.insert(0, chunk[bufsize:])
            chunk = chunk[:bufsize]
        return chunk

    def sendall(self, data):
        if self.fail_send:
            raise BrokenPipeError("broken pipe")
        self.sent.append(data)

    def received(self):
        return b"".join(self.sent)

    def close(self):
        self.close_count += 1


class FakeListener:
    """Hands out queued connections (or raises queued errors) on accept()."""
    def __init__(self):
        self.pending = []
        self.close_count = 0

    def queue(self, item):
        self.pending.append(item)

    def accept(self):
        item = self.pending.pop(0)
        if isinstance(item, Exception):
            raise item
        return item, ("127.0.0.1", 50000 + item.fileno())

    def fileno(self):
        return 3

    def close(self):
        self.close_count += 1


class ScriptedMultiplexer:
    """Returns pre-arranged ready sets, one per wait() call."""
    def __init__(self):
        self.script = []
        self.calls = []

    def then(self, ready):
        self.script.append(ready)
        return self

    def wait(self, watch_set=None, timeout=None):
        self.calls.append((list(watch_set), timeout))
        if not self.script:
            raise MultiplexerError("script exhausted")
        ready = self.script.pop(0)
        if isinstance(ready, Exception):
            raise ready
        return [sock for sock in watch_set if sock in ready]


@pytest.fixture
def mux():
    return ScriptedMultiplexer()


@pytest.fixture
def listener():
    return FakeListener()


@pytest.fixture
def server(mux, listener):
    chat_server = ChatServer(timeout=0.01, multiplexer=mux)
    chat_server.server_socket = listener
    return chat_server


@pytest.fixture
def connect(server, mux, listener):
    """Accepts a fake client through one loop iteration and returns it."""
    def _connect(fileno, **kwargs):
        conn = FakeConnection(fileno, **kwargs)
        listener.queue(conn)
        mux.then([listener])
        assert server.run_once()
        return conn
    return _connect


@pytest.fixture
def many_fds():
    """Pushes the process past select()'s FD_SETSIZE of 1024 open descriptors."""
    resource = pytest.importorskip("resource")
    soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    wanted = 1300
    if soft < wanted:
        if hard != resource.RLIM_INFINITY and hard < wanted:
            pytest.skip(f"descriptor limit {hard} is too low")
        resource.setrlimit(resource.RLIMIT_NOFILE, (wanted, hard))
    opened = [os.open(os.devnull, os.O_RDONLY) for _ in range(1100)]
    yield opened
    for fd in opened:
        os.close(fd)
    resource.setrlimit(resource.RLIMIT_NOFILE, (soft, hard))
