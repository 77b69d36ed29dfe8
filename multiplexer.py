"""
multiplexer.py

Waits for read readiness on many sockets at once.

The chat server is a single thread. Instead of blocking on one client, it asks
the Multiplexer which of its sockets (the listening socket plus every client)
have something to read, waiting at most a fixed timeout so the loop keeps
turning even when nobody is talking. The watch set is rebuilt from scratch on
every call, so clients that joined or left since the previous call are always
taken into account.

The wait is built on selectors.DefaultSelector (epoll on Linux), so file
descriptors above select()'s FD_SETSIZE limit of 1024 are fine.
"""

import selectors
import socket

import protocol


class MultiplexerError(Exception):
    """Raised when the wait itself fails, as opposed to a single socket."""


class Multiplexer:
    """
    A thin wrapper around the selectors module for readable events.

    Callers may either keep a standing watch set with register()/unregister()
    or pass the sockets to wait() directly on every call.
    """
    def __init__(self, timeout=protocol.SELECT_TIMEOUT):
        """
        Initializes the multiplexer.

        Args:
            timeout (float): Default number of seconds wait() blocks for.
        """
        self.timeout = timeout
        self._watched = []

    def register(self, sock: socket.socket):
        """Adds a socket to the standing watch set."""
        if sock not in self._watched:
            self._watched.append(sock)

    def unregister(self, sock: socket.socket):
        """Removes a socket from the standing watch set."""
        if sock in self._watched:
            self._watched.remove(sock)

    def watched(self):
        """Returns a copy of the standing watch set."""
        return list(self._watched)

    def wait(self, watch_set=None, timeout=None):
        """
        Blocks until at least one socket is readable or the timeout expires.

        A listening socket is readable when a connection is waiting to be
        accepted. A client socket is readable when data has arrived or the
        peer has closed; only a read can tell the two apart. Nothing is read
        here.

        Args:
            watch_set (list): The sockets to watch. Defaults to the standing
                              watch set.
            timeout (float): Seconds to wait. Defaults to self.timeout.

        Returns:
            list: The readable sockets, in the order of watch_set. Empty if
                  the timeout expired.

        Raises:
            MultiplexerError: If the wait itself fails, for example because a
                              closed socket is in the watch set.
        """
        sockets = self.watched() if watch_set is None else list(dict.fromkeys(watch_set))
        if timeout is None:
            timeout = self.timeout
        # A fresh selector per call: nothing registered survives to the next wait.
        try:
            selector = selectors.DefaultSelector()
        except OSError as e:
            raise MultiplexerError(f"could not create selector: {e}") from e
        try:
            for sock in sockets:
                selector.register(sock, selectors.EVENT_READ)
            events = selector.select(timeout)
        except (OSError, ValueError, KeyError) as e:
            raise MultiplexerError(f"wait for readiness failed: {e}") from e
        finally:
            selector.close()
        ready = {key.fileobj for key, _ in events}
        return [sock for sock in sockets if sock in ready]
