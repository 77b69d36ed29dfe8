"""
server.py

This module is the core of the chat relay. It defines and runs the ChatServer,
which listens for incoming client connections, keeps one Session per connected
client, and relays every chat line a client sends to all the other clients,
prefixed with the sender's nickname.

The server is single-threaded. A Multiplexer tells it which
sockets have something to read; the server then accepts the waiting
connection, performs exactly one read on each ready client and handles it
completely (including sending it to everybody else) before waiting again.
Clients whose connection has closed are removed on the read that notices it.
"""

import socket
import sys

import protocol
from models import Session, SessionRegistry
from multiplexer import Multiplexer, MultiplexerError


class ChatServer:
    """
    The main class for the chat relay.

    Owns the listening socket and the registry of connected sessions, and runs
    the wait / accept / read / relay loop.
    """
    def __init__(self, host=protocol.DEFAULT_HOST, port=protocol.DEFAULT_PORT,
                 timeout=protocol.SELECT_TIMEOUT, buffer_size=protocol.MAX_BUFFER,
                 multiplexer=None):
        """
        Initializes the chat server.

        Args:
            host (str): Address to bind to.
            port (int): Port to listen on. 0 picks a free port.
            timeout (float): Seconds each wait for activity may block.
            buffer_size (int): Maximum bytes taken from a client per read.
            multiplexer (Multiplexer, optional): Readiness source to use.
        """
        self.host = host
        self.port = port
        self.timeout = timeout
        self.buffer_size = buffer_size
        self.multiplexer = multiplexer if multiplexer is not None else Multiplexer(timeout)
        self.sessions = SessionRegistry()
        self.server_socket = None

    def listen(self):
        """
        Creates, binds and starts the listening socket.

        Returns:
            bool: True if the server is ready to accept clients.
        """
        try:
            self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            print(f"[SERVER ERROR] Error creating server socket: {e}")
            return False

        self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            self.server_socket.bind((self.host, self.port))
            self.server_socket.listen(protocol.LISTEN_BACKLOG)
        except OSError as e:
            print(f"[SERVER ERROR] Error binding/listening on {self.host}:{self.port}: {e}")
            self.server_socket.close()
            self.server_socket = None
            return False

        # Port 0 means the OS chose one; remember the real value.
        self.port = self.server_socket.getsockname()[1]
        print(f"[LISTENING] Server is listening on {self.host}:{self.port}")
        return True

    def watch_set(self):
        """The listening socket followed by every live client connection."""
        return [self.server_socket] + self.sessions.connections()

    def accept_client(self):
        """
        Accepts one pending connection and registers it as a new session.

        Returns:
            Session: The new session, or None if accept() failed.
        """
        try:
            conn, addr = self.server_socket.accept()
        except OSError as e:
            print(f"[ACCEPT ERROR] Error accepting client connection: {e}")
            return None

        session = Session(conn)
        if not session.write(protocol.WELCOME_MESSAGE):
            print(f"[SERVER ERROR] Error writing welcome message to {session.nickname}.")

        self.sessions.add_member(session)
        print(f"[NEW CONNECTION] {addr} connected as {session.nickname}. "
              f"Total clients: {len(self.sessions)}")
        return session

    def remove_session(self, session):
        """Closes a session's connection and forgets it."""
        self.sessions.remove_member(session)
        session.close()
        print(f"[DISCONNECTED] {session.nickname} disconnected. "
              f"Total clients: {len(self.sessions)}")

    def set_nickname(self, session, data):
        """Applies a '/nick ' command. No reply is sent."""
        old_nickname = session.nickname
        session.nickname = protocol.parse_nickname(data)
        print(f"[NICKNAME SET] {old_nickname} is now known as {session.nickname}.")

    def broadcast(self, sender, data):
        """
        Relays a chat line to every session except the sender.

        Args:
            sender (Session): The session the line came from.
            data (bytes): The raw message as read from the sender.
        """
        line = protocol.create_chat_line(sender.nickname, data)
        self.sessions.broadcast(line, sender)
        print(line.decode(protocol.NICK_ENCODING, errors='replace'), end='')

    def handle_read(self, session):
        """
        Performs one read on a ready session and acts on it.

        Returns:
            bool: False if the session was closed and removed.
        """
        data = session.read(self.buffer_size)
        if data is None:
            self.remove_session(session)
            return False

        if protocol.is_nick_command(data):
            self.set_nickname(session, data)
        else:
            self.broadcast(session, data)
        return True

    def run_once(self):
        """
        Runs one iteration of the main loop.

        Returns:
            bool: False if waiting for activity failed and the loop must stop.
        """
        try:
            ready = self.multiplexer.wait(self.watch_set(), self.timeout)
        except MultiplexerError as e:
            print(f"[SELECT ERROR] {e}")
            return False

        if not ready:
            return True

        if self.server_socket in ready:
            self.accept_client()

        # Iterate over a snapshot so removing a session never skips the next one.
        for session in self.sessions.snapshot():
            if session.connection in ready:
                self.handle_read(session)
        return True

    def run(self):
        """Loops until waiting for activity fails, then shuts down."""
        try:
            while self.run_once():
                pass
        finally:
            self.shutdown()

    def start(self):
        """
        Binds the server socket and starts the main loop.

        Returns:
            bool: False if the listening socket could not be set up.
        """
        if not self.listen():
            return False
        self.run()
        return True

    def shutdown(self):
        """Closes every client connection and the listening socket."""
        for session in self.sessions.snapshot():
            self.sessions.remove_member(session)
            session.close()
        if self.server_socket is not None:
            self.server_socket.close()
            self.server_socket = None
            print("[SERVER] Server shut down.")


def main():
    chat_server = ChatServer()
    try:
        if not chat_server.start():
            sys.exit(1)
    except KeyboardInterrupt:
        print("\nShutting down...")


if __name__ == "__main__":
    main()
