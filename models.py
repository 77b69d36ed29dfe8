# models.py
import protocol


class Session:
    """Represents a connected peer: its socket and its current nickname."""
    def __init__(self, connection, nickname=None):
        self.connection = connection
        self.fileno = connection.fileno()
        self.nickname = nickname if nickname is not None else protocol.default_nickname(self.fileno)
        self.closed = False

    def read(self, bufsize=protocol.MAX_BUFFER):
        """Reads one message; returns None once the peer is gone."""
        return protocol.receive_message(self.connection, bufsize)

    def write(self, data):
        """Sends bytes to the peer, best effort."""
        return protocol.send_message(self.connection, data)

    def close(self):
        """Closes the connection. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        try:
            self.connection.close()
        except OSError as e:
            print(f"[SERVER ERROR] Error closing {self}: {e}")

    def __repr__(self):
        return f"<Session fd={self.fileno} nickname={self.nickname!r}>"


class SessionRegistry:
    """All live sessions, kept in the order they were accepted."""
    def __init__(self):
        self.members = []

    def add_member(self, session):
        """Adds a session to the registry."""
        if session not in self.members:
            self.members.append(session)

    def remove_member(self, session):
        """Removes a session from the registry."""
        if session in self.members:
            self.members.remove(session)

    def snapshot(self):
        """A copy of the current members, safe to iterate while removing."""
        return list(self.members)

    def connections(self):
        return [member.connection for member in self.members]

    def broadcast(self, data, sender):
        """
        Sends a message to all members except the sender.

        Delivery is best effort: a failed write is reported by the protocol
        layer and the remaining members still receive the message.
        """
        for member in self.snapshot():
            if member is not sender:
                member.write(data)

    def __iter__(self):
        return iter(self.members)

    def __len__(self):
        return len(self.members)

    def __contains__(self, session):
        return session in self.members
