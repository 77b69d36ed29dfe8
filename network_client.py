"""
network_client.py

This module manages all network communication for the desktop client.

The NetworkThread runs in the background and holds the connection to the
relay. The relay sends plain text without any framing, so the thread collects
incoming bytes, cuts them into lines and uses PyQt's signal/slot mechanism to
safely pass each line to the main UI thread, preventing the interface from
freezing.
"""

import socket
from PyQt6.QtCore import QThread, pyqtSignal
import protocol


class NetworkThread(QThread):
    """
    The background thread for the connection to the relay.

    It connects, optionally sets the nickname, and then listens continuously
    for incoming lines. It uses signals to safely communicate with the main
    UI thread.
    """
    # --- Signals to communicate with the UI thread ---
    connected = pyqtSignal()
    disconnected = pyqtSignal(str)
    message_received = pyqtSignal(dict)

    def __init__(self, ip, port, nickname=None):
        """
        Initializes the network thread.

        Args:
            ip (str): The relay IP address to connect to.
            port (int): The relay port to connect to.
            nickname (str, optional): Nickname to set right after connecting.
        """
        super().__init__()
        self.ip = ip
        self.port = port
        self.nickname = nickname
        self.socket = None

    def run(self):
        """
        The main loop for the network thread.

        Connects to the relay, sends the '/nick' command if a nickname was
        given, and then receives until the connection is lost.
        """
        # Step 1: Connect to the relay.
        try:
            self.socket = socket.create_connection((self.ip, self.port))
        except OSError as e:
            self.disconnected.emit(f"Failed to connect to server: {e}")
            return
        self.connected.emit()

        # Step 2: Choose a nickname, if the user asked for one.
        if self.nickname:
            self.send_nick(self.nickname)

        # Step 3: Enter the main listening loop.
        buffer = b""
        while True:
            data = protocol.receive_message(self.socket)
            if data is None:
                self.disconnected.emit("Connection to server was lost.")
                break
            lines, buffer = protocol.split_lines(buffer + data)
            for line in lines:
                self.message_received.emit(protocol.parse_incoming_line(line))

    def send_message(self, data):
        """A generic helper method to send raw bytes to the relay."""
        if self.socket:
            return protocol.send_message(self.socket, data)
        return False

    def send_chat(self, text):
        """Sends a chat line."""
        return self.send_message(protocol.create_client_message(text))

    def send_nick(self, nickname):
        """Asks the relay to change our nickname."""
        self.nickname = nickname
        return self.send_message(protocol.create_nick_command(nickname))

    def close(self):
        """Closes the connection; the receive loop then ends on its own."""
        if self.socket:
            try:
                self.socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.socket.close()
