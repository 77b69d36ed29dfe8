"""
client.py

This is the main entry point for the desktop chat client.

It is responsible for initializing the PyQt6 application, managing the overall
application flow (from the connect screen to the chat window), and acting as
the central controller that connects the user interface (from window.py) with
the background network communication logic (from network_client.py).
"""

import sys
from PyQt6.QtWidgets import QApplication, QMessageBox
from window import LoginWindow, ChatWindow
from network_client import NetworkThread
import protocol

# --- Configuration ---
# Defaults shown in the connect screen.
# '127.0.0.1' or 'localhost' for a relay on the same machine.
SERVER_IP = '127.0.0.1'
SERVER_PORT = protocol.DEFAULT_PORT


class ChatApplication:
    """
    The main controller class for the chat client.

    This class manages the application's windows and the network thread, and
    wires UI signals to network actions and back.
    """
    def __init__(self):
        """Initializes the application and its main components."""
        self.app = QApplication(sys.argv)
        self.nickname = None
        self.login_window = LoginWindow(SERVER_IP, SERVER_PORT)
        self.chat_window = None
        self.network_thread = None

        self.login_window.connect_requested.connect(self.attempt_connect)
        self.app.aboutToQuit.connect(self.close_connection)

    def attempt_connect(self, host, port, nickname):
        """
        Starts connecting to the relay in the background.

        Args:
            host (str): Relay address.
            port (int): Relay port.
            nickname (str): Nickname to set once connected; may be empty.
        """
        self.nickname = nickname or None
        # Provide visual feedback to the user that a connection is in progress.
        self.login_window.connect_button.setEnabled(False)
        self.login_window.connect_button.setText("Connecting...")

        self.network_thread = NetworkThread(host, port, self.nickname)
        self.network_thread.connected.connect(self.show_chat_window)
        self.network_thread.message_received.connect(self.handle_chat_messages)
        self.network_thread.disconnected.connect(self.handle_disconnection)
        self.network_thread.start()

    def show_chat_window(self):
        """Replaces the connect screen with the chat window."""
        self.chat_window = ChatWindow(self.nickname)
        self.chat_window.send_requested.connect(self.network_thread.send_chat)
        self.chat_window.nick_requested.connect(self.network_thread.send_nick)

        self.login_window.close()
        self.chat_window.show()

    def handle_chat_messages(self, data):
        """Passes incoming lines from the network to the chat window for display."""
        if self.chat_window:
            self.chat_window.append_message(data)

    def handle_disconnection(self, reason):
        """
        Handles the disconnection event from the network thread.

        Args:
            reason (str): The reason for the disconnection.
        """
        in_chat = self.chat_window is not None and self.chat_window.isVisible()
        parent_window = self.chat_window if in_chat else self.login_window
        QMessageBox.critical(parent_window, "Disconnected", reason)

        if not in_chat:
            # Failed at the connect screen: let the user try again.
            self.login_window.connect_button.setEnabled(True)
            self.login_window.connect_button.setText("Connect")
        else:
            self.app.quit()

    def close_connection(self):
        if self.network_thread:
            self.network_thread.close()
            self.network_thread.wait(1000)

    def run(self):
        """Shows the connect screen and runs the event loop."""
        self.login_window.show()
        return self.app.exec()


def main():
    chat_app = ChatApplication()
    sys.exit(chat_app.run())


if __name__ == "__main__":
    main()
