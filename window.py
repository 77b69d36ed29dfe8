"""
window.py

This module defines the graphical user interface (GUI) windows for the
desktop client using the PyQt6 framework.

It includes the initial LoginWindow, where the user picks the relay address
and an optional nickname, and the ChatWindow, which shows the conversation
and takes new lines. The windows are decoupled from the network logic and
communicate user actions via signals.
"""

from PyQt6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit,
                             QPushButton, QSpinBox, QTextBrowser)
from PyQt6.QtCore import pyqtSignal
from datetime import datetime
from html import escape
import protocol


class LoginWindow(QWidget):
    """
    The initial window shown to the user to enter the relay address.
    """
    # Emitted when the user clicks 'Connect': (host, port, nickname)
    connect_requested = pyqtSignal(str, int, str)

    def __init__(self, host='127.0.0.1', port=protocol.DEFAULT_PORT):
        """Initializes the LoginWindow UI components."""
        super().__init__()
        self.setWindowTitle("Connect to Simple Chat")
        self.setFixedSize(320, 220)

        # --- UI Layout Setup ---
        layout = QVBoxLayout()
        self.setLayout(layout)
        self.host_input = QLineEdit(host)
        self.port_input = QSpinBox()
        self.port_input.setRange(1, 65535)
        self.port_input.setValue(port)
        self.nickname_input = QLineEdit()
        self.nickname_input.setPlaceholderText("Optional")
        self.connect_button = QPushButton("Connect")
        layout.addWidget(QLabel("Server:"))
        layout.addWidget(self.host_input)
        layout.addWidget(self.port_input)
        layout.addWidget(QLabel("Nickname:"))
        layout.addWidget(self.nickname_input)
        layout.addWidget(self.connect_button)

        # --- Connecting Signals and Slots ---
        self.connect_button.clicked.connect(self.on_connect)
        self.nickname_input.returnPressed.connect(self.on_connect)

    def on_connect(self):
        """
        Slot called when the 'Connect' button is clicked.
        It validates the input and emits the connect_requested signal.
        """
        host = self.host_input.text().strip()
        if host:
            self.connect_requested.emit(host, self.port_input.value(),
                                        self.nickname_input.text().strip())


class ChatWindow(QWidget):
    """
    The main chat interface window: the conversation and an input line.
    """
    send_requested = pyqtSignal(str)   # (message_text)
    nick_requested = pyqtSignal(str)   # (nickname)

    def __init__(self, nickname=None):
        """
        Initializes the main ChatWindow.

        Args:
            nickname (str, optional): The nickname chosen at login, if any.
        """
        super().__init__()
        self.nickname = nickname
        self.setMinimumSize(500, 400)
        self.update_title()

        # --- UI Layout Setup ---
        layout = QVBoxLayout()
        self.setLayout(layout)
        self.chat_display = QTextBrowser()
        self.chat_display.setReadOnly(True)

        input_layout = QHBoxLayout()
        self.message_input = QLineEdit()
        self.message_input.setPlaceholderText("Type a message, or /nick <nick>")
        self.send_button = QPushButton("Send")
        input_layout.addWidget(self.message_input)
        input_layout.addWidget(self.send_button)

        layout.addWidget(self.chat_display)
        layout.addLayout(input_layout)

        # --- Connecting Signals and Slots ---
        self.send_button.clicked.connect(self.on_send)
        self.message_input.returnPressed.connect(self.on_send)

    def update_title(self):
        self.setWindowTitle(f"Simple Chat - {self.nickname or 'anonymous'}")

    def on_send(self):
        """
        Handles the send button click or enter press in the message input.

        '/nick <nick>' renames us; anything else is sent as a chat line and
        shown locally, because the relay never sends our own lines back.
        """
        text = self.message_input.text()
        if not text.strip():
            return
        command = protocol.NICK_COMMAND.decode()
        if text.startswith(command):
            self.nickname = text[len(command):]
            self.nick_requested.emit(self.nickname)
            self.update_title()
        else:
            self.send_requested.emit(text)
            self.append_message({"type": "chat", "nickname": self.nickname or "me",
                                 "message": text})
        self.message_input.clear()

    def append_message(self, data):
        """Appends a message to the chat display, formatted according to its type."""
        timestamp = datetime.now().strftime('%H:%M:%S')
        msg_type = data.get("type")
        if msg_type == "chat":
            text = f"({timestamp}) <b>{escape(data.get('nickname', ''))}</b>: {escape(data.get('message', ''))}"
        elif msg_type == "system":
            # The welcome text contains '<nick>', so everything is escaped as HTML.
            text = f"({timestamp}) [{escape(data.get('message', ''))}]"
        else:
            return  # Ignore unknown message types.
        self.chat_display.append(f'<p style="margin: 0;">{text}</p>')

        # Automatically scroll to the bottom to show the newest message.
        self.chat_display.ensureCursorVisible()
