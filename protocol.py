"""
protocol.py

Defines the communication rules (protocol) for the chat relay.

The relay speaks plain, unframed text over TCP. Every read the server performs
on a client socket is treated as one message: either a '/nick <name>' command
that renames the sender, or a chat line that is relayed to everybody else
prefixed with the sender's nickname. This module holds the fixed texts, the
default settings, and the small helpers used by both the server and the
desktop client to read, write and interpret those messages.
"""

# --- Configuration ---
DEFAULT_HOST = '0.0.0.0'  # Listen on all available network interfaces.
DEFAULT_PORT = 7711
SELECT_TIMEOUT = 1.0      # Seconds the server waits for activity before looping.
MAX_BUFFER = 1024         # Bytes read from a client in a single message.
LISTEN_BACKLOG = 511

# --- Fixed protocol texts ---
WELCOME_MESSAGE = b"Welcome to Simple Chat! Use /nick <nick> to set your nick.\n"
NICK_COMMAND = b"/nick "
SEPARATOR = b" > "
NICK_ENCODING = 'utf-8'
NICK_ERRORS = 'surrogateescape'  # Lets any byte sequence survive as a nickname.


# --- Socket helpers ---

def send_message(sock, data):
    """
    Sends raw bytes to a socket, best effort.

    The socket is blocking, so a peer that stops reading can stall the caller
    once its receive window fills up; there is no flow control.

    Args:
        sock (socket.socket): The socket to send data through.
        data (bytes): The bytes to send.

    Returns:
        bool: True if sending was successful, False otherwise.
    """
    if not sock:
        return False
    try:
        sock.sendall(data)
        return True
    except OSError as e:
        print(f"[PROTOCOL ERROR] Error on send: {e}")
        return False


def receive_message(sock, bufsize=MAX_BUFFER):
    """
    Performs exactly one bounded read from a socket.

    The relay has no framing: whatever a single read returns is one message.
    Anything beyond 'bufsize' bytes stays in the socket for the next read.

    Args:
        sock (socket.socket): The socket to receive data from.
        bufsize (int): Maximum number of bytes to read.

    Returns:
        bytes: The received data, or None if the peer closed the connection
               or the read failed.
    """
    if not sock:
        return None
    try:
        data = sock.recv(bufsize)
    except OSError:
        return None
    if not data:
        return None
    return data


# --- Message interpretation (server side) ---

def is_nick_command(data):
    """Returns True if the message starts with the '/nick ' command prefix."""
    return data[:len(NICK_COMMAND)] == NICK_COMMAND


def parse_nickname(data):
    """
    Extracts the requested nickname from a '/nick ' command.

    Every carriage return and line feed is removed, wherever it appears, so
    clients may end their lines with CR, LF or CRLF. No other validation is
    applied; the result may be empty.

    Args:
        data (bytes): The full message, including the '/nick ' prefix.

    Returns:
        str: The new nickname.
    """
    raw = data[len(NICK_COMMAND):].replace(b"\r", b"").replace(b"\n", b"")
    return raw.decode(NICK_ENCODING, NICK_ERRORS)


def default_nickname(fileno):
    """Creates the nickname a session starts with, e.g. 'User:7'."""
    return f"User:{fileno}"


def create_chat_line(nickname, data):
    """
    Builds the line relayed to the other clients.

    Args:
        nickname (str): The sender's current nickname.
        data (bytes): The raw message, including its line terminator.

    Returns:
        bytes: '<nickname> > <data>'.
    """
    return nickname.encode(NICK_ENCODING, NICK_ERRORS) + SEPARATOR + data


# --- Client-side helpers ---

def create_nick_command(nickname):
    """Client -> Server: rename request."""
    return NICK_COMMAND + nickname.encode(NICK_ENCODING) + b"\n"


def create_client_message(message_text):
    """Client -> Server: a chat line terminated with a newline."""
    return message_text.encode(NICK_ENCODING) + b"\n"


def split_lines(buffer):
    """
    Splits a receive buffer into complete lines.

    The server does not frame its output, so the client has to reassemble
    lines itself before displaying them.

    Args:
        buffer (bytes): Everything received and not yet displayed.

    Returns:
        tuple: (list of complete lines without terminators, leftover bytes).
    """
    *lines, rest = buffer.split(b"\n")
    return [line.rstrip(b"\r") for line in lines], rest


def parse_incoming_line(line):
    """
    Interprets one line received from the server for display.

    Args:
        line (bytes): A complete line without its terminator.

    Returns:
        dict: {"type": "chat", "nickname": ..., "message": ...} for relayed
              chat lines, or {"type": "system", "message": ...} for anything
              else (such as the welcome text).
    """
    text = line.decode(NICK_ENCODING, errors='replace')
    separator = SEPARATOR.decode()
    if separator in text:
        nickname, message = text.split(separator, 1)
        return {"type": "chat", "nickname": nickname, "message": message}
    return {"type": "system", "message": text}
