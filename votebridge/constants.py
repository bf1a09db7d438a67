"""
Constants for votebridge

Wire vocabulary, device table size and connection defaults used by the
base station firmware. Every value here can be overridden at startup
through BridgeConfig.
"""

# Device table
DEVICE_COUNT = 10  # voting devices paired with the base station
NO_ANSWER = -1  # slot sentinel
MIN_ANSWER = 0
MAX_ANSWER = 3

# Serial link
DEFAULT_BAUD_RATE = 9600
DEFAULT_SEARCH_DIR = "/dev"
RECONNECT_BACKOFF_S = 2.0
READ_TIMEOUT_S = 0.5  # lets the reader notice shutdown

# Device file patterns per platform (sys.platform prefix -> name fragment)
DEVICE_PATTERNS = {
    "linux": "ACM",
    "darwin": "tty.usbmodem",
}

# Framing
FRAME_DELIMITER = b">"
LINE_TERMINATOR = b"\n"

# Inbound frame keys
KEY_VALUE = "buttonPressed"
KEY_ADDRESS = "address"

# Outbound command verbs
CMD_START_QUESTION = "Q1"
CMD_STOP_QUESTION = "Q0"
CMD_ACK = "AN"
START_ARG_TWO = "TWO"
START_ARG_MULTIPLE = "MUL"

# HTTP
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_UPLOADS_DIR = "uploads"
