"""
Startup configuration for votebridge
"""

from dataclasses import dataclass

from . import constants


@dataclass
class BridgeConfig:
    """
    Configuration for the bridge.

    Attributes
    ----------
    device_path : str
        Serial device to open. Empty string means discover it in search_dir
    search_dir : str
        Directory scanned for the base station device file
    baud_rate : int
        Serial baud rate
    device_count : int
        Number of voting devices (size of the response table)
    reconnect_backoff : float
        Seconds to wait between connection attempts
    read_timeout : float
        Serial read timeout in seconds
    uploads_dir : str
        Directory holding uploaded question PDFs
    host : str
        HTTP bind address
    port : int
        HTTP port
    """
    device_path: str = ""
    search_dir: str = constants.DEFAULT_SEARCH_DIR
    baud_rate: int = constants.DEFAULT_BAUD_RATE
    device_count: int = constants.DEVICE_COUNT
    reconnect_backoff: float = constants.RECONNECT_BACKOFF_S
    read_timeout: float = constants.READ_TIMEOUT_S
    uploads_dir: str = constants.DEFAULT_UPLOADS_DIR
    host: str = constants.DEFAULT_HOST
    port: int = constants.DEFAULT_PORT

    def __post_init__(self):
        if self.device_count <= 0:
            raise ValueError(f"device_count must be positive, got {self.device_count}")
        if self.reconnect_backoff < 0:
            raise ValueError("reconnect_backoff must not be negative")
