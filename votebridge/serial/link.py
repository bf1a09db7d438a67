"""
Serial link management for votebridge

Owns the connection to the base station: device discovery, blocking
open with reconnect, the background read loop and serialized writes.
"""

import logging
import os
import sys
import threading
from enum import IntEnum
from typing import Callable, List, Optional, Tuple

import serial
import serial.tools.list_ports

from ..constants import (
    DEFAULT_BAUD_RATE,
    DEFAULT_SEARCH_DIR,
    DEVICE_PATTERNS,
    READ_TIMEOUT_S,
    RECONNECT_BACKOFF_S,
)
from ..errors import FrameError, LinkClosedError, VoteBridgeError
from .protocol import FrameParser, VoteFrame, frame_command

log = logging.getLogger(__name__)


def enumerate_ports() -> List[Tuple[str, str]]:
    """
    Enumerate available serial ports

    Returns:
        List of (port_name, description) tuples sorted by port name
    """
    ports = [(info.device, info.description) for info in serial.tools.list_ports.comports()]
    ports.sort(key=lambda x: x[0])
    return ports


def discover_device_path(search_dir: str = DEFAULT_SEARCH_DIR,
                         platform: Optional[str] = None) -> str:
    """
    Find the base station device file

    Scans search_dir for the first name (in sorted order) containing the
    platform's device fragment: "ACM" on Linux, "tty.usbmodem" on macOS.

    Args:
        search_dir: Directory to scan
        platform: sys.platform style name (default: current platform)

    Returns:
        Full device path, or "" if nothing matched
    """
    platform = platform or sys.platform
    fragment = None
    for prefix, candidate in DEVICE_PATTERNS.items():
        if platform.startswith(prefix):
            fragment = candidate
            break

    if fragment is None:
        log.error("[Link] Unknown operating system: %s", platform)
        return ""

    try:
        names = sorted(os.listdir(search_dir))
    except OSError as e:
        log.warning("[Link] Cannot scan %s: %s", search_dir, e)
        return ""

    for name in names:
        if fragment in name:
            return os.path.join(search_dir, name)
    return ""


class LinkState(IntEnum):
    """Connection status"""
    DISCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2
    CLOSED = 3


class SerialLink:
    """
    Persistent connection to the base station

    open() blocks until the device is present, retrying with a fixed
    backoff. A single reader thread decodes frames for the lifetime of
    the link and reconnects after I/O errors. Writers are serialized by
    a write lock; replacing the port is guarded by a separate connect
    lock shared by both directions.
    """

    def __init__(self,
                 device_path: str = "",
                 search_dir: str = DEFAULT_SEARCH_DIR,
                 baud_rate: int = DEFAULT_BAUD_RATE,
                 reconnect_backoff: float = RECONNECT_BACKOFF_S,
                 read_timeout: float = READ_TIMEOUT_S,
                 serial_factory: Optional[Callable[..., serial.Serial]] = None,
                 platform: Optional[str] = None):
        """
        Args:
            device_path: Device to open, "" to discover it in search_dir
            search_dir: Directory scanned when discovering the device
            baud_rate: Serial baud rate
            reconnect_backoff: Seconds between connection attempts
            read_timeout: Read timeout, bounds how long shutdown waits for the reader
            serial_factory: Port constructor (default serial.Serial)
            platform: Platform name used for discovery (default sys.platform)
        """
        self.device_path = device_path
        self.search_dir = search_dir
        self.baud_rate = baud_rate
        self.reconnect_backoff = reconnect_backoff
        self.read_timeout = read_timeout
        self.platform = platform

        self.port: Optional[serial.Serial] = None
        self.port_name: Optional[str] = None
        self.state = LinkState.DISCONNECTED
        self.parser = FrameParser()

        self._serial_factory = serial_factory or serial.Serial
        self._write_lock = threading.Lock()
        self._connect_lock = threading.Lock()
        self._closed = threading.Event()
        self._reader: Optional[threading.Thread] = None
        self._on_frame: Optional[Callable[[int, int], object]] = None

    @classmethod
    def from_config(cls, config, **kwargs) -> "SerialLink":
        return cls(
            device_path=config.device_path,
            search_dir=config.search_dir,
            baud_rate=config.baud_rate,
            reconnect_backoff=config.reconnect_backoff,
            read_timeout=config.read_timeout,
            **kwargs,
        )

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def is_open(self) -> bool:
        return self.port is not None and self.port.is_open

    # ---------- connect / reconnect ----------

    def open(self) -> serial.Serial:
        """
        Open the connection, waiting for the device as long as it takes

        Returns:
            The open port

        Raises:
            LinkClosedError: close() was called while waiting
        """
        with self._connect_lock:
            return self._open_locked()

    def _open_locked(self) -> serial.Serial:
        self._close_port()
        if self._closed.is_set():
            raise LinkClosedError("Link is closed")
        self.state = LinkState.CONNECTING
        while True:
            if self._closed.is_set():
                raise LinkClosedError("Link closed while waiting for the device")
            if self._try_open():
                return self.port
            log.info("[Link] Sleeping for %.1fs before retrying", self.reconnect_backoff)
            if self._closed.wait(self.reconnect_backoff):
                raise LinkClosedError("Link closed while waiting for the device")

    def _try_open(self) -> bool:
        path = self.device_path or discover_device_path(self.search_dir, self.platform)
        if not path:
            log.warning("[Link] Base station not detected, please connect it "
                        "(available ports: %s)",
                        ", ".join(name for name, _ in enumerate_ports()) or "none")
            return False

        try:
            port = self._serial_factory(
                port=path,
                baudrate=self.baud_rate,
                timeout=self.read_timeout,
            )
        except (serial.SerialException, OSError) as e:
            log.warning("[Link] Failed to open %s: %s", path, e)
            return False

        self.port = port
        self.port_name = path
        self.state = LinkState.CONNECTED
        log.info("[Link] Connected: %s @ %d", path, self.baud_rate)
        return True

    def _reconnect(self, failed_port: Optional[serial.Serial]) -> serial.Serial:
        with self._connect_lock:
            if (self.port is not None and self.port is not failed_port
                    and self.port.is_open):
                # The other direction already reconnected
                return self.port
            log.warning("[Link] Connection to %s lost, reconnecting", self.port_name)
            return self._open_locked()

    def _current_port(self) -> serial.Serial:
        with self._connect_lock:
            if self.port is not None and self.port.is_open:
                return self.port
            return self._open_locked()

    def _close_port(self):
        if self.port is not None:
            try:
                self.port.close()
            except (serial.SerialException, OSError) as e:
                log.debug("[Link] Error closing %s: %s", self.port_name, e)
            self.port = None
        if self.state != LinkState.CLOSED:
            self.state = LinkState.DISCONNECTED

    # ---------- write ----------

    def write(self, command: bytes):
        """
        Send one command

        The delimiter is appended here. The whole command is written
        under the write lock; on failure the link reconnects and the
        command is sent again from the start.

        Raises:
            LinkClosedError: link was closed
        """
        data = frame_command(command)
        with self._write_lock:
            port = self._current_port()
            while True:
                try:
                    port.write(data)
                    port.flush()
                    log.debug("[Link] Sent %r", data)
                    return
                except (serial.SerialException, OSError) as e:
                    if self._closed.is_set():
                        raise LinkClosedError("Link closed during write") from e
                    log.warning("[Link] Write of %r failed: %s", data, e)
                    port = self._reconnect(port)

    # ---------- read loop ----------

    def start_reader(self, on_frame: Callable[[int, int], object]):
        """
        Start the background read loop

        Args:
            on_frame: Called with (address, value) for every decoded frame,
                on the reader thread
        """
        if self._reader is not None and self._reader.is_alive():
            raise RuntimeError("Reader already running")
        if self._closed.is_set():
            raise LinkClosedError("Link is closed")

        self._on_frame = on_frame
        self.parser.reset()
        self.parser.on_frame = self._dispatch
        self.parser.on_error = self._on_frame_error
        self._reader = threading.Thread(target=self._read_loop, name="LinkReader", daemon=True)
        self._reader.start()

    def _dispatch(self, frame: VoteFrame):
        try:
            self._on_frame(frame.address, frame.value)
        except LinkClosedError:
            raise
        except VoteBridgeError as e:
            log.warning("[Link] Frame %s not handled: %s", frame, e)
        except Exception:
            log.exception("[Link] Frame handler failed for %s", frame)

    def _on_frame_error(self, data: bytes, error: FrameError):
        log.warning("[Link] Dropping frame %r: %s", data, error)

    def _read_loop(self):
        port = None
        while not self._closed.is_set():
            try:
                if port is None or port is not self.port or not port.is_open:
                    # Start, or the write side replaced the port
                    port = self._current_port()
                    self.parser.reset()
                data = port.read(port.in_waiting or 1)
                if data:
                    self.parser.parse_bytes(data)
            except LinkClosedError:
                break
            except (serial.SerialException, OSError) as e:
                if self._closed.is_set():
                    break
                log.warning("[Link] Read from %s failed: %s", self.port_name, e)
                port = self._recover(port)
            except Exception:
                if self._closed.is_set():
                    break
                log.exception("[Link] Unexpected read error on %s", self.port_name)
                port = self._recover(port)
        log.info("[Link] Reader stopped")

    def _recover(self, port: Optional[serial.Serial]) -> Optional[serial.Serial]:
        self.parser.reset()
        try:
            return self._reconnect(port)
        except LinkClosedError:
            return None

    # ---------- shutdown ----------

    def close(self, timeout: Optional[float] = None):
        """
        Stop the reader, interrupt any reconnect wait and close the port

        Args:
            timeout: Seconds to wait for the reader thread (default: twice
                the read timeout)
        """
        self._closed.set()
        with self._connect_lock:
            self._close_port()
            self.state = LinkState.CLOSED

        reader = self._reader
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout if timeout is not None else 2 * self.read_timeout + 1.0)
        log.info("[Link] Closed")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
