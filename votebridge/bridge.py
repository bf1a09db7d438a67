"""
Bridge context

Owns the registry, question session and serial link for one process and
connects the link's read loop to the session.
"""

import logging
from typing import Callable, Optional

import serial

from .config import BridgeConfig
from .registry import DeviceRegistry
from .serial.link import SerialLink
from .session import QuestionSession

log = logging.getLogger(__name__)


class VoteBridge:
    """
    Everything the HTTP layer needs, built from one BridgeConfig

    start() blocks until the base station is connected, then starts the
    reader. close() is the shutdown hook.
    """

    def __init__(self, config: Optional[BridgeConfig] = None,
                 serial_factory: Optional[Callable[..., serial.Serial]] = None):
        self.config = config or BridgeConfig()
        self.registry = DeviceRegistry(self.config.device_count)
        self.link = SerialLink.from_config(self.config, serial_factory=serial_factory)
        self.session = QuestionSession(self.registry, self.link)

    def start(self):
        log.info("[Bridge] Waiting for base station (%d devices)", self.config.device_count)
        self.link.open()
        self.link.start_reader(self.session.on_frame)

    def close(self):
        self.link.close()

    def status(self) -> dict:
        status = self.session.snapshot()
        status.update({
            "link": self.link.state.name.lower(),
            "device": self.link.port_name,
        })
        return status

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
