"""
Question session

Tracks the active question mode, stores incoming votes in the registry
and drives the start/stop commands sent to the base station.
"""

import logging
import threading
from typing import Dict, Protocol, Tuple

from .errors import InvalidAddressError, InvalidModeError
from .modes import QUESTION_MODES, QuestionMode
from .registry import DeviceRegistry, DeviceSlot
from .serial.protocol import (
    encode_ack,
    encode_start_command,
    encode_stop_command,
    is_valid_value,
)
from .tally import compute_tally

log = logging.getLogger(__name__)


class CommandWriter(Protocol):
    def write(self, command: bytes) -> None: ...


class QuestionSession:
    """
    Question state shared by the reader thread and HTTP handlers

    One lock guards both the registry and the mode. Commands are written
    outside that lock so a reconnecting link never stalls tallying.
    """

    def __init__(self, registry: DeviceRegistry, link: CommandWriter):
        self.registry = registry
        self.link = link
        self._mode = QuestionMode.NONE
        self._lock = threading.RLock()

    @property
    def mode(self) -> QuestionMode:
        with self._lock:
            return self._mode

    def start(self, mode_name: str) -> QuestionMode:
        """
        Start a new question round

        Sends stop, switches the mode and clears every device's answer,
        then sends start. Votes that arrive once the devices see start are
        judged against the new mode.

        Raises:
            InvalidModeError: mode_name is not "two" or "multiple"
        """
        mode = QUESTION_MODES.get(mode_name)
        if mode is None:
            raise InvalidModeError(mode_name)

        self.link.write(encode_stop_command())
        with self._lock:
            self._mode = mode
            self.registry.reset_all()
        self.link.write(encode_start_command(mode))
        log.info("[Session] Started %s question, responses reset", mode.name)
        return mode

    def stop(self) -> Dict[str, int]:
        """
        Stop the current question and return its tally

        The mode is left as is, so repeated stops report the same format.
        """
        self.link.write(encode_stop_command())
        result = self.tally()
        log.info("[Session] Stopped %s question: %s", self.mode.name, result)
        return result

    def tally(self) -> Dict[str, int]:
        with self._lock:
            return compute_tally(self._mode, self.registry)

    def on_frame(self, address: int, value: int) -> bool:
        """
        Handle a vote from the reader thread

        The first valid answer of a device in a round wins. Out of range
        addresses, repeated answers and values invalid for the mode are
        dropped. A stored vote is acknowledged so the device lights up.

        Returns:
            True if the vote was stored
        """
        with self._lock:
            if not self.registry.in_range(address):
                log.warning("[Session] Dropping vote from unknown device %d", address)
                return False
            if self.registry.answered(address):
                log.debug("[Session] Device %d already answered", address)
                return False
            if not is_valid_value(value, self._mode):
                return False
            self.registry.set(address, value)

        log.debug("[Session] Device %d answered %d", address, value)
        self.link.write(encode_ack(address, value))
        return True

    def inject(self, address: int, value: int) -> Tuple[DeviceSlot, bool]:
        """
        Set a device's answer directly, bypassing the serial link

        Debug hook for test harnesses.

        Returns:
            (slot, created) where created is True if the slot had no answer

        Raises:
            InvalidAddressError: address outside the device table
            ValueError: value outside {-1} U [0, 3]
        """
        with self._lock:
            if not self.registry.in_range(address):
                raise InvalidAddressError(address, self.registry.device_count)
            created = not self.registry.answered(address)
            self.registry.set(address, value)
            slot = self.registry.get(address)
        log.info("[Session] Injected answer %d for device %d", value, address)
        return slot, created

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "mode": self._mode.name.lower(),
                "answered": self.registry.answered_count(),
                "devices": self.registry.device_count,
            }

