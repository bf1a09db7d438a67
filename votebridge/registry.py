"""
Device response registry

Fixed-size table of response slots, one per voting device, indexed by
device address. A slot holds NO_ANSWER (-1) until the device votes.
"""

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .constants import NO_ANSWER, MIN_ANSWER, MAX_ANSWER


@dataclass(frozen=True)
class DeviceSlot:
    """Snapshot of one device's answer"""
    address: int
    value: int = NO_ANSWER

    @property
    def answered(self) -> bool:
        return self.value != NO_ANSWER


class DeviceRegistry:
    """
    Response table for all devices

    Pure in-memory storage, no locking. QuestionSession serializes access.
    Addresses outside [0, device_count) raise IndexError; callers that
    receive addresses from the wire check in_range() first.
    """

    def __init__(self, device_count: int):
        if device_count <= 0:
            raise ValueError(f"device_count must be positive, got {device_count}")
        self._values = np.full(device_count, NO_ANSWER, dtype=np.int16)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def device_count(self) -> int:
        return len(self._values)

    def in_range(self, address: int) -> bool:
        return 0 <= address < len(self._values)

    def _check(self, address: int):
        # numpy would silently accept negative indices
        if not self.in_range(address):
            raise IndexError(
                f"Device address {address} out of range [0, {len(self._values)})")

    def get(self, address: int) -> DeviceSlot:
        self._check(address)
        return DeviceSlot(address, int(self._values[address]))

    def set(self, address: int, value: int):
        """
        Store a device's answer

        Args:
            address: Device address
            value: Answer in [0, 3], or NO_ANSWER to clear the slot

        Raises:
            IndexError: address out of range
            ValueError: value outside {-1} U [0, 3]
        """
        self._check(address)
        if value != NO_ANSWER and not (MIN_ANSWER <= value <= MAX_ANSWER):
            raise ValueError(f"Answer value {value} out of range")
        self._values[address] = value

    def reset(self, address: int):
        self._check(address)
        self._values[address] = NO_ANSWER

    def reset_all(self):
        self._values.fill(NO_ANSWER)

    def answered(self, address: int) -> bool:
        self._check(address)
        return bool(self._values[address] != NO_ANSWER)

    def answered_values(self) -> np.ndarray:
        """Copy of the values of all answered slots"""
        return self._values[self._values != NO_ANSWER].copy()

    def answered_count(self) -> int:
        return int(np.count_nonzero(self._values != NO_ANSWER))

    def slots(self) -> Iterator[DeviceSlot]:
        for address, value in enumerate(self._values):
            yield DeviceSlot(address, int(value))
