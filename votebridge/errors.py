"""Exception types raised by votebridge."""


class VoteBridgeError(Exception):
    """Base class for votebridge errors"""


class InvalidModeError(VoteBridgeError, ValueError):
    """Question mode name is not one of the recognized modes"""

    def __init__(self, name: str):
        super().__init__(f"Bad mode: {name}")
        self.name = name


class InvalidAddressError(VoteBridgeError, IndexError):
    """Device address outside the registry table"""

    def __init__(self, address: int, device_count: int):
        super().__init__(
            f"Device address {address} out of range [0, {device_count})")
        self.address = address
        self.device_count = device_count


class FrameError(VoteBridgeError, ValueError):
    """Inbound serial frame could not be decoded"""


class LinkClosedError(VoteBridgeError):
    """Serial link was shut down while waiting for the device"""
