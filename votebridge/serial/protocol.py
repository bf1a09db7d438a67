"""
Base station protocol for votebridge

Inbound, the base station reports each button press as a JSON object
followed by the frame delimiter and a newline:

- {"buttonPressed": 1, "address": 3}>\\n

Outbound commands are ASCII "<verb> <args>" terminated by the delimiter:

- Q1 TWO> / Q1 MUL>  - start a yes/no or multiple choice question
- Q0>                - stop the current question
- AN 03 01>          - light the LED of device 0x03 for answer 0x01
"""

import json
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..constants import (
    FRAME_DELIMITER,
    LINE_TERMINATOR,
    KEY_ADDRESS,
    KEY_VALUE,
    CMD_ACK,
    CMD_START_QUESTION,
    CMD_STOP_QUESTION,
    START_ARG_TWO,
    START_ARG_MULTIPLE,
)
from ..errors import FrameError
from ..modes import QuestionMode


@dataclass(frozen=True)
class VoteFrame:
    """Decoded button press"""
    address: int
    value: int


def _require_int(payload: dict, key: str) -> int:
    if key not in payload:
        raise FrameError(f"Missing field {key!r}")
    value = payload[key]
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise FrameError(f"Field {key!r} must be an integer, got {value!r}")
    return value


def decode_frame(data: bytes) -> VoteFrame:
    """
    Decode one inbound frame

    Args:
        data: Frame bytes, with or without the trailing delimiter

    Returns:
        VoteFrame

    Raises:
        FrameError: payload is not valid JSON or does not match the schema
    """
    data = data.strip()
    if data.endswith(FRAME_DELIMITER):
        data = data[:-len(FRAME_DELIMITER)].rstrip()
    if not data:
        raise FrameError("Empty frame")

    try:
        payload = json.loads(data.decode("ascii"))
    except (UnicodeDecodeError, ValueError) as e:
        raise FrameError(f"Malformed frame {data!r}: {e}") from e

    if not isinstance(payload, dict):
        raise FrameError(f"Frame is not a JSON object: {data!r}")

    return VoteFrame(
        address=_require_int(payload, KEY_ADDRESS),
        value=_require_int(payload, KEY_VALUE),
    )


def split_frames(line: bytes) -> List[bytes]:
    """Split a received line into its delimiter-separated frames"""
    return [chunk for chunk in (part.strip() for part in line.split(FRAME_DELIMITER)) if chunk]


def is_valid_value(value: int, mode: QuestionMode) -> bool:
    """
    Check an answer against the active question mode

    TWO accepts 0 and 1, MULTIPLE accepts 0 to 3, NONE accepts nothing.
    """
    if mode == QuestionMode.TWO:
        return value in (0, 1)
    if mode == QuestionMode.MULTIPLE:
        return 0 <= value <= 3
    return False


def encode_ack(address: int, value: int) -> bytes:
    """LED acknowledgment for a stored vote"""
    return f"{CMD_ACK} {address:02x} {value:02x}".encode("ascii")


def encode_start_command(mode: QuestionMode) -> bytes:
    if mode == QuestionMode.TWO:
        return f"{CMD_START_QUESTION} {START_ARG_TWO}".encode("ascii")
    if mode == QuestionMode.MULTIPLE:
        return f"{CMD_START_QUESTION} {START_ARG_MULTIPLE}".encode("ascii")
    raise ValueError(f"No start command for question mode {mode!r}")


def encode_stop_command() -> bytes:
    return CMD_STOP_QUESTION.encode("ascii")


def frame_command(command: bytes) -> bytes:
    """Append the frame delimiter to an outbound command"""
    return command + FRAME_DELIMITER


class FrameParser:
    """
    Stream parser for inbound frames

    Buffers bytes until a line terminator, then decodes every frame on
    the line. Undecodable frames are reported through on_error and
    skipped; parsing continues with the next frame.
    """

    def __init__(self, max_line_length: int = 256):
        self.line_buffer = bytearray()
        self.max_line_length = max_line_length
        self._overflow = False

        # Callbacks
        self.on_frame: Optional[Callable[[VoteFrame], None]] = None
        self.on_error: Optional[Callable[[bytes, FrameError], None]] = None

    def parse_byte(self, byte: int):
        if byte != LINE_TERMINATOR[0]:
            if len(self.line_buffer) < self.max_line_length:
                self.line_buffer.append(byte)
            else:
                self._overflow = True
            return

        self._process_line()
        self.line_buffer.clear()
        self._overflow = False

    def parse_bytes(self, data: bytes):
        for byte in data:
            self.parse_byte(byte)

    def _process_line(self):
        line = bytes(self.line_buffer)
        if self._overflow:
            self._report(line, FrameError(f"Line longer than {self.max_line_length} bytes"))
            return

        for chunk in split_frames(line):
            try:
                frame = decode_frame(chunk)
            except FrameError as e:
                self._report(chunk, e)
                continue
            if self.on_frame:
                self.on_frame(frame)

    def _report(self, data: bytes, error: FrameError):
        if self.on_error:
            self.on_error(data, error)

    def reset(self):
        """Drop any partial line, e.g. after a reconnect"""
        self.line_buffer.clear()
        self._overflow = False
