"""
Serial communication for votebridge

Handles base station discovery, frame parsing and the persistent link.
"""

from .protocol import (
    FrameParser,
    VoteFrame,
    decode_frame,
    split_frames,
    is_valid_value,
    encode_ack,
    encode_start_command,
    encode_stop_command,
    frame_command,
)
from .link import SerialLink, LinkState, discover_device_path, enumerate_ports

__all__ = [
    'FrameParser',
    'VoteFrame',
    'decode_frame',
    'split_frames',
    'is_valid_value',
    'encode_ack',
    'encode_start_command',
    'encode_stop_command',
    'frame_command',
    'SerialLink',
    'LinkState',
    'discover_device_path',
    'enumerate_ports',
]
