"""Frame builder and parser for the actuator serial bus.

Frame layout::

    +----------+---------+---------+---------+------------------+----------+
    | Preamble | Address |  Type   | Length  |     Payload      |   CRC    |
    | 2 bytes  | 1 byte  | 1 byte  | 2 bytes |  variable length |  2 bytes |
    +----------+---------+---------+---------+------------------+----------+

- Preamble: 0xAA 0x55
- Length: little-endian payload length
- CRC: CRC-16/CCITT over (address + type + length + payload), little-endian
"""

from __future__ import annotations

from dataclasses import dataclass

from ..utils.crc import crc16

PREAMBLE = b"\xAA\x55"
HEADER_SIZE = 6  # preamble(2) + address(1) + type(1) + length(2)
CRC_SIZE = 2
MAX_PAYLOAD = 0xFFFF


@dataclass
class Frame:
    """A parsed protocol frame."""

    address: int
    msg_type: int
    payload: bytes

    def __repr__(self) -> str:
        return (
            f"Frame(address=0x{self.address:02X}, type=0x{self.msg_type:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def build_frame(address: int, msg_type: int, payload: bytes = b"") -> bytes:
    """Build a single frame ready to write to the serial port.

    Args:
        address: Single-byte actuator address.
        msg_type: Single-byte message type.
        payload: Message-specific payload bytes.
    """
    if not 0 <= address <= 0xFF:
        raise ValueError(f"Address must be 0-255, got {address}")
    if not 0 <= msg_type <= 0xFF:
        raise ValueError(f"Message type must be 0-255, got {msg_type}")
    if len(payload) > MAX_PAYLOAD:
        raise ValueError(f"Payload too large: {len(payload)} bytes")

    body = bytes([address, msg_type]) + len(payload).to_bytes(2, "little") + payload
    checksum = crc16(body).to_bytes(2, "little")
    return PREAMBLE + body + checksum


def parse_frame(data: bytes) -> Frame | None:
    """Parse one frame from the start of ``data``.

    Returns:
        A ``Frame``, or ``None`` if the preamble is missing, the data is
        truncated, or the checksum fails.
    """
    if len(data) < HEADER_SIZE + CRC_SIZE:
        return None

    if data[0:2] != PREAMBLE:
        return None

    length = int.from_bytes(data[4:6], "little")
    end = HEADER_SIZE + length
    if len(data) < end + CRC_SIZE:
        return None

    body = data[2:end]
    expected_checksum = int.from_bytes(data[end : end + CRC_SIZE], "little")
    if crc16(body) != expected_checksum:
        return None

    return Frame(address=data[2], msg_type=data[3], payload=bytes(data[HEADER_SIZE:end]))
