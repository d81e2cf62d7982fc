"""CRC-16/CCITT checksum used by the actuator frame format."""

from __future__ import annotations

CRC16_POLY = 0x1021
CRC16_INIT = 0xFFFF


def crc16(data: bytes, crc: int = CRC16_INIT) -> int:
    """Compute the CRC-16/CCITT-FALSE of ``data``.

    Args:
        data: Bytes to checksum.
        crc: Starting value, for checksumming data in pieces.

    Returns:
        The 16-bit checksum.
    """
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) & 0xFFFF) ^ CRC16_POLY
            else:
                crc = (crc << 1) & 0xFFFF
    return crc
