"""
Упаковка логической битовой строки ('0'/'1') в байты и обратно.
Старший бит байта идёт первым, неиспользованные младшие биты последнего
байта всегда нулевые. Длина в битах хранится отдельно и по содержимому
не восстанавливается.
"""

import struct
from typing import List

from errors import MalformedContainer


BIT_LENGTH_FORMAT = '>I'
BIT_LENGTH_SIZE = struct.calcsize(BIT_LENGTH_FORMAT)


def byte_length(bit_length: int) -> int:
    return (bit_length + 7) // 8


class BitStream:
    def __init__(self):
        self.chunks: List[str] = []
        self.bit_length = 0

    def write_bits(self, code: str):
        self.chunks.append(code)
        self.bit_length += len(code)

    @property
    def bits(self) -> str:
        if len(self.chunks) > 1:
            self.chunks = [''.join(self.chunks)]
        return self.chunks[0] if self.chunks else ''

    def to_bytes(self) -> bytes:
        return pack_bits(self.bits)

    @staticmethod
    def from_bytes(data: bytes, bit_length: int) -> 'BitStream':
        stream = BitStream()
        stream.write_bits(unpack_bits(data, bit_length))
        return stream


def pack_bits(bits: str) -> bytes:
    if not bits:
        return b''

    size = byte_length(len(bits))
    padded = bits.ljust(size * 8, '0')
    return int(padded, 2).to_bytes(size, 'big')


def unpack_bits(data: bytes, bit_length: int) -> str:
    if bit_length < 0:
        raise MalformedContainer(f"Negative bit length: {bit_length}")
    if byte_length(bit_length) > len(data):
        raise MalformedContainer(
            f"Need {byte_length(bit_length)} bytes for {bit_length} bits, got {len(data)}")
    if bit_length == 0:
        return ''

    used = data[:byte_length(bit_length)]
    bits = format(int.from_bytes(used, 'big'), f'0{len(used) * 8}b')
    return bits[:bit_length]


def pack_with_length(bits: str) -> bytes:
    """Битовая строка с 4-байтовым префиксом длины в битах (big-endian)."""
    return struct.pack(BIT_LENGTH_FORMAT, len(bits)) + pack_bits(bits)


def unpack_with_length(data: bytes) -> str:
    if len(data) < BIT_LENGTH_SIZE:
        raise MalformedContainer("Data too short for bit length prefix")

    bit_length = struct.unpack_from(BIT_LENGTH_FORMAT, data, 0)[0]
    payload = data[BIT_LENGTH_SIZE:]

    if len(payload) != byte_length(bit_length):
        raise MalformedContainer(
            f"Expected {byte_length(bit_length)} payload bytes, got {len(payload)}")

    return unpack_bits(payload, bit_length)
