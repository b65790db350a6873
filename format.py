"""
Определяет структуру контейнера сжатых данных и методы чтения/записи.

Заголовок: магия, версия, тип символов. Далее число записей таблицы кодов,
сами записи (символ, длина кода, код в ASCII), длина полезной нагрузки
в байтах, точная длина в битах и сами байты. Все целые big-endian.
"""

import io
import struct
from typing import Dict, Tuple

from bitstream import byte_length
from codec import CompressedArtifact, compress, decompress
from errors import MalformedContainer
from huffman import HuffmanTree
from symbols import BYTE_ORDER, SymbolType, symbol_type_by_tag


CONTAINER_MAGIC = b'HUFZ'
CONTAINER_VERSION = 1
HEADER_SIZE = 6

COUNT_FORMAT = BYTE_ORDER + 'I'
CODE_LENGTH_FORMAT = BYTE_ORDER + 'H'
SIZE_FORMAT = BYTE_ORDER + 'Q'


class ContainerHeader:
    def __init__(self, symbol_type: SymbolType):
        self.magic = CONTAINER_MAGIC
        self.version = CONTAINER_VERSION
        self.symbol_type = symbol_type

    def serialize(self) -> bytes:
        output = io.BytesIO()
        output.write(self.magic)
        output.write(struct.pack('B', self.version))
        output.write(struct.pack('B', self.symbol_type.tag))
        return output.getvalue()

    @staticmethod
    def deserialize(data: bytes) -> 'ContainerHeader':
        if len(data) < HEADER_SIZE:
            raise MalformedContainer("Invalid container header")

        if data[:4] != CONTAINER_MAGIC:
            raise MalformedContainer("Invalid container magic")

        version = data[4]
        if version != CONTAINER_VERSION:
            raise MalformedContainer(f"Unsupported version: {version}")

        try:
            symbol_type = symbol_type_by_tag(data[5])
        except KeyError:
            raise MalformedContainer(f"Unknown symbol type: {data[5]}") from None

        return ContainerHeader(symbol_type)


class ContainerFormat:
    @staticmethod
    def serialize(artifact: CompressedArtifact) -> bytes:
        if artifact.byte_length != byte_length(artifact.bit_length):
            raise MalformedContainer(
                f"Payload has {artifact.byte_length} bytes for {artifact.bit_length} bits")

        output = io.BytesIO()
        output.write(ContainerHeader(artifact.symbol_type).serialize())
        ContainerFormat._write_codes(output, artifact.symbol_type, artifact.codes)

        output.write(struct.pack(SIZE_FORMAT, artifact.byte_length))
        output.write(struct.pack(SIZE_FORMAT, artifact.bit_length))
        output.write(artifact.payload)

        return output.getvalue()

    @staticmethod
    def _write_codes(output: io.BytesIO, symbol_type: SymbolType, codes: Dict):
        output.write(struct.pack(COUNT_FORMAT, len(codes)))

        for symbol in sorted(codes):
            code = codes[symbol]
            output.write(symbol_type.pack(symbol))
            output.write(struct.pack(CODE_LENGTH_FORMAT, len(code)))
            output.write(code.encode('ascii'))

    @staticmethod
    def deserialize(data: bytes) -> CompressedArtifact:
        header = ContainerHeader.deserialize(data)
        symbol_type = header.symbol_type
        pos = HEADER_SIZE

        codes, pos = ContainerFormat._read_codes(data, pos, symbol_type)

        size_width = struct.calcsize(SIZE_FORMAT)
        if pos + 2 * size_width > len(data):
            raise MalformedContainer("Corrupted container: cannot read payload sizes")

        payload_size = struct.unpack_from(SIZE_FORMAT, data, pos)[0]
        pos += size_width
        bit_length = struct.unpack_from(SIZE_FORMAT, data, pos)[0]
        pos += size_width

        if payload_size != byte_length(bit_length):
            raise MalformedContainer(
                f"Payload size {payload_size} does not match bit length {bit_length}")

        if pos + payload_size != len(data):
            raise MalformedContainer(
                f"Expected {payload_size} payload bytes, got {len(data) - pos}")

        if not codes and bit_length:
            raise MalformedContainer("Payload present but the code table is empty")

        HuffmanTree.from_codes(codes)

        return CompressedArtifact(
            symbol_type=symbol_type,
            codes=codes,
            payload=data[pos:pos + payload_size],
            bit_length=bit_length,
        )

    @staticmethod
    def _read_codes(data: bytes, pos: int, symbol_type: SymbolType) -> Tuple[Dict, int]:
        count_width = struct.calcsize(COUNT_FORMAT)
        length_width = struct.calcsize(CODE_LENGTH_FORMAT)

        if pos + count_width > len(data):
            raise MalformedContainer("Corrupted container: cannot read mapping count")

        count = struct.unpack_from(COUNT_FORMAT, data, pos)[0]
        pos += count_width

        codes = {}
        for _ in range(count):
            if pos + symbol_type.width + length_width > len(data):
                raise MalformedContainer("Corrupted container: cannot read mapping")

            try:
                symbol = symbol_type.unpack(data, pos)
            except ValueError as e:
                raise MalformedContainer(f"Corrupted container: {e}") from e
            pos += symbol_type.width

            code_len = struct.unpack_from(CODE_LENGTH_FORMAT, data, pos)[0]
            pos += length_width

            if pos + code_len > len(data):
                raise MalformedContainer("Corrupted container: cannot read code")

            code = data[pos:pos + code_len].decode('ascii', errors='replace')
            pos += code_len

            if not code or set(code) - {'0', '1'}:
                raise MalformedContainer(f"Invalid code {code!r} for symbol {symbol!r}")
            if symbol in codes:
                raise MalformedContainer(f"Duplicate symbol {symbol!r}")

            codes[symbol] = code

        return codes, pos


def serialize(artifact: CompressedArtifact) -> bytes:
    return ContainerFormat.serialize(artifact)


def deserialize(data: bytes) -> CompressedArtifact:
    return ContainerFormat.deserialize(data)


def compress_to_container(symbols, symbol_type=None) -> bytes:
    return serialize(compress(symbols, symbol_type))


def decompress_container(data: bytes):
    return decompress(deserialize(data))
