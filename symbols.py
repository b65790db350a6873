"""
Типы символов: байт, 16-битное слово и символ Юникода.
Алгоритм один для всех, тип определяет только проверку значений
и способ записи символа в контейнер.
"""

import struct
from typing import Iterable, List, Sequence


BYTE_ORDER = '>'


class SymbolType:
    def __init__(self, name: str, tag: int, fmt: str):
        self.name = name
        self.tag = tag
        self.fmt = BYTE_ORDER + fmt
        self.width = struct.calcsize(self.fmt)

    def __repr__(self):
        return f"SymbolType({self.name})"

    def validate(self, symbols: Sequence) -> Sequence:
        return symbols

    def pack(self, symbol) -> bytes:
        return struct.pack(self.fmt, symbol)

    def unpack(self, data: bytes, pos: int):
        return struct.unpack_from(self.fmt, data, pos)[0]

    def join(self, symbols: List):
        return list(symbols)

    def to_bytes(self, symbols) -> bytes:
        return bytes(symbols)


class ByteSymbols(SymbolType):
    def __init__(self):
        super().__init__('byte', 1, 'B')

    def validate(self, symbols: Sequence) -> Sequence:
        if isinstance(symbols, (bytes, bytearray, memoryview)):
            return symbols
        for value in symbols:
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFF:
                raise ValueError(f"Not a byte: {value!r}")
        return symbols

    def join(self, symbols: List) -> bytes:
        return bytes(symbols)


class ShortSymbols(SymbolType):
    def __init__(self):
        super().__init__('short', 2, 'H')

    def validate(self, symbols: Sequence) -> Sequence:
        for value in symbols:
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFFFF:
                raise ValueError(f"Not a 16-bit unit: {value!r}")
        return symbols

    def to_bytes(self, symbols) -> bytes:
        return units_to_bytes(symbols)


class CharSymbols(SymbolType):
    def __init__(self):
        super().__init__('char', 3, 'I')

    def validate(self, symbols: Sequence) -> Sequence:
        if isinstance(symbols, str):
            return symbols
        for value in symbols:
            if not isinstance(value, str) or len(value) != 1:
                raise ValueError(f"Not a character: {value!r}")
        return symbols

    def pack(self, symbol: str) -> bytes:
        return struct.pack(self.fmt, ord(symbol))

    def unpack(self, data: bytes, pos: int) -> str:
        code_point = struct.unpack_from(self.fmt, data, pos)[0]
        if code_point > 0x10FFFF:
            raise ValueError(f"Invalid code point: {code_point:#x}")
        return chr(code_point)

    def join(self, symbols: List) -> str:
        return ''.join(symbols)

    def to_bytes(self, symbols, encoding: str = 'utf-8') -> bytes:
        return self.join(symbols).encode(encoding, 'surrogatepass')


BYTE = ByteSymbols()
SHORT = ShortSymbols()
CHAR = CharSymbols()

SYMBOL_TYPES = {t.tag: t for t in (BYTE, SHORT, CHAR)}


def detect_symbol_type(symbols) -> SymbolType:
    if isinstance(symbols, str):
        return CHAR
    if isinstance(symbols, (bytes, bytearray, memoryview)):
        return BYTE
    return SHORT


def symbol_type_by_tag(tag: int) -> SymbolType:
    if tag not in SYMBOL_TYPES:
        raise KeyError(tag)
    return SYMBOL_TYPES[tag]


def bytes_to_units(data: bytes) -> List[int]:
    # Пары байтов в порядке little-endian, как в исходных файлах
    if len(data) % 2:
        raise ValueError("Byte data must have an even length")
    return [value for (value,) in struct.iter_unpack('<H', data)]


def units_to_bytes(units: Iterable[int]) -> bytes:
    units = list(units)
    return struct.pack(f'<{len(units)}H', *units)
