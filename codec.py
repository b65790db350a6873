"""
Сжатие и разжатие последовательности символов кодами Хаффмана.
Работает одинаково для байтов, 16-битных слов и символов Юникода.
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from bitstream import BitStream, byte_length, pack_with_length, unpack_bits, unpack_with_length
from errors import BuildFailure, MalformedContainer, TruncatedStream
from huffman import HuffmanTree, count_frequencies
from symbols import BYTE, SymbolType, detect_symbol_type


@dataclass
class CompressedArtifact:
    symbol_type: SymbolType
    codes: Dict = field(default_factory=dict)
    payload: bytes = b''
    bit_length: int = 0

    @property
    def byte_length(self) -> int:
        return len(self.payload)

    @property
    def is_empty(self) -> bool:
        return not self.codes and self.bit_length == 0


def build_codes(symbols: Sequence) -> Dict:
    return HuffmanTree().build(count_frequencies(symbols)).codes


class HuffmanEncoder:
    @staticmethod
    def encode(symbols: Sequence, codes: Dict, strict: bool = False) -> BitStream:
        """
        Склеивает коды символов в порядке входа.
        Символ без кода пропускается; при strict=True это BuildFailure.
        """
        if not codes and len(symbols) > 0:
            raise BuildFailure("No code table available for a non-empty input")

        bitstream = BitStream()
        for symbol in symbols:
            code = codes.get(symbol)
            if code is None:
                if strict:
                    raise BuildFailure(f"Symbol {symbol!r} has no code")
                continue
            bitstream.write_bits(code)

        return bitstream

    @staticmethod
    def decode(bits: str, codes: Dict) -> List:
        tree = HuffmanTree.from_codes(codes)

        if tree.is_empty:
            if bits:
                raise MalformedContainer("Bits present but the code table is empty")
            return []

        if tree.pass_through:
            if '1' in bits:
                raise MalformedContainer("Single-symbol stream contains a set bit")
            (symbol,) = tree.codes
            return [symbol] * len(bits)

        output = []
        root = tree.root
        node = root

        for bit in bits:
            node = node.left if bit == '0' else node.right
            if node is None:
                raise MalformedContainer("Bit sequence does not match any code")

            if node.is_leaf:
                output.append(node.symbol)
                node = root

        if node is not root:
            raise TruncatedStream("Bit stream ends in the middle of a code")

        return output


def compress(symbols: Sequence, symbol_type: Optional[SymbolType] = None,
             strict: bool = False, encoding: Optional[str] = None) -> CompressedArtifact:
    # Текст с заданной кодировкой сжимается как байты
    if encoding is not None:
        symbols = symbols.encode(encoding)
        symbol_type = BYTE

    if symbol_type is None:
        symbol_type = detect_symbol_type(symbols)
    symbol_type.validate(symbols)

    if len(symbols) == 0:
        return CompressedArtifact(symbol_type=symbol_type)

    codes = build_codes(symbols)
    bitstream = HuffmanEncoder.encode(symbols, codes, strict=strict)

    return CompressedArtifact(
        symbol_type=symbol_type,
        codes=codes,
        payload=bitstream.to_bytes(),
        bit_length=bitstream.bit_length,
    )


def decompress(artifact: CompressedArtifact):
    if artifact.byte_length != byte_length(artifact.bit_length):
        raise MalformedContainer(
            f"Payload has {artifact.byte_length} bytes for {artifact.bit_length} bits")

    bits = unpack_bits(artifact.payload, artifact.bit_length)
    symbols = HuffmanEncoder.decode(bits, artifact.codes)
    return artifact.symbol_type.join(symbols)


def encode_raw(symbols: Sequence, codes: Dict, strict: bool = False) -> bytes:
    bitstream = HuffmanEncoder.encode(symbols, codes, strict=strict)
    return pack_with_length(bitstream.bits)


def decode_raw(data: bytes, codes: Dict, symbol_type: Optional[SymbolType] = None):
    symbols = HuffmanEncoder.decode(unpack_with_length(data), codes)
    if symbol_type is None:
        return symbols
    return symbol_type.join(symbols)


def compress_to_base64(symbols: Sequence, codes: Dict, strict: bool = False) -> str:
    return base64.b64encode(encode_raw(symbols, codes, strict=strict)).decode('ascii')


def decompress_from_base64(text: str, codes: Dict,
                           symbol_type: Optional[SymbolType] = None):
    try:
        data = base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise MalformedContainer(f"Invalid Base64 data: {e}") from e

    return decode_raw(data, codes, symbol_type)
