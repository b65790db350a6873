"""
Командная строка для кодека Хаффмана.
"""

import argparse
import sys

from archiver import Archiver
from codec import build_codes, compress_to_base64, decompress_from_base64, encode_raw, HuffmanEncoder
from errors import HuffmanError
from symbols import CHAR


EXAMPLE_TEXT = ("This is an example string for Huffman encoding. "
                "The more data provided, the better the compression.")


def demo():
    codes = build_codes(EXAMPLE_TEXT)

    bits = HuffmanEncoder.encode(EXAMPLE_TEXT, codes).bits
    print(f"Compressed (binary): {bits}")
    decoded = ''.join(HuffmanEncoder.decode(bits, codes))
    print(f"Decompressed:        {decoded}")
    print()

    encoded = compress_to_base64(EXAMPLE_TEXT, codes)
    print(f"Compressed (Base64): {encoded}")
    decoded = decompress_from_base64(encoded, codes, CHAR)
    print(f"Decompressed:        {decoded}")
    print()

    raw_size = len(encode_raw(EXAMPLE_TEXT, codes))
    original_size = len(EXAMPLE_TEXT.encode('utf-8'))
    print(f"Size: {original_size} -> {raw_size} bytes "
          f"({raw_size / original_size * 100:.1f}%)")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Huffman file compressor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py compress file.txt
  python main.py decompress file.zipped -d ./output
  python main.py demo
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    compress_parser = subparsers.add_parser('compress', aliases=['c', 'z'], help='Compress file')
    compress_parser.add_argument('file', help='File to compress')
    compress_parser.add_argument('-d', '--dir', default='.', help='Output directory')

    decompress_parser = subparsers.add_parser('decompress', aliases=['d', 'u'], help='Decompress file')
    decompress_parser.add_argument('file', help='File to decompress')
    decompress_parser.add_argument('-d', '--dir', default='.', help='Output directory')

    subparsers.add_parser('demo', help='Show an example round trip')

    args = parser.parse_args(argv)

    if args.command in (None, 'demo'):
        demo()
        return 0

    archiver = Archiver(output_dir=args.dir)

    try:
        if args.command in ('compress', 'c', 'z'):
            result = archiver.compress_file(args.file)
        else:
            result = archiver.decompress_file(args.file)

    except (HuffmanError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0 if result else 1


if __name__ == '__main__':
    sys.exit(main())
