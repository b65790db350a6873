import unittest
import tempfile
import os
import sys
import random

from huffman import HuffmanTree, count_frequencies, is_prefix_free
from bitstream import BitStream, pack_bits, unpack_bits, pack_with_length, unpack_with_length
from codec import (CompressedArtifact, HuffmanEncoder, build_codes, compress, decompress,
                   encode_raw, decode_raw, compress_to_base64, decompress_from_base64)
from format import serialize, deserialize, compress_to_container, decompress_container
from errors import BuildFailure, MalformedContainer, TruncatedStream
from symbols import BYTE, SHORT, CHAR, bytes_to_units, units_to_bytes, detect_symbol_type
from archiver import Archiver, retry
import main


class TestFrequencyTable(unittest.TestCase):
    def test_counts(self):
        self.assertEqual(count_frequencies("aaaabbbccd"), {'a': 4, 'b': 3, 'c': 2, 'd': 1})

    def test_empty(self):
        self.assertEqual(count_frequencies(b""), {})


class TestHuffmanTree(unittest.TestCase):
    def test_scenario_codes(self):
        tree = HuffmanTree().build(count_frequencies("aaaabbbccd"))
        self.assertEqual(tree.codes, {'a': '0', 'b': '10', 'd': '110', 'c': '111'})

    def test_frequent_symbols_get_shorter_codes(self):
        codes = build_codes("aaaabbbccd")
        lengths = [len(codes[s]) for s in "abcd"]
        self.assertEqual(lengths, sorted(lengths))

    def test_empty_table(self):
        tree = HuffmanTree().build({})
        self.assertTrue(tree.is_empty)
        self.assertIsNone(tree.root)

    def test_single_symbol(self):
        tree = HuffmanTree().build({'x': 5})
        self.assertTrue(tree.pass_through)
        self.assertEqual(tree.codes, {'x': '0'})

    def test_equal_weights_give_balanced_codes(self):
        codes = build_codes(bytes(range(256)))
        self.assertEqual(len(codes), 256)
        self.assertTrue(all(len(code) == 8 for code in codes.values()))

    def test_prefix_free(self):
        random.seed(7)
        for size in (2, 3, 17, 300):
            data = bytes(random.randint(0, 40) for _ in range(size))
            self.assertTrue(is_prefix_free(build_codes(data)))

    def test_tie_break_is_deterministic(self):
        data = "the quick brown fox jumps over the lazy dog"
        self.assertEqual(build_codes(data), build_codes(data))

    def test_rebuild_from_codes(self):
        codes = build_codes("aaaabbbccd")
        tree = HuffmanTree.from_codes(codes)
        self.assertEqual(tree.root.left.symbol, 'a')
        self.assertEqual(tree.root.right.left.symbol, 'b')
        self.assertEqual(tree.root.right.right.left.symbol, 'd')
        self.assertEqual(tree.root.right.right.right.symbol, 'c')

    def test_rebuild_conflicting_codes(self):
        with self.assertRaises(MalformedContainer):
            HuffmanTree.from_codes({'a': '0', 'b': '01'})
        with self.assertRaises(MalformedContainer):
            HuffmanTree.from_codes({'b': '01', 'a': '0'})
        with self.assertRaises(MalformedContainer):
            HuffmanTree.from_codes({'a': '0', 'b': ''})

    def test_rebuild_single_symbol_needs_zero_code(self):
        with self.assertRaises(MalformedContainer):
            HuffmanTree.from_codes({'a': '1'})


class TestBitStream(unittest.TestCase):
    def test_pack_msb_first(self):
        self.assertEqual(pack_bits('1'), b'\x80')
        self.assertEqual(pack_bits('101'), b'\xa0')
        self.assertEqual(pack_bits('000000011'), b'\x01\x80')
        self.assertEqual(pack_bits(''), b'')

    def test_unpack_exact_length(self):
        self.assertEqual(unpack_bits(b'\xff', 3), '111')
        self.assertEqual(unpack_bits(b'\x01\x80', 9), '000000011')
        self.assertEqual(unpack_bits(b'', 0), '')

    def test_unpack_short_data(self):
        with self.assertRaises(MalformedContainer):
            unpack_bits(b'\x00', 9)

    def test_stream(self):
        stream = BitStream()
        stream.write_bits('110')
        stream.write_bits('0101')
        self.assertEqual(stream.bit_length, 7)
        self.assertEqual(stream.to_bytes(), b'\xca')
        self.assertEqual(BitStream.from_bytes(b'\xca', 7).bits, '1100101')

    def test_length_prefix(self):
        self.assertEqual(pack_with_length('101'), b'\x00\x00\x00\x03\xa0')
        self.assertEqual(unpack_with_length(b'\x00\x00\x00\x03\xa0'), '101')

    def test_length_prefix_malformed(self):
        with self.assertRaises(MalformedContainer):
            unpack_with_length(b'\x00\x00')
        with self.assertRaises(MalformedContainer):
            unpack_with_length(b'\x00\x00\x00\x09\xa0')


class TestCodec(unittest.TestCase):
    def test_scenario(self):
        artifact = compress("aaaabbbccd")
        self.assertEqual(artifact.bit_length, 19)
        self.assertEqual(artifact.payload, b'\x0a\xbf\xc0')
        self.assertEqual(decompress(artifact), "aaaabbbccd")

    def test_empty(self):
        artifact = compress(b"")
        self.assertTrue(artifact.is_empty)
        self.assertEqual(artifact.payload, b'')
        self.assertEqual(decompress(artifact), b"")
        self.assertEqual(decompress(compress("")), "")

    def test_single_symbol(self):
        artifact = compress(b"AAAA")
        self.assertEqual(artifact.codes, {65: '0'})
        self.assertEqual(artifact.bit_length, 4)
        self.assertEqual(artifact.payload, b'\x00')
        self.assertEqual(decompress(artifact), b"AAAA")

    def test_all_distinct(self):
        artifact = compress("abcdef")
        self.assertTrue(is_prefix_free(artifact.codes))
        self.assertEqual(decompress(artifact), "abcdef")

    def test_short_units(self):
        data = [1000, 1000, 65535, 0, 1000]
        artifact = compress(data)
        self.assertIs(artifact.symbol_type, SHORT)
        self.assertEqual(decompress(artifact), data)

    def test_short_out_of_range(self):
        with self.assertRaises(ValueError):
            compress([70000])

    def test_bool_is_not_a_unit(self):
        with self.assertRaises(ValueError):
            compress([True, False])
        with self.assertRaises(ValueError):
            compress([True, 2], BYTE)

    def test_text_with_encoding(self):
        text = "Привет, мир"
        artifact = compress(text, encoding="utf-8")
        self.assertIs(artifact.symbol_type, BYTE)
        self.assertEqual(decompress(artifact), text.encode("utf-8"))
        self.assertEqual(decompress(compress(text, encoding="cp1251")).decode("cp1251"), text)

    def test_unicode(self):
        text = "♠ ♣ ♥ ♦ a b c € … •"
        self.assertEqual(decompress(compress(text)), text)

    def test_random_bytes(self):
        random.seed(42)
        data = bytes(random.randint(0, 255) for _ in range(5000))
        self.assertEqual(decompress(compress(data)), data)

    def test_bit_accounting(self):
        for data in (b"a", b"ab", b"abcabcabd", bytes(range(256)) * 3):
            artifact = compress(data)
            self.assertEqual(artifact.byte_length, (artifact.bit_length + 7) // 8)

    def test_unmapped_symbol_skipped(self):
        codes = {'a': '0', 'b': '1'}
        self.assertEqual(HuffmanEncoder.encode("abc", codes).bits, '01')

    def test_unmapped_symbol_strict(self):
        with self.assertRaises(BuildFailure):
            HuffmanEncoder.encode("abc", {'a': '0', 'b': '1'}, strict=True)

    def test_no_code_table(self):
        with self.assertRaises(BuildFailure):
            HuffmanEncoder.encode("abc", {})

    def test_truncated_stream(self):
        codes = build_codes("aaaabbbccd")
        artifact = CompressedArtifact(CHAR, codes, pack_bits('01'), 2)
        with self.assertRaises(TruncatedStream):
            decompress(artifact)

    def test_unknown_path(self):
        with self.assertRaises(MalformedContainer):
            HuffmanEncoder.decode('01', {'a': '00', 'b': '1'})

    def test_single_symbol_with_set_bit(self):
        artifact = CompressedArtifact(BYTE, {65: '0'}, b'\x40', 2)
        with self.assertRaises(MalformedContainer):
            decompress(artifact)

    def test_raw_and_base64(self):
        text = "The quick brown fox jumps over the lazy dog"
        codes = build_codes(text)
        self.assertEqual(decode_raw(encode_raw(text, codes), codes, CHAR), text)

        encoded = compress_to_base64(text, codes)
        self.assertEqual(decompress_from_base64(encoded, codes, CHAR), text)

    def test_invalid_base64(self):
        with self.assertRaises(MalformedContainer):
            decompress_from_base64("not base64!", {'a': '0', 'b': '1'})


class TestContainerFormat(unittest.TestCase):
    def test_layout(self):
        data = serialize(compress(b"aaaabbbccd"))
        self.assertEqual(data[:6], b'HUFZ\x01\x01')
        self.assertEqual(data[6:10], b'\x00\x00\x00\x04')
        self.assertEqual(data[10:14], b'a\x00\x01' + b'0')
        self.assertEqual(data[-19:], b'\x00' * 7 + b'\x03' + b'\x00' * 7 + b'\x13' + b'\x0a\xbf\xc0')

    def test_round_trip_all_types(self):
        for data in (b"Lorem ipsum dolor sit amet " * 20, [5, 5, 9, 300, 5], "héllo wörld", b"", "z"):
            self.assertEqual(decompress_container(compress_to_container(data)), data)

    def test_deserialize_fields(self):
        artifact = compress("mississippi")
        restored = deserialize(serialize(artifact))
        self.assertIs(restored.symbol_type, CHAR)
        self.assertEqual(restored.codes, artifact.codes)
        self.assertEqual(restored.payload, artifact.payload)
        self.assertEqual(restored.bit_length, artifact.bit_length)

    def test_deterministic(self):
        data = b"abracadabra, the quick brown fox"
        self.assertEqual(compress_to_container(data), compress_to_container(data))

    def test_truncated_buffer(self):
        data = compress_to_container(b"aaaabbbccd")
        for size in range(len(data)):
            with self.assertRaises(MalformedContainer):
                deserialize(data[:size])

    def test_trailing_bytes(self):
        with self.assertRaises(MalformedContainer):
            deserialize(compress_to_container(b"abc") + b'\x00')

    def test_bad_header(self):
        data = compress_to_container(b"abc")
        with self.assertRaises(MalformedContainer):
            deserialize(b'XXXX' + data[4:])
        with self.assertRaises(MalformedContainer):
            deserialize(data[:4] + b'\x02' + data[5:])
        with self.assertRaises(MalformedContainer):
            deserialize(data[:5] + b'\x09' + data[6:])

    def test_invalid_code_characters(self):
        data = bytearray(compress_to_container(b"ab"))
        # первая запись: символ (1 байт), длина кода (2 байта), код
        data[13] = ord('x')
        with self.assertRaises(MalformedContainer):
            deserialize(bytes(data))

    def test_duplicate_symbol(self):
        data = bytearray(compress_to_container(b"ab"))
        # вторая запись начинается с символа на позиции 14
        data[14] = ord('a')
        with self.assertRaises(MalformedContainer):
            deserialize(bytes(data))

    def test_payload_size_mismatch(self):
        data = bytearray(compress_to_container(b"ab"))
        # младший байт u64 длины полезной нагрузки
        data[25] += 1
        with self.assertRaises(MalformedContainer):
            deserialize(bytes(data))

    def test_prefix_conflict_in_table(self):
        # коды: a=10, b=11, c=0; код a становится 00 и конфликтует с c
        data = bytearray(compress_to_container(b"abc"))
        self.assertEqual(bytes(data[13:15]), b'10')
        data[14] = ord('0')
        with self.assertRaises(MalformedContainer):
            deserialize(bytes(data))

    def test_inconsistent_lengths(self):
        artifact = compress(b"abc")
        artifact.bit_length += 8
        with self.assertRaises(MalformedContainer):
            serialize(artifact)


class TestSymbols(unittest.TestCase):
    def test_detect(self):
        self.assertIs(detect_symbol_type("abc"), CHAR)
        self.assertIs(detect_symbol_type(b"abc"), BYTE)
        self.assertIs(detect_symbol_type([1, 2]), SHORT)

    def test_unit_conversion(self):
        self.assertEqual(bytes_to_units(b'\x01\x00\xff\xff'), [1, 65535])
        self.assertEqual(units_to_bytes([1, 65535]), b'\x01\x00\xff\xff')
        with self.assertRaises(ValueError):
            bytes_to_units(b'\x01')

    def test_bytes_through_units(self):
        data = b"Hello, units!!"
        units = bytes_to_units(data)
        self.assertEqual(units_to_bytes(decompress_container(compress_to_container(units))), data)


class TestArchiver(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.archiver = Archiver(output_dir=os.path.join(self.temp_dir, "out"), retry_delay=0)

    def tearDown(self):
        import shutil
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_compress_decompress_file(self):
        test_file = os.path.join(self.temp_dir, "test.txt")
        with open(test_file, 'wb') as f:
            f.write(b"Hello World! " * 100)

        compressed_path = self.archiver.compress_file(test_file)
        self.assertTrue(compressed_path.endswith("test.zipped"))
        self.assertLess(os.path.getsize(compressed_path), os.path.getsize(test_file))

        restored_path = self.archiver.decompress_file(compressed_path)
        self.assertTrue(restored_path.endswith("test.unzipped"))

        with open(restored_path, 'rb') as f:
            self.assertEqual(f.read(), b"Hello World! " * 100)

    def test_missing_file(self):
        self.assertIsNone(self.archiver.compress_file(os.path.join(self.temp_dir, "nope.txt")))
        self.assertIsNone(self.archiver.decompress_file(os.path.join(self.temp_dir, "nope.zipped")))

    def test_retry_recovers(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OSError("busy")
            return "done"

        self.assertEqual(retry(flaky, max_retries=3, retry_delay=0), "done")
        self.assertEqual(len(calls), 3)

    def test_retry_gives_up(self):
        def broken():
            raise OSError("gone")

        with self.assertRaises(TimeoutError):
            retry(broken, max_retries=2, retry_delay=0)

    def test_cli(self):
        test_file = os.path.join(self.temp_dir, "cli.bin")
        with open(test_file, 'wb') as f:
            f.write(bytes(range(256)) * 4)

        out_dir = os.path.join(self.temp_dir, "cli")
        self.assertEqual(main.main(['c', test_file, '-d', out_dir]), 0)
        self.assertEqual(main.main(['decompress', os.path.join(out_dir, "cli.zipped"), '-d', out_dir]), 0)

        with open(os.path.join(out_dir, "cli.unzipped"), 'rb') as f:
            self.assertEqual(f.read(), bytes(range(256)) * 4)

    def test_decompress_text_container(self):
        path = os.path.join(self.temp_dir, "text.zipped")
        with open(path, 'wb') as f:
            f.write(compress_to_container("hello €"))

        self.assertEqual(main.main(['d', path, '-d', self.temp_dir]), 0)
        with open(os.path.join(self.temp_dir, "text.unzipped"), 'rb') as f:
            self.assertEqual(f.read(), "hello €".encode("utf-8"))

    def test_decompress_units_container(self):
        path = os.path.join(self.temp_dir, "units.zipped")
        with open(path, 'wb') as f:
            f.write(compress_to_container([1, 65535, 1]))

        restored = self.archiver.decompress_file(path)
        with open(restored, 'rb') as f:
            self.assertEqual(f.read(), b'\x01\x00\xff\xff\x01\x00')

    def test_cli_corrupted_file(self):
        bad_file = os.path.join(self.temp_dir, "bad.zipped")
        with open(bad_file, 'wb') as f:
            f.write(b"HUFZ\x01")
        self.assertEqual(main.main(['d', bad_file, '-d', self.temp_dir]), 1)

    def test_demo(self):
        self.assertEqual(main.main(['demo']), 0)


def run_tests():
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestFrequencyTable))
    suite.addTests(loader.loadTestsFromTestCase(TestHuffmanTree))
    suite.addTests(loader.loadTestsFromTestCase(TestBitStream))
    suite.addTests(loader.loadTestsFromTestCase(TestCodec))
    suite.addTests(loader.loadTestsFromTestCase(TestContainerFormat))
    suite.addTests(loader.loadTestsFromTestCase(TestSymbols))
    suite.addTests(loader.loadTestsFromTestCase(TestArchiver))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(run_tests())
