"""
Сжатие и распаковка файлов: чтение с повторными попытками, запись
контейнера рядом с исходным именем и отчёт о степени сжатия.
"""

import os
import time
from pathlib import Path
from typing import Callable, Optional, TypeVar

from codec import decompress
from format import compress_to_container, deserialize
from symbols import BYTE


COMPRESSED_SUFFIX = '.zipped'
DECOMPRESSED_SUFFIX = '.unzipped'
LARGE_FILE_WARNING = 200_000_000

T = TypeVar('T')


def retry(func: Callable[[], T], max_retries: int = 3, retry_delay: float = 1.0) -> T:
    """
    Вызывает func, при OSError ждёт и повторяет, удваивая задержку.
    После max_retries неудачных повторов бросает TimeoutError.
    """
    retries = 0
    while True:
        try:
            return func()
        except OSError as e:
            retries += 1
            if retries > max_retries:
                raise TimeoutError(
                    f"Operation failed after {max_retries} retries: {e}") from e

            print(f"Retry {retries}/{max_retries} after failure: {e}. "
                  f"Retrying in {retry_delay:.1f} s...")
            time.sleep(retry_delay)
            retry_delay *= 2


def read_bytes(path: str) -> bytes:
    with open(path, 'rb') as f:
        return f.read()


def write_bytes(path: str, data: bytes):
    with open(path, 'wb') as f:
        f.write(data)


class Archiver:
    def __init__(self, output_dir: str = '.', max_retries: int = 3,
                 retry_delay: float = 1.0):
        self.output_dir = output_dir
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def _retry(self, func: Callable[[], T]) -> T:
        return retry(func, self.max_retries, self.retry_delay)

    def _output_path(self, file_path: str, suffix: str) -> str:
        os.makedirs(self.output_dir, exist_ok=True)
        return os.path.join(self.output_dir, Path(file_path).stem + suffix)

    def compress_file(self, file_path: str) -> Optional[str]:
        if not os.path.isfile(file_path):
            print(f"File {file_path} could not be located")
            return None

        original_size = os.path.getsize(file_path)
        if original_size > LARGE_FILE_WARNING:
            print(f"Warning: files this large (>{LARGE_FILE_WARNING // 1_000_000}MB) "
                  f"should not be attempted")

        print(f"Compressing {file_path}...", end=" ")
        data = self._retry(lambda: read_bytes(file_path))
        container = compress_to_container(data, BYTE)

        output_path = self._output_path(file_path, COMPRESSED_SUFFIX)
        self._retry(lambda: write_bytes(output_path, container))

        ratio = (len(container) / original_size * 100) if original_size > 0 else 0
        print(f"OK ({ratio:.1f}%)")

        return output_path

    def decompress_file(self, file_path: str) -> Optional[str]:
        if not os.path.isfile(file_path):
            print(f"File {file_path} could not be located")
            return None

        print(f"Decompressing {file_path}...", end=" ")
        container = self._retry(lambda: read_bytes(file_path))
        artifact = deserialize(container)
        # Слова и символы записываются как байты (little-endian / UTF-8)
        data = artifact.symbol_type.to_bytes(decompress(artifact))

        output_path = self._output_path(file_path, DECOMPRESSED_SUFFIX)
        self._retry(lambda: write_bytes(output_path, data))
        print("OK")

        return output_path
