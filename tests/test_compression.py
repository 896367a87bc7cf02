import zlib

import pytest

from twmap import compression
from twmap.exceptions import CompressionError, SizeMismatch


def test_roundtrip():
    data = b'\x00' * 1000 + bytes(range(256))

    compressed = compression.compress(data)

    assert len(compressed) < len(data)
    assert compression.decompress(compressed, expected=len(data)) == data


def test_zlib_framing():
    """Blocks written by other encoders must be readable."""
    data = b'kebab' * 10

    assert compression.decompress(zlib.compress(data, 9)) == data
    assert compression.decompress(compression.compress(data, level=1)) == data


def test_wrong_expected_size():
    with pytest.raises(SizeMismatch):
        compression.decompress(compression.compress(b'1234'), expected=5)


def test_corrupted():
    with pytest.raises(CompressionError):
        compression.decompress(b'\x78\x9c this is not deflate')


def test_split_blocks():
    assert compression.split_blocks(b'aabbbc', [0, 2, 5]) == [b'aa', b'bbb', b'c']
    assert compression.split_blocks(b'', []) == []
