'''
# Data blocks compression

The bulk data of a map (tiles, quads, pixels, strings) is stored in data blocks
compressed with DEFLATE in a zlib envelope (RFC 1950), the same produced by
compress2() in the game and by pako.deflate() in the browser.

Different encoders produce different compressed bytes for the same input: the
only guarantee is about the decompressed content.
'''
import logging
import zlib

from .exceptions import CompressionError, SizeMismatch


logger = logging.getLogger(__name__)

DEFAULT_LEVEL = zlib.Z_DEFAULT_COMPRESSION


def compress(data: bytes, level: int = DEFAULT_LEVEL) -> bytes:
    return zlib.compress(bytes(data), level)


def decompress(data: bytes, expected=None) -> bytes:
    '''Inflate a data block; if the expected size is given (version 4 of
    the format) the output must match it.'''
    try:
        raw = zlib.decompress(bytes(data))
    except zlib.error as e:
        raise CompressionError(f'cannot decompress data block of {len(data)} bytes: {e}')

    if expected is not None and len(raw) != expected:
        raise SizeMismatch(f'data block decompressed to {len(raw)} bytes instead of {expected}')

    logger.debug('inflated %d bytes into %d' % (len(data), len(raw)))

    return raw


def split_blocks(area: bytes, offsets):
    '''Slice the data area in blocks: each block ends where the next one starts,
    the last one at the end of the area.'''
    ends = list(offsets[1:]) + [len(area)]

    return [area[start:end] for start, end in zip(offsets, ends)]
