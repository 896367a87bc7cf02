'''
Strings referenced by the info item and by the images are stored each one in
its own data block, encoded as UTF-16LE and terminated by a null code unit.
The settings of the map are a sequence of such strings in a single block.
'''
from typing import List


ENCODING = 'utf-16-le'
TERMINATOR = b'\x00\x00'


def _split_units(raw: bytes) -> List[bytes]:
    '''Split at the null code units, aligned to 2 bytes.'''
    strings = []
    start = 0
    for idx in range(0, len(raw) - 1, 2):
        if raw[idx:idx + 2] == TERMINATOR:
            strings.append(raw[start:idx])
            start = idx + 2

    if start < len(raw) - 1:
        # missing terminator
        strings.append(raw[start:len(raw) - (len(raw) - start) % 2])

    return strings


def encode_string(text: str) -> bytes:
    if '\x00' in text:
        raise ValueError('a string cannot contain the null character')

    return text.encode(ENCODING) + TERMINATOR


def decode_string(raw: bytes) -> str:
    strings = _split_units(raw)

    return strings[0].decode(ENCODING, errors='replace') if strings else ''


def encode_strings(texts: List[str]) -> bytes:
    return b''.join([encode_string(_) for _ in texts])


def decode_strings(raw: bytes) -> List[str]:
    return [_.decode(ENCODING, errors='replace') for _ in _split_units(raw)]
