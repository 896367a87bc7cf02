'''
Groups and layers store their name inline in the item as three integers,
the same way the game does with StrToInts()/IntsToStr().

Each integer contains four bytes of the (UTF-8) string, the first byte in the
most significant position, every byte biased by 128; the very last byte is
always zero, so there is room for 11 bytes. The empty name is

    0x80808080 0x80808080 0x80808000
'''
from .. import fields


NAME_INTS = 3
NAME_SIZE = NAME_INTS * 4
NAME_MAX_LENGTH = NAME_SIZE - 1


def truncate_name(name: str) -> bytes:
    '''Encode the name in UTF-8 without cutting a character in half.'''
    encoded = name.encode('utf-8')
    while len(encoded) > NAME_MAX_LENGTH:
        name = name[:-1]
        encoded = name.encode('utf-8')

    return encoded


def str_to_ints(name: str) -> bytes:
    encoded = truncate_name(name).ljust(NAME_SIZE, b'\x00')

    biased = bytearray((_ + 128) & 0xff for _ in encoded)
    # null terminate
    biased[-1] = 0

    # each integer is big endian in the string but stored little endian
    raw = b''
    for idx in range(0, NAME_SIZE, 4):
        raw += bytes(reversed(biased[idx:idx + 4]))

    return raw


def ints_to_str(raw: bytes) -> str:
    biased = b''
    for idx in range(0, NAME_SIZE, 4):
        biased += bytes(reversed(raw[idx:idx + 4]))

    encoded = bytearray((_ - 128) & 0xff for _ in biased)
    encoded[-1] = 0

    encoded = encoded[:encoded.index(0)]

    return encoded.decode('utf-8', errors='replace')


class NameField(fields.Field):
    """Name of a group or of a layer, packed in 3 integers."""

    def __init__(self, default='', **kwargs):
        super().__init__(default=default, **kwargs)

    def _set_value(self, value):
        if not isinstance(value, str):
            raise ValueError(f'a name must be a string, not {value.__class__.__name__}')

        self._value = truncate_name(value).decode('utf-8')

    def _get_size(self):
        return NAME_SIZE

    def _get_raw(self):
        return str_to_ints(self.value)

    def _set_raw(self, raw):
        self.value = ints_to_str(raw)
