class TwmapException(Exception):
    '''Base class to extend in order to throw exception in twmap.

    Beside the message it takes the chain of the fields that caused the
    exception: each chunk crossed while propagating the error appends its
    field name to it.
    '''

    def __init__(self, message='', chain=None):
        self.chain = chain if chain is not None else []
        super().__init__(message)

    def __str__(self):
        msg = super().__str__()
        if not self.chain:
            return msg

        return '%s (at %s)' % (msg, '.'.join(reversed(self.chain)))


class UnpackException(TwmapException):
    pass


class OutOfBounds(UnpackException):
    '''Reading or writing past the end of a buffer.'''

    def __init__(self, offset, requested, available, chain=None):
        self.offset = offset
        self.requested = requested
        self.available = available
        super().__init__(
            f'requested {requested} bytes at offset 0x{offset:x} but only {available} available',
            chain=chain)


class MagicException(UnpackException):
    pass


class InvalidSignature(MagicException):
    pass


class EnumException(UnpackException):
    pass


class UnsupportedVersion(EnumException):
    pass


class CompressionError(UnpackException):
    '''The data block is not a valid zlib stream.'''
    pass


class SizeMismatch(TwmapException):
    '''A declared size doesn't correspond to the actual one.

    While unpacking this means the file is corrupted, while packing it
    means somebody built an inconsistent item.'''
    pass
