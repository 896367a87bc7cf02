import logging
import struct

from .exceptions import OutOfBounds


logger = logging.getLogger(__name__)

_I32 = struct.Struct('<i')


class Stream(object):
    '''This is a simple cursor over a buffer of bytes: it keeps track of
    the position and refuses to move past the end of the buffer.

    The buffer never grows: a writer must pre-size it (usually with
    bytearray(size)) from the sizes computed before packing.'''

    def __init__(self, obj):
        '''Here we normalize the object in order to be accessed in the same way'''
        self._type = type(obj)
        self.obj = obj
        self._position = 0

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)
        if init_method is None:
            raise ValueError('\'%s\' is the wrong kind of object to stream' % self.obj.__class__.__name__)

        init_method()

    def __repr__(self):
        return '<%s(%s, position=0x%x, size=0x%x)>' % (
            self.__class__.__name__, self._type.__name__, self._position, len(self.obj))

    def __len__(self):
        return len(self.obj)

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        with open(self.obj, 'rb') as f:
            self.obj = f.read()

    def init_bytes(self):
        '''Read-only raw bytes'''
        self.obj = memoryview(self.obj).toreadonly()

    def init_memoryview(self):
        pass

    def init_bytearray(self):
        '''Writable buffer'''
        pass

    @property
    def writable(self):
        return isinstance(self.obj, bytearray)

    def tell(self):
        return self._position

    def remaining(self):
        return len(self.obj) - self._position

    def seek(self, offset):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        if offset < 0 or offset > len(self.obj):
            raise OutOfBounds(offset, 0, len(self.obj))

        self._position = offset

        return self

    def _check(self, n):
        if n < 0 or n > self.remaining():
            raise OutOfBounds(self._position, n, self.remaining())

    def read(self, n):
        self._check(n)
        data = bytes(self.obj[self._position:self._position + n])
        self._position += n

        return data

    def read_all(self):
        return self.read(self.remaining())

    def read_i32(self):
        return _I32.unpack(self.read(_I32.size))[0]

    def write(self, data):
        if not self.writable:
            raise ValueError('the stream is read only')

        n = len(data)
        self._check(n)
        self.obj[self._position:self._position + n] = data
        self._position += n

        return n

    def write_i32(self, value):
        return self.write(_I32.pack(value))

    def getvalue(self):
        return bytes(self.obj)
