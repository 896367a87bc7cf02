"""
Core module for the abstraction of a file format

"""
from typing import Tuple, List, Dict

from .fields import Field, ArrayField
from .meta import MetaChunk
from .streams import Stream
from .exceptions import TwmapException


class Chunk(Field, metaclass=MetaChunk):
    """
    Together with Field is the main class that defines a format: its main attributes
    are offset and size that identify a Chunk.

    A Chunk can contain sub-chunks and it's itself usable as a field of another
    Chunk.

    Passing a source (bytes, a path or a Stream) to the constructor unpacks it,
    passing keyword arguments named as the fields sets their values.
    """

    def __init__(self, source=None, father=None, **values):
        super().__init__(father=father)

        for name, value in values.items():
            if name not in self._meta.fields:
                raise AttributeError(f'{self.__class__.__name__} has no field named \'{name}\'')
            getattr(self, name).value = value

        if source is not None:
            stream = source if isinstance(source, Stream) else Stream(source)
            self.logger.debug('unpacking \'%s\' from %s' % (self.__class__.__name__, stream))
            self.unpack(stream)

    def init(self):
        for _, field in self.get_fields():
            field.init()

    def get_ordered_fields_name(self) -> List[str]:
        return self._meta.fields

    def get_fields(self) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, instance) for each field.'''
        return [(_, getattr(self, _)) for _ in self.get_ordered_fields_name()]

    def __repr__(self):
        msg = []
        for field_name, field in self.get_fields():
            msg.append('%s=%s' % (field_name, repr(field)))
        return '<%s(%s)>' % (self.__class__.__name__, ','.join(msg))

    def __str__(self):
        msg = ''
        for field_name, field in self.get_fields():
            msg += '%s: %s\n' % (field_name, repr(field))
        return msg

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return NotImplemented

        return self.values() == other.values()

    __hash__ = None

    def values(self) -> Dict:
        '''The python representation of the chunk as a dictionary.'''
        result = {}
        for name, field in self.get_fields():
            if isinstance(field, Chunk):
                result[name] = field.values()
            elif isinstance(field, ArrayField):
                result[name] = [_.values() if isinstance(_, Chunk) else _.value for _ in field]
            else:
                result[name] = field.value

        return result

    def _get_value(self):
        return self

    def _set_value(self, value):
        if value is not self:
            raise ValueError('set the value of the single fields of a Chunk')

    def _get_size(self):
        '''the size parameter MUST not be set but MUST be derived from the subchunks'''
        size = 0
        for _, field in self.get_fields():
            size += field.size

        return size

    def _get_raw(self):
        return b''.join([field.raw for _, field in self.get_fields()])

    def pack_into(self, stream):
        self.offset = stream.tell()

        for field_name, field_instance in self.get_fields():
            self.logger.debug('packing %s.%s at offset 0x%08x' % (self.__class__.__name__, field_name, stream.tell()))
            try:
                field_instance.pack_into(stream)
            except TwmapException as e:
                e.chain.append(field_name)
                raise

    def pack(self, stream=None):
        '''Encode the chunk into binary data.

        Without a stream a buffer of the right size is allocated; the
        sizes are computed once before writing anything.'''
        if stream is None:
            stream = Stream(bytearray(self.size))

        self.pack_into(stream)

        return stream.getvalue()

    def unpack(self, stream):
        '''Take the binary data from the actual position of the stream and
        build the representation given by the class.

        An exception raised by a field gets the name of the field appended
        to its chain and is propagated unchanged.'''
        self.offset = stream.tell()

        for field_name, field in self.get_fields():
            self.logger.debug('unpacking %s.%s at offset 0x%08x' % (self.__class__.__name__, field_name, stream.tell()))

            try:
                field.unpack(stream)
            except TwmapException as e:
                e.chain.append(field_name)
                raise

        if hasattr(self, 'validate'):
            self.validate()
