"""
A Field is "fundamental" datatype from the format point of view, something directly
packable/unpackable by itself.
"""
import logging
import struct
from enum import Enum

from .meta import FieldBase
from .properties import Dependency, PropertyDescriptor
from .exceptions import (
    TwmapException,
    MagicException,
)


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, field_name=None, father=None, default=None, offset=None):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.field_name = field_name
        self.father = father
        self.default = default
        self.offset = offset

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.value)

    def get_dependencies(self):
        """Return the dictionary containing as key the attribute name"""
        return {_k: _v for _k, _v in self.__dict__.items() if isinstance(_v, Dependency)}

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_value(self):
        return self._value

    def _set_value(self, value):
        self._value = value

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    def _set_raw(self, value) -> None:
        raise NotImplementedError(f"method {self.__class__.__name__}._set_raw() not implemented")

    raw = property(
        fget=lambda self: self._get_raw(),
        fset=lambda self, value: self._set_raw(value),
    )

    def pack_into(self, stream):
        '''Write the field at the actual position of the stream.'''
        self.offset = stream.tell()
        stream.write(self.raw)

    def pack(self, stream=None):
        '''Return the binary representation of the field; if a stream is
        passed the data is also written into it.'''
        if stream is not None:
            self.pack_into(stream)

        return self.raw

    def unpack(self, stream):
        self.offset = stream.tell()
        self.raw = stream.read(self.size)


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module packing/unpacking
    integers to/from bytes. Everything is little endian.

    The main advantage is the possibility to indicate via the "enum" argument some subclass
    of enum.Enum so to have directly a representation of the integer value of the field itself.
    If "exception" is indicated a value not in the enum makes the unpacking fail with it,
    otherwise the integer is kept as it is.
    """

    def __init__(self, format, default=0, enum=None, exception=None, **kw):
        self.format = format
        self.enum = enum
        self.exception = exception
        super().__init__(default=default, **kw)

    def __repr__(self):
        if not self.enum:
            return '<%s(%s)>' % (self.__class__.__name__, hex(self.value))

        return f'<{self.__class__.__name__}({self.value!r})>'

    def __str__(self):
        width = self.size * 2
        formatter = '0x%%0%dx' % width
        return formatter % (self._int_value() & ((1 << (8 * self.size)) - 1),)

    def value_from_default(self):
        if not self.enum or isinstance(self.default, Enum):
            return super().value_from_default()

        return self.enum(self.default)

    def get_format(self):
        return '<%s' % self.format

    def _int_value(self):
        return self.value.value if isinstance(self.value, Enum) else self.value

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _get_raw(self) -> bytes:
        return struct.pack(self.get_format(), self._int_value())

    def _set_raw(self, raw: bytes) -> None:
        self.value = self._unpack(raw)

    def _unpack_enum(self, value: int):
        try:
            return self.enum(value)
        except ValueError:
            if self.exception:
                raise self.exception(f'{self.enum.__name__} doesn\'t have element with value {value}')

            self.logger.warning(f'enum {self.enum!r} doesn\'t have element with value 0x{value:x} in it')

        return value

    def _unpack(self, raw):
        value = struct.unpack(self.get_format(), raw)[0]
        if self.enum:
            value = self._unpack_enum(value)

        return value


class StringField(Field):
    """Represent a contiguous chunk of bytes.

    The length can be fixed or a Dependency; in the latter case any value
    can be set and the field referenced by the dependency must be updated
    by whoever builds the chunk.

    With is_magic the unpacked value must be equal to the default (or to one
    of the aliases) otherwise the exception indicated is raised.
    """

    length = PropertyDescriptor('length', int)

    def __init__(self, n=None, is_magic=False, aliases=(), exception=MagicException, **kw):
        if n is None and 'default' not in kw:
            raise ValueError(f"StringField must have 'n' or 'default' indicated!")

        self.length = n if n is not None else len(kw['default'])
        self.is_magic = is_magic
        self.aliases = tuple(aliases)
        self.exception = exception

        super().__init__(**kw)

    def __len__(self):
        return len(self.value)

    def is_variable(self):
        return 'length' in self.get_dependencies()

    def value_from_default(self):
        if self.default is not None:
            return self.default

        return b'' if self.is_variable() else b'\x00' * self.length

    def _set_value(self, value) -> None:
        value = bytes(value)
        if not self.is_variable() and len(value) != self.length:
            raise ValueError(f'you are trying to set a value with the wrong size (that is {self.length} bytes)')

        self._value = value

    def _get_size(self):
        return len(self.value)

    def _get_raw(self):
        return self.value

    def _set_raw(self, value):
        self.value = value

    def unpack(self, stream):
        self.offset = stream.tell()
        value = stream.read(self.length)

        if self.is_magic and value != self.default and value not in self.aliases:
            raise self.exception(f'magic {value!r} doesn\'t correspond to {self.default!r}')

        self.value = value


class PaddingField(StringField):
    '''Takes as much stream as possible'''

    def __init__(self, **kw):
        super().__init__(n=0, **kw)

    def is_variable(self):
        return True

    def value_from_default(self):
        return b'' if self.default is None else self.default

    def unpack(self, stream):
        self.offset = stream.tell()
        self.value = stream.read_all()


class ArrayField(Field):
    '''Un/Pack an array of fields or chunks.

    You can indicate an explicit number of elements via the parameter named "n",
    as an integer or as a Dependency.

    This class must behave like a list in python, obviously cannot implement all the methods
    since, for example, slicing what should mean?
    '''

    n = PropertyDescriptor('n', int)

    def __init__(self, field_cls, n=0, **kw):
        self.field_cls = field_cls
        self.n = n
        super().__init__(**kw)

    def value_from_default(self):
        if self.default is not None:
            return list(self.default)

        if isinstance(self.__dict__['n'], Dependency):
            return []

        return [self.instance_element() for _ in range(self.n)]

    def __getitem__(self, item):
        return self.value[item]

    def __len__(self):
        return len(self.value)

    def __iter__(self):
        return iter(self.value)

    def _set_value(self, value):
        self._value = list(value)
        for element in self._value:
            element.father = self

    def clear(self):
        self.value.clear()

    def _get_raw(self):
        return b''.join([element.raw for element in self.value])

    def _get_size(self):
        return sum([element.size for element in self.value])

    def pack_into(self, stream):
        self.offset = stream.tell()
        for element in self.value:
            element.pack_into(stream)

    def instance_element(self):
        return self.field_cls.create(father=self)  # pass the father so that we don't lose the hierarchy

    def unpack(self, stream):
        self.offset = stream.tell()
        n = self.n
        self.logger.debug('unpacking %d elements of %s' % (n, self.field_cls.__class__.__name__))

        elements = []
        for idx in range(n):
            element = self.instance_element()
            try:
                element.unpack(stream)
            except TwmapException as e:
                e.chain.append(f'[{idx}]')
                raise
            elements.append(element)

        self.value = elements

    def append(self, element):
        element.father = self
        self.value.append(element)
