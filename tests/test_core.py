import pytest

from twmap.core import Chunk
from twmap.fields import StructField, StringField, ArrayField
from twmap.properties import Dependency, VersionDependency
from twmap.exceptions import OutOfBounds


def test_chunk():
    """Check that building a Chunk from fields behaves correctly."""
    class Dummy(Chunk):
        a = StructField('I', default=0xbad)
        b = StringField(0x10)
        c = StructField('I', default=0xdeadbeef)

    dummy = Dummy()

    assert dummy.a.raw == b'\xad\x0b\x00\x00'
    assert dummy.a.father is dummy

    assert dummy.size == 0x18
    assert dummy.pack() == (
        b'\xad\x0b\x00\x00' +
        b'\x00' * 0x10 +
        b'\xef\xbe\xad\xde'
    )


def test_chunk_instances_are_independent():
    class Dummy(Chunk):
        a = StructField('i')

    first, second = Dummy(), Dummy(a=5)

    assert first.a.value == 0
    assert second.a.value == 5
    assert first != second

    with pytest.raises(AttributeError):
        Dummy(miao=1)


def test_chunk_inheritance():
    class Base(Chunk):
        kind = StructField('i')
        flags = StructField('i')

    class Child(Base):
        kind = StructField('i', default=3)
        extra = StructField('i')

    assert Child._meta.fields == ['kind', 'flags', 'extra']
    assert Child().kind.value == 3


def test_chunk_w_dependencies():
    class Example(Chunk):
        length = StructField('i')
        data = StringField(Dependency('.length'))

    example = Example(b'\x05\x00\x00\x00kebab and more')

    assert example.length.value == 5
    assert example.data.value == b'kebab'
    assert example.size == 9


def test_chunk_w_version_dependency():
    class Example(Chunk):
        version = StructField('i')
        num = StructField('i')
        sizes = ArrayField(StructField('i'), n=VersionDependency(4, '.version', '.num'))

    old = Example(b'\x03\x00\x00\x00\x02\x00\x00\x00')
    assert len(old.sizes) == 0

    new = Example(b'\x04\x00\x00\x00\x02\x00\x00\x00\x0a\x00\x00\x00\x0b\x00\x00\x00')
    assert [_.value for _ in new.sizes] == [10, 11]


def test_nested_chunks():
    class Point(Chunk):
        x = StructField('i')
        y = StructField('i')

    class Line(Chunk):
        start = Point()
        points = ArrayField(Point(), n=2)

    line = Line(bytes(range(24)))

    assert line.start.x.value == 0x03020100
    assert line.points[1].y.value == 0x17161514
    assert line.values()['points'][0] == {'x': 0x0b0a0908, 'y': 0x0f0e0d0c}
    assert line.pack() == bytes(range(24))


def test_unpack_error_chain():
    class Inner(Chunk):
        value_a = StructField('i')
        value_b = StructField('i')

    class Outer(Chunk):
        header = StructField('i')
        inner = Inner()

    with pytest.raises(OutOfBounds) as e:
        Outer(b'\x00' * 10)

    assert e.value.chain == ['value_b', 'inner']
    assert 'inner.value_b' in str(e.value)


def test_dependency_is_relative():
    with pytest.raises(ValueError):
        Dependency('header.num_items')

    with pytest.raises(AttributeError):
        Dependency('.length').resolve(StringField(4))
