'''
# Quads

The quads of a quad layer live in a data block as an array of fixed size
records (152 bytes each):

    .------------------------------------------------.
    | points[5]    4 corners + pivot, (x, y) int32   |
    | colors[4]    (r, g, b, a) int32 per corner     |
    | texcoords[4] (x, y) int32 per corner           |
    | pos_env, pos_env_offset                        |
    | color_env, color_env_offset                    |
    '------------------------------------------------'

Coordinates are fixed point numbers with 10 bits of fraction, texture
coordinates use 10 bits of fraction as well (1024 is the whole texture).
'''
from typing import List

from .core import Chunk
from . import fields
from .streams import Stream
from .exceptions import SizeMismatch


FIXED_SHIFT = 10


def to_fixed(value: float) -> int:
    return int(round(value * (1 << FIXED_SHIFT)))


def from_fixed(value: int) -> float:
    return value / (1 << FIXED_SHIFT)


class Point(Chunk):
    x = fields.StructField('i')
    y = fields.StructField('i')


class Color(Chunk):
    r = fields.StructField('i', default=255)
    g = fields.StructField('i', default=255)
    b = fields.StructField('i', default=255)
    a = fields.StructField('i', default=255)


class Quad(Chunk):
    points           = fields.ArrayField(Point(), n=5)
    colors           = fields.ArrayField(Color(), n=4)
    texcoords        = fields.ArrayField(Point(), n=4)
    pos_env          = fields.StructField('i', default=-1)
    pos_env_offset   = fields.StructField('i')
    color_env        = fields.StructField('i', default=-1)
    color_env_offset = fields.StructField('i')

    @classmethod
    def rectangle(cls, x: float, y: float, width: float, height: float) -> 'Quad':
        '''An axis-aligned quad with the pivot at the center and the whole
        texture mapped on it.'''
        quad = cls()
        corners = [
            (x, y),
            (x + width, y),
            (x, y + height),
            (x + width, y + height),
            (x + width / 2, y + height / 2),
        ]
        for point, (px, py) in zip(quad.points, corners):
            point.x.value = to_fixed(px)
            point.y.value = to_fixed(py)

        full = 1 << FIXED_SHIFT
        for point, (tx, ty) in zip(quad.texcoords, [(0, 0), (full, 0), (0, full), (full, full)]):
            point.x.value = tx
            point.y.value = ty

        return quad


QUAD_SIZE = Quad().size


def encode_quads(quads: List[Quad]) -> bytes:
    stream = Stream(bytearray(QUAD_SIZE * len(quads)))
    for quad in quads:
        quad.pack_into(stream)

    return stream.getvalue()


def decode_quads(data: bytes, n: int) -> List[Quad]:
    if len(data) != n * QUAD_SIZE:
        raise SizeMismatch(f'quad data of {len(data)} bytes for {n} quads (expected {n * QUAD_SIZE})')

    stream = Stream(data)

    return [Quad(stream) for _ in range(n)]
