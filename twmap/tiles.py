'''
# Tile grids

The tiles of a tile layer are stored in a data block, row after row, four bytes
for each cell

    .----.-------.------.----------.
    | id | flags | skip | reserved |
    '----'-------'------'----------'

The flags are shared with the renderer and are never touched by the codec:

 - bits 0-1: rotation in steps of 90 degrees
 - bit 2: horizontal flip
 - bit 3: vertical flip
'''
import logging
import struct
from dataclasses import dataclass
from typing import List

from bitstring import BitArray

from .exceptions import SizeMismatch


logger = logging.getLogger(__name__)

TILE_SIZE = 4

_TILE = struct.Struct('<4B')


@dataclass(frozen=True)
class Tile:
    id: int = 0
    flags: int = 0
    skip: int = 0
    reserved: int = 0


EMPTY_TILE = Tile()


@dataclass(frozen=True)
class TileFlags:
    '''Bit-level view of the flags of a tile.'''
    rotation: int = 0
    hflip: bool = False
    vflip: bool = False
    extra: int = 0  # bits 4-7 kept untouched

    @classmethod
    def from_int(cls, flags: int) -> 'TileFlags':
        # index 0 is the most significant bit
        bits = BitArray(uint=flags, length=8)

        return cls(
            rotation=bits[6:8].uint,
            hflip=bits[5],
            vflip=bits[4],
            extra=bits[0:4].uint,
        )

    def to_int(self) -> int:
        if not 0 <= self.rotation <= 3:
            raise ValueError(f'rotation must be a step between 0 and 3, not {self.rotation}')

        bits = BitArray(uint=self.extra, length=4)
        bits.append(BitArray(bool=self.vflip))
        bits.append(BitArray(bool=self.hflip))
        bits.append(BitArray(uint=self.rotation, length=2))

        return bits.uint

    @property
    def degrees(self) -> int:
        return self.rotation * 90


def compose_flags(rotation=0, hflip=False, vflip=False) -> int:
    return TileFlags(rotation=rotation, hflip=hflip, vflip=vflip).to_int()


class TileGrid(object):
    '''Rectangular grid of tiles in row-major order.'''

    def __init__(self, width: int, height: int, tiles: List[Tile] = None):
        if width < 0 or height < 0:
            raise ValueError(f'invalid size {width}x{height}')

        self.width = width
        self.height = height
        self.tiles = list(tiles) if tiles is not None else [EMPTY_TILE] * (width * height)

        if len(self.tiles) != width * height:
            raise SizeMismatch(f'{len(self.tiles)} tiles for a grid of {width}x{height}')

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.width}x{self.height})>'

    def __eq__(self, other):
        if not isinstance(other, TileGrid):
            return NotImplemented

        return (self.width, self.height, self.tiles) == (other.width, other.height, other.tiles)

    __hash__ = None

    def __len__(self):
        return len(self.tiles)

    def __iter__(self):
        return iter(self.tiles)

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f'({x}, {y}) is outside of a grid of {self.width}x{self.height}')

        return y * self.width + x

    def get(self, x: int, y: int) -> Tile:
        return self.tiles[self._index(x, y)]

    def set(self, x: int, y: int, tile: Tile):
        self.tiles[self._index(x, y)] = tile

    def fill(self, tile: Tile):
        self.tiles = [tile] * (self.width * self.height)

    def rows(self):
        for y in range(self.height):
            yield self.tiles[y * self.width:(y + 1) * self.width]

    def resize(self, width: int, height: int, tile: Tile = EMPTY_TILE) -> 'TileGrid':
        '''Return a new grid keeping the overlapping region of this one.'''
        resized = TileGrid(width, height)
        resized.fill(tile)

        for y in range(min(height, self.height)):
            for x in range(min(width, self.width)):
                resized.set(x, y, self.get(x, y))

        return resized


def encode_tiles(grid: TileGrid) -> bytes:
    raw = bytearray(len(grid.tiles) * TILE_SIZE)
    for idx, tile in enumerate(grid.tiles):
        _TILE.pack_into(raw, idx * TILE_SIZE, tile.id, tile.flags, tile.skip, tile.reserved)

    return bytes(raw)


def decode_tiles(data: bytes, width: int, height: int) -> TileGrid:
    expected = width * height * TILE_SIZE
    if len(data) != expected:
        raise SizeMismatch(f'tile data of {len(data)} bytes for a grid of {width}x{height} (expected {expected})')

    logger.debug('decoding %dx%d tiles' % (width, height))

    return TileGrid(width, height, [Tile(*_) for _ in _TILE.iter_unpack(data)])
