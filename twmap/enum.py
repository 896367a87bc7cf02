from enum import Enum, IntEnum, IntFlag


class DatafileVersion(Enum):
    '''Version 4 adds the table with the uncompressed size of the data blocks'''
    V3 = 3
    V4 = 4


class ItemType(IntEnum):
    VERSION  = 0
    INFO     = 1
    IMAGE    = 2
    ENVELOPE = 3
    GROUP    = 4
    LAYER    = 5
    ENVPOINT = 6


class LayerType(IntEnum):
    INVALID = 0
    GAME    = 1
    TILES   = 2
    QUADS   = 3
    FRONT   = 4
    TELE    = 5
    SPEEDUP = 6
    SWITCH  = 7
    TUNE    = 8
    SOUNDS_DEPRECATED = 9
    SOUNDS  = 10


class LayerFlag(IntFlag):
    NONE = 0
    DETAIL = 1 << 0


class TilemapFlag(IntFlag):
    '''Flags of the tilemap (not of the single tiles): the game layer is
    a tile layer with the GAME flag set.'''
    NONE = 0
    GAME = 1 << 0
