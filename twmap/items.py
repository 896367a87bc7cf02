'''
# Map items

Every item of a map has a payload made of little endian int32; the kind of
payload is decided by the type of the item and, for layers, by the type
written in the layer header.

Strings and bulk data are not stored in the items: the payloads refer to
data blocks by index, -1 meaning "absent". Names of groups and layers are
the exception, packed inline (see twmap.common.names).
'''
import logging

from .core import Chunk
from . import fields
from .common.names import NameField
from .enum import ItemType, LayerFlag, LayerType, TilemapFlag
from .streams import Stream
from .exceptions import SizeMismatch


logger = logging.getLogger(__name__)

NO_INDEX = -1
RESERVED_SIZE = 5 * 4


class VersionItem(Chunk):
    version = fields.StructField('i', default=1)


class InfoItem(Chunk):
    '''Each field but the version is the index of a data block containing
    an UTF-16LE null terminated string.'''
    version     = fields.StructField('i', default=1)
    author      = fields.StructField('i', default=NO_INDEX)
    map_version = fields.StructField('i', default=NO_INDEX)
    credits     = fields.StructField('i', default=NO_INDEX)
    license     = fields.StructField('i', default=NO_INDEX)
    settings    = fields.StructField('i', default=NO_INDEX)


class ImageItem(Chunk):
    '''An external image is loaded by the game from its own resources using
    the name, otherwise image_data points to the RGBA pixels.'''
    version    = fields.StructField('i', default=1)
    width      = fields.StructField('i')
    height     = fields.StructField('i')
    external   = fields.StructField('i')
    image_data = fields.StructField('i', default=NO_INDEX)
    image_name = fields.StructField('i', default=NO_INDEX)

    @property
    def is_external(self):
        return self.external.value != 0


class GroupItem(Chunk):
    '''The layers of a group are the num_layers consecutive layer items
    starting from the start_layer-th one.'''
    version      = fields.StructField('i', default=3)
    offset_x     = fields.StructField('i')
    offset_y     = fields.StructField('i')
    parallax_x   = fields.StructField('i', default=100)
    parallax_y   = fields.StructField('i', default=100)
    start_layer  = fields.StructField('i')
    num_layers   = fields.StructField('i')
    use_clipping = fields.StructField('i')
    clip_x       = fields.StructField('i')
    clip_y       = fields.StructField('i')
    clip_w       = fields.StructField('i')
    clip_h       = fields.StructField('i')
    name         = NameField()


class LayerItem(Chunk):
    '''Header shared by every kind of layer.'''
    layer_version = fields.StructField('i')
    type          = fields.StructField('i', enum=LayerType)
    flags         = fields.StructField('i', enum=LayerFlag)

    @property
    def is_detail(self):
        return bool(self.flags.value & LayerFlag.DETAIL)


class TileLayerItem(LayerItem):
    type          = fields.StructField('i', default=LayerType.TILES, enum=LayerType)
    version       = fields.StructField('i', default=3)
    width         = fields.StructField('i')
    height        = fields.StructField('i')
    tilemap_flags = fields.StructField('i')
    color_r       = fields.StructField('i', default=255)
    color_g       = fields.StructField('i', default=255)
    color_b       = fields.StructField('i', default=255)
    color_a       = fields.StructField('i', default=255)
    color_env        = fields.StructField('i', default=NO_INDEX)
    color_env_offset = fields.StructField('i')
    image         = fields.StructField('i', default=NO_INDEX)
    data          = fields.StructField('i', default=NO_INDEX)
    name          = NameField()
    reserved      = fields.ArrayField(fields.StructField('i', default=NO_INDEX), n=5)

    @property
    def is_game(self):
        return bool(self.tilemap_flags.value & TilemapFlag.GAME) or self.type.value == LayerType.GAME

    @property
    def color(self):
        return (self.color_r.value, self.color_g.value, self.color_b.value, self.color_a.value)


class QuadLayerItem(LayerItem):
    type      = fields.StructField('i', default=LayerType.QUADS, enum=LayerType)
    version   = fields.StructField('i', default=2)
    num_quads = fields.StructField('i')
    data      = fields.StructField('i', default=NO_INDEX)
    image     = fields.StructField('i', default=NO_INDEX)
    name      = NameField()


class EnvpointItem(Chunk):
    '''Terminator of the items. The editor writes it empty; maps with envelopes
    keep here the raw envelope points.'''
    points = fields.PaddingField()


class UnknownItem(Chunk):
    '''Payload of an item we don't know how to interpret, kept as it is.'''
    data = fields.PaddingField()


type2payload = {
    ItemType.VERSION: VersionItem,
    ItemType.INFO: InfoItem,
    ItemType.IMAGE: ImageItem,
    ItemType.GROUP: GroupItem,
    ItemType.ENVPOINT: EnvpointItem,
}

layer2payload = {
    LayerType.GAME: TileLayerItem,
    LayerType.TILES: TileLayerItem,
    LayerType.QUADS: QuadLayerItem,
}

payload2type = {
    VersionItem: ItemType.VERSION,
    InfoItem: ItemType.INFO,
    ImageItem: ItemType.IMAGE,
    GroupItem: ItemType.GROUP,
    TileLayerItem: ItemType.LAYER,
    QuadLayerItem: ItemType.LAYER,
    EnvpointItem: ItemType.ENVPOINT,
}


def payload_class(type_id: int, raw: bytes):
    '''Select the class able to decode the payload.'''
    if type_id == ItemType.LAYER:
        if len(raw) < LayerItem().size:
            return UnknownItem
        layer_type = Stream(raw).seek(4).read_i32()

        return layer2payload.get(layer_type, UnknownItem)

    return type2payload.get(type_id, UnknownItem)


def decode_payload(type_id: int, raw: bytes) -> Chunk:
    cls = payload_class(type_id, raw)

    if cls is UnknownItem:
        logger.debug('item of type %d kept as raw data (%d bytes)' % (type_id, len(raw)))
        return UnknownItem(data=raw)

    if cls is EnvpointItem:
        return EnvpointItem(raw)

    expected = cls().size
    if cls is TileLayerItem and len(raw) == expected - RESERVED_SIZE:
        # maps without the reserved ints
        raw = bytes(raw) + b'\xff' * RESERVED_SIZE
    if len(raw) != expected:
        raise SizeMismatch(f'payload of {cls.__name__} must be {expected} bytes, not {len(raw)}')

    return cls(raw)


def encode_payload(payload: Chunk) -> bytes:
    return payload.pack()


def type_of_payload(payload: Chunk) -> int:
    return payload2type[payload.__class__]


data_references = {
    InfoItem: ('author', 'map_version', 'credits', 'license', 'settings'),
    ImageItem: ('image_data', 'image_name'),
    TileLayerItem: ('data',),
    QuadLayerItem: ('data',),
    VersionItem: (),
    GroupItem: (),
    EnvpointItem: (),
}


def data_reference_fields(payload: Chunk):
    '''The fields of the payload holding the index of a data block, None if
    the payload is not understood (it could refer to any block).'''
    names = data_references.get(payload.__class__)
    if names is None:
        return None

    references = [getattr(payload, _) for _ in names]
    if isinstance(payload, TileLayerItem):
        # DDNet keeps here the data of its special layers
        references.extend([_ for _ in payload.reserved if _.value != NO_INDEX])

    return references
