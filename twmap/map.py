'''
Helpers for building and editing maps the way the editor does: groups own a
contiguous range of layers, so inserting, moving or removing a layer must
shift the ranges of the groups that follow.
'''
import logging
from typing import Optional

from .datafile import Datafile, Item
from .enum import ItemType, TilemapFlag
from .items import (
    NO_INDEX,
    EnvpointItem,
    GroupItem,
    ImageItem,
    InfoItem,
    QuadLayerItem,
    TileLayerItem,
    VersionItem,
)
from .tiles import TileGrid


logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 50
DEFAULT_HEIGHT = 50


def new_map(width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> Datafile:
    '''A fresh map with a "Game" group containing an empty game layer.'''
    datafile = Datafile()
    datafile.add_item(VersionItem())
    datafile.add_item(InfoItem())

    group = add_group(datafile, name='Game')
    add_tile_layer(datafile, group, width, height, name='Game', game=True)

    datafile.add_item(EnvpointItem())

    return datafile


def add_group(datafile: Datafile, name: str = '', **values) -> GroupItem:
    '''Append a group; its layers start after the last layer of the map.'''
    group = GroupItem(name=name, start_layer=len(datafile.layers), num_layers=0, **values)
    datafile.add_item(group)

    return group


def _layer_position(datafile: Datafile, layer) -> int:
    '''Position of the layer among the layers of the map.'''
    for idx, _ in enumerate(datafile.layers):
        if _ is layer:
            return idx

    raise ValueError(f'{layer!r} is not in this map')


def _insert_layer(datafile: Datafile, group: GroupItem, layer, index: Optional[int] = None) -> Item:
    '''Insert the layer as the index-th of the group (by default the last one).'''
    if index is None:
        index = group.num_layers.value
    if not 0 <= index <= group.num_layers.value:
        raise IndexError(f'group {group.name.value!r} has {group.num_layers.value} layers, cannot insert at {index}')

    position = group.start_layer.value + index
    layers = list(datafile.iter_items(ItemType.LAYER))

    if position > len(layers):
        raise ValueError(f'group {group.name.value!r} refers to layers past the end of the map')

    item = Item(ItemType.LAYER, position, layer)
    if position < len(layers):
        where = next(idx for idx, _ in enumerate(datafile.items) if _ is layers[position])
        datafile.items.insert(where, item)
    else:
        item = datafile.add_item(layer)

    # only the groups following this one can start at or after the position
    following = False
    for other in datafile.groups:
        if other is group:
            other.num_layers.value += 1
            following = True
        elif following and other.start_layer.value >= position:
            other.start_layer.value += 1

    logger.debug('inserted layer %r at position %d' % (layer.__class__.__name__, position))

    return item


def _detach_layer(datafile: Datafile, layer) -> int:
    '''Remove the item of the layer and shrink the ranges of the groups.'''
    position = _layer_position(datafile, layer)

    datafile.remove_item(datafile.item_of(layer))

    for group in datafile.groups:
        start, num = group.start_layer.value, group.num_layers.value
        if start <= position < start + num:
            group.num_layers.value = num - 1
        elif start > position:
            group.start_layer.value = start - 1

    return position


def add_tile_layer(datafile: Datafile, group: GroupItem, width: int, height: int,
                   name: str = '', game: bool = False, image: int = NO_INDEX,
                   grid: Optional[TileGrid] = None) -> TileLayerItem:
    layer = TileLayerItem(
        width=width,
        height=height,
        name=name,
        image=image,
        tilemap_flags=TilemapFlag.GAME if game else TilemapFlag.NONE,
    )
    datafile.set_tile_grid(layer, grid if grid is not None else TileGrid(width, height))
    _insert_layer(datafile, group, layer)

    return layer


def add_quad_layer(datafile: Datafile, group: GroupItem, quads=(), name: str = '',
                   image: int = NO_INDEX) -> QuadLayerItem:
    layer = QuadLayerItem(name=name, image=image)
    if quads:
        datafile.set_quads(layer, list(quads))
    _insert_layer(datafile, group, layer)

    return layer


def remove_layer(datafile: Datafile, layer):
    '''Remove the layer, fix the ranges of the groups and drop the data
    of the layer.'''
    _detach_layer(datafile, layer)
    datafile.compact()


def move_layer(datafile: Datafile, layer, group: GroupItem, index: Optional[int] = None):
    '''Move the layer to the group (also the one it's in) as its index-th
    layer, by default the last one.'''
    _layer_position(datafile, layer)

    in_group = any(_ is layer for _ in datafile.group_layers(group))
    limit = group.num_layers.value - (1 if in_group else 0)
    if index is not None and not 0 <= index <= limit:
        raise IndexError(f'group {group.name.value!r} has {limit} other layers, cannot move at {index}')

    _detach_layer(datafile, layer)
    _insert_layer(datafile, group, layer, index)


def add_external_image(datafile: Datafile, name: str, width: int, height: int) -> ImageItem:
    '''An image the game loads from its own resources (e.g. "grass_main").'''
    image = ImageItem(width=width, height=height, external=1, image_name=datafile.add_string(name))
    datafile.add_item(image)

    return image


def image_index(datafile: Datafile, image: ImageItem) -> int:
    '''The index used by layers to refer to the image.'''
    for idx, _ in enumerate(datafile.images):
        if _ is image:
            return idx

    raise ValueError(f'{image!r} is not in this map')
