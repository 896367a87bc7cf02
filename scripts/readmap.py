#!/usr/bin/env python3
import sys
import os
import logging

from twmap import Datafile
from twmap.enum import ItemType
from twmap.items import TileLayerItem, QuadLayerItem, UnknownItem

if 'DEBUG' in os.environ:
    logging.basicConfig()
    logger = logging.getLogger('twmap')
    logger.setLevel(logging.DEBUG)


def usage(progname):
    print('usage: %s <map file>' % progname)
    sys.exit(1)


def dump_header(hdr):
    print(f'''Datafile Header:
  Signature:                         {hdr.signature.value.decode()}
  Version:                           {hdr.version.value.value}
  Size:                              {hdr.body_size.value} (bytes after the first 16)
  Swaplen:                           {hdr.swaplen.value}
  Number of item types:              {hdr.num_item_types.value}
  Number of items:                   {hdr.num_items.value}
  Number of data blocks:             {hdr.num_data.value}
  Size of the items:                 {hdr.item_size.value} (bytes)
  Size of the data:                  {hdr.data_size.value} (bytes)''')


def dump_item_types(item_types):
    print('''Item Types:
  Type                Start  Num''')
    for entry in item_types:
        type_id = entry.type_id.value
        name = ItemType(type_id).name if type_id in ItemType.__members__.values() else f'0x{type_id:04x}'
        print(f'''  {name:<20}{entry.start.value:>5} {entry.num.value:>4}''')


def dump_info(datafile):
    print('Info:')
    for name, value in datafile.info().items():
        print(f'''  {name + ":":<35}{value}''')


def dump_groups(datafile):
    print('Groups:')
    for idx, group in enumerate(datafile.groups):
        print(f'''  [{idx: >2d}] {group.name.value!r:<16} offset ({group.offset_x.value}, {group.offset_y.value}) parallax ({group.parallax_x.value}, {group.parallax_y.value})''')
        for layer in datafile.group_layers(group):
            if isinstance(layer, TileLayerItem):
                kind = 'game' if layer.is_game else 'tiles'
                print(f'''       {kind:<6} {layer.name.value!r:<16} {layer.width.value}x{layer.height.value} image {layer.image.value}''')
            elif isinstance(layer, QuadLayerItem):
                print(f'''       quads  {layer.name.value!r:<16} {layer.num_quads.value} quads image {layer.image.value}''')
            elif isinstance(layer, UnknownItem):
                print(f'''       ?      {len(layer.data.value)} bytes''')


def dump_images(datafile):
    print('Images:')
    for idx, image in enumerate(datafile.images):
        name = datafile.get_string(image.image_name.value)
        where = 'external' if image.is_external else f'data block {image.image_data.value}'
        print(f'''  [{idx: >2d}] {name!r:<20} {image.width.value}x{image.height.value} {where}''')


def dump_data(data):
    print('''Data blocks:
  [Nr] Compressed  Size''')
    for idx, block in enumerate(data):
        print(f'''  [{idx: >2d}] {len(block.compressed):>10}  {block.uncompressed_size}''')


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    path = sys.argv[1]

    datafile = Datafile.from_file(path)

    dump_header(datafile.header)
    dump_item_types(datafile.item_types)
    dump_info(datafile)
    dump_images(datafile)
    dump_groups(datafile)
    dump_data(datafile.data)
