"""
# Teeworlds map files for humans.

A map is a "datafile": a header, a table of typed items and a list of
compressed data blocks the items refer to by index.

The layout of the file is described declaratively: every piece of the format
is a Chunk whose class attributes are Fields, and two operations are defined

 1. unpack(): read the binary data from a stream and build the high-level
    representation of it; each chunk knows how many bytes it needs.

 2. pack(): encode the high-level representation into binary data.

On top of that twmap.datafile.Datafile gives the interpretation of the items
(groups, layers, images, ...) and of the data blocks (tile grids, quads,
strings), and takes care of writing them back in the canonical order.

    from twmap import Datafile

    datafile = Datafile.from_file('dm1.map')
    for group in datafile.groups:
        print(group.name.value, datafile.group_layers(group))
"""
from .datafile import Datafile, DataBlock, Item
from .map import new_map
