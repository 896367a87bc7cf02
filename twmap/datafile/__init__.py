'''
# Datafile

The container of a map: a list of typed items and a list of compressed data
blocks referenced by index from the items.

    datafile = Datafile.from_file('ctf1.map')
    for layer in datafile.layers:
        grid = datafile.get_tile_grid(layer)
        ...
    data = datafile.pack()

Parsing and packing are all-or-nothing: either the whole document is built
or an exception derived from TwmapException is raised.
'''
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from ..core import Chunk
from ..enum import DatafileVersion, ItemType
from ..exceptions import TwmapException, SizeMismatch
from ..streams import Stream
from .. import compression
from ..assembler import assemble, derive_item_types
from ..items import (
    NO_INDEX,
    data_reference_fields,
    decode_payload,
    encode_payload,
    type_of_payload,
    GroupItem,
    ImageItem,
    InfoItem,
    QuadLayerItem,
    TileLayerItem,
)
from ..common.strings import encode_string, decode_string, encode_strings, decode_strings
from ..tiles import TileGrid, encode_tiles, decode_tiles
from ..quads import Quad, encode_quads, decode_quads
from .layout import (
    DatafileHeader,
    DatafileLayout,
    ItemRecord,
    ItemTypeEntry,
    HEADER_SIZE_OFFSET,
    ITEM_HEADER_SIZE,
)


logger = logging.getLogger(__name__)

INFO_FIELDS = ('author', 'map_version', 'credits', 'license')


@dataclass
class Item:
    type_id: int
    id: int
    payload: Chunk

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.type_id}:{self.id} {self.payload.__class__.__name__})>'


class DataBlock(object):
    '''A data block: the uncompressed content is what the items refer to,
    the compressed one is what is written into the file.

    The compressed bytes read from a file are kept and written back as they
    are unless the content is changed.'''

    def __init__(self, data: bytes = b'', compressed: bytes = None):
        self._data = bytes(data)
        self._compressed = compressed

    def __repr__(self):
        return f'<{self.__class__.__name__}(size={self.uncompressed_size})>'

    @classmethod
    def from_compressed(cls, compressed: bytes, uncompressed_size: int = None) -> 'DataBlock':
        return cls(compression.decompress(compressed, expected=uncompressed_size), compressed=bytes(compressed))

    @property
    def data(self) -> bytes:
        return self._data

    @data.setter
    def data(self, value: bytes):
        self._data = bytes(value)
        self._compressed = None

    @property
    def uncompressed_size(self) -> int:
        return len(self._data)

    def compress(self, level=compression.DEFAULT_LEVEL) -> bytes:
        if self._compressed is None:
            self._compressed = compression.compress(self._data, level)

        return self._compressed

    compressed = property(compress)


def check_offsets(offsets: List[int], area_size: int, what: str):
    '''Offsets start at zero, never decrease and stay inside the area.'''
    if not offsets:
        if area_size:
            raise SizeMismatch(f'{what} area of {area_size} bytes without {what}s')
        return

    if offsets[0] != 0:
        raise SizeMismatch(f'first {what} offset is {offsets[0]} instead of 0')

    for previous, offset in zip(offsets, offsets[1:]):
        if offset < previous:
            raise SizeMismatch(f'{what} offsets are decreasing ({previous} -> {offset})')

    if offsets[-1] > area_size:
        raise SizeMismatch(f'{what} offset {offsets[-1]} is past the end of the area ({area_size} bytes)')


def check_item_types(item_types: List[ItemTypeEntry], records: List[ItemRecord]):
    '''The table of the item types must partition the items in contiguous
    runs, one for each type, sorted by type.'''
    type_ids = [_.type_id.value for _ in item_types]
    if type_ids != sorted(set(type_ids)):
        raise SizeMismatch(f'item types are repeated or not sorted: {type_ids}')

    position = 0
    for entry in sorted(item_types, key=lambda _: _.start.value):
        start, num = entry.start.value, entry.num.value
        if start != position:
            raise SizeMismatch(f'{entry!r} starts at {start} but the previous run ends at {position}')
        if num < 0 or start + num > len(records):
            raise SizeMismatch(f'{entry!r} is outside of the {len(records)} items')

        for record in records[start:start + num]:
            if record.type_id != entry.type_id.value:
                raise SizeMismatch(f'item {record.type_id}:{record.id} found in the run of {entry!r}')

        position = start + num

    if position != len(records):
        raise SizeMismatch(f'item types count {position} items but there are {len(records)}')


def _fill(array, values):
    array.clear()
    for value in values:
        element = array.instance_element()
        element.value = value
        array.append(element)


class Datafile(object):
    '''The decoded map: header (None if never read), table of the item
    types as read, items and data blocks.'''

    def __init__(self, items: List[Item] = None, data: List[DataBlock] = None):
        self.header: Optional[DatafileHeader] = None
        self.item_types: List[ItemTypeEntry] = []
        self.items: List[Item] = list(items) if items is not None else []
        self.data: List[DataBlock] = list(data) if data is not None else []

    def __repr__(self):
        return f'<{self.__class__.__name__}(items={len(self.items)}, data={len(self.data)})>'

    # reading

    @classmethod
    def from_file(cls, path: str) -> 'Datafile':
        with open(path, 'rb') as f:
            return cls.parse(f.read())

    @classmethod
    def parse(cls, source) -> 'Datafile':
        stream = source if isinstance(source, Stream) else Stream(source)
        start = stream.tell()

        layout = DatafileLayout(stream)
        header = layout.header

        available = len(stream) - start - HEADER_SIZE_OFFSET
        if header.body_size.value > available:
            raise SizeMismatch(f'header declares {header.body_size.value} bytes but only {available} are available')
        if header.body_size.value < available:
            logger.warning('ignoring %d trailing bytes' % (available - header.body_size.value))
        if header.swaplen.value != header.body_size.value - header.data_size.value:
            logger.warning('swaplen is %d instead of %d' % (
                header.swaplen.value, header.body_size.value - header.data_size.value))

        records = cls._unpack_records(layout)
        check_item_types(list(layout.item_types), records)

        datafile = cls()
        datafile.header = header
        datafile.item_types = list(layout.item_types)
        datafile.data = cls._unpack_blocks(layout)

        for record in records:
            try:
                payload = decode_payload(record.type_id, record.payload.value)
            except TwmapException as e:
                e.chain.append(f'items[{record.type_id}:{record.id}]')
                raise
            datafile.items.append(Item(record.type_id, record.id, payload))

        logger.debug('parsed %r (version %d)' % (datafile, header.version.value.value))

        return datafile

    @staticmethod
    def _unpack_records(layout: DatafileLayout) -> List[ItemRecord]:
        area = layout.item_area.value
        offsets = [_.value for _ in layout.item_offsets]
        check_offsets(offsets, len(area), 'item')

        records = []
        for idx, (start, end) in enumerate(zip(offsets, offsets[1:] + [len(area)])):
            try:
                record = ItemRecord(area[start:end])
            except TwmapException as e:
                e.chain.append(f'item_area[{idx}]')
                raise

            if ITEM_HEADER_SIZE + record.length.value != end - start:
                raise SizeMismatch(
                    f'item {idx} declares {record.length.value} bytes but spans {end - start - ITEM_HEADER_SIZE}')

            records.append(record)

        return records

    @staticmethod
    def _unpack_blocks(layout: DatafileLayout) -> List[DataBlock]:
        area = layout.data_area.value
        offsets = [_.value for _ in layout.data_offsets]
        check_offsets(offsets, len(area), 'data')

        sizes = [_.value for _ in layout.data_sizes] if layout.header.has_data_sizes else [None] * len(offsets)

        blocks = []
        for idx, (compressed, size) in enumerate(zip(compression.split_blocks(area, offsets), sizes)):
            try:
                blocks.append(DataBlock.from_compressed(compressed, size))
            except TwmapException as e:
                e.chain.append(f'data[{idx}]')
                raise

        return blocks

    # writing

    def pack(self, version=DatafileVersion.V4, compression_level=compression.DEFAULT_LEVEL) -> bytes:
        '''Serialize the map. The items are written in canonical order (see
        twmap.assembler), this instance is left untouched.'''
        version = DatafileVersion(version)

        items = assemble(self.items)
        records = [ItemRecord.build(_.type_id, _.id, encode_payload(_.payload)) for _ in items]
        for record in records:
            record.check_size()

        blocks = [_.compress(compression_level) for _ in self.data]

        item_offsets, offset = [], 0
        for record in records:
            item_offsets.append(offset)
            offset += record.size

        data_offsets, offset = [], 0
        for block in blocks:
            data_offsets.append(offset)
            offset += len(block)

        layout = DatafileLayout()
        for type_id, start, num in derive_item_types(items):
            layout.item_types.append(ItemTypeEntry(type_id=type_id, start=start, num=num))
        _fill(layout.item_offsets, item_offsets)
        _fill(layout.data_offsets, data_offsets)
        if version == DatafileVersion.V4:
            _fill(layout.data_sizes, [_.uncompressed_size for _ in self.data])
        layout.item_area.value = b''.join([_.pack() for _ in records])
        layout.data_area.value = b''.join(blocks)

        header = layout.header
        header.version.value = version
        header.num_item_types.value = len(layout.item_types)
        header.num_items.value = len(records)
        header.num_data.value = len(blocks)
        header.item_size.value = layout.item_area.size
        header.data_size.value = layout.data_area.size
        header.body_size.value = layout.size - HEADER_SIZE_OFFSET
        header.swaplen.value = header.body_size.value - header.data_size.value

        logger.debug('packing %d items and %d data blocks in %d bytes' % (len(records), len(blocks), layout.size))

        return layout.pack()

    def save(self, path: str, **kwargs):
        data = self.pack(**kwargs)
        with open(path, 'wb') as f:
            f.write(data)

    def normalize(self) -> 'Datafile':
        '''Put the items in canonical order, as they will be written.'''
        self.items = assemble(self.items)

        return self

    # items

    def iter_items(self, type_id: int) -> Iterator[Item]:
        return (_ for _ in self.items if _.type_id == type_id)

    def payloads(self, type_id: int) -> List[Chunk]:
        return [_.payload for _ in self.iter_items(type_id)]

    def find(self, type_id: int, id: int) -> Optional[Item]:
        for item in self.iter_items(type_id):
            if item.id == id:
                return item

        return None

    def item_of(self, payload: Chunk) -> Item:
        for item in self.items:
            if item.payload is payload:
                return item

        raise ValueError(f'{payload!r} is not in this map')

    def add_item(self, payload: Chunk, type_id: int = None) -> Item:
        '''Insert an item after the last one with the same or a lower type.'''
        type_id = type_of_payload(payload) if type_id is None else type_id
        before = [idx for idx, _ in enumerate(self.items) if _.type_id <= type_id]

        item = Item(type_id, len([_ for _ in self.items if _.type_id == type_id]), payload)
        self.items.insert(before[-1] + 1 if before else 0, item)

        return item

    def remove_item(self, item: Item):
        for idx, _ in enumerate(self.items):
            if _ is item:
                del self.items[idx]
                return

        raise ValueError(f'{item!r} is not in this map')

    @property
    def images(self) -> List[ImageItem]:
        return self.payloads(ItemType.IMAGE)

    @property
    def groups(self) -> List[GroupItem]:
        return self.payloads(ItemType.GROUP)

    @property
    def layers(self) -> List[Chunk]:
        return self.payloads(ItemType.LAYER)

    def group_layers(self, group: GroupItem) -> List[Chunk]:
        start = group.start_layer.value
        return self.layers[start:start + group.num_layers.value]

    # data blocks

    def get_data(self, index: int) -> bytes:
        if not 0 <= index < len(self.data):
            raise IndexError(f'no data block with index {index}')

        return self.data[index].data

    def add_data(self, raw: bytes) -> int:
        self.data.append(DataBlock(raw))

        return len(self.data) - 1

    def replace_data(self, index: int, raw: bytes):
        if not 0 <= index < len(self.data):
            raise IndexError(f'no data block with index {index}')

        self.data[index].data = raw

    def compact(self) -> int:
        '''Drop the data blocks no item refers to and renumber the references
        to the others, returning how many blocks were dropped.

        Nothing is dropped if an item we don't understand is present or some
        reference is out of range.'''
        references = []
        for item in self.items:
            fields = data_reference_fields(item.payload)
            if fields is None:
                logger.debug('not compacting: %r could refer to any data block' % item)
                return 0
            references.extend([_ for _ in fields if _.value != NO_INDEX])

        used = sorted({_.value for _ in references})
        if used and not (0 <= used[0] and used[-1] < len(self.data)):
            logger.warning('not compacting: references out of range %s' % used)
            return 0

        dropped = len(self.data) - len(used)
        if not dropped:
            return 0

        remap = {old: new for new, old in enumerate(used)}
        self.data = [self.data[_] for _ in used]
        for field in references:
            field.value = remap[field.value]

        logger.debug('dropped %d unreferenced data blocks' % dropped)

        return dropped

    def get_string(self, index: int) -> Optional[str]:
        if index == NO_INDEX:
            return None

        return decode_string(self.get_data(index))

    def add_string(self, text: Optional[str]) -> int:
        if text is None:
            return NO_INDEX

        return self.add_data(encode_string(text))

    def get_strings(self, index: int) -> List[str]:
        if index == NO_INDEX:
            return []

        return decode_strings(self.get_data(index))

    def add_strings(self, texts: List[str]) -> int:
        if not texts:
            return NO_INDEX

        return self.add_data(encode_strings(texts))

    # info

    @property
    def info_item(self) -> InfoItem:
        '''The info item of the map; a map without one gets a default
        item not added to the document.'''
        infos = self.payloads(ItemType.INFO)

        return infos[0] if infos else InfoItem()

    def info(self) -> Dict:
        item = self.info_item
        result = {name: self.get_string(getattr(item, name).value) for name in INFO_FIELDS}
        result['settings'] = self.get_strings(item.settings.value)

        return result

    def set_info(self, **values):
        '''Set the strings of the info item; None (or no settings) removes
        the string. The data block of a string already present is reused.'''
        for name in values:
            if name != 'settings' and name not in INFO_FIELDS:
                raise AttributeError(f'the info item has no string named \'{name}\'')

        infos = self.payloads(ItemType.INFO)
        item = infos[0] if infos else self.add_item(InfoItem()).payload

        removed = False
        for name, value in values.items():
            if name == 'settings':
                raw = encode_strings(value) if value else None
            else:
                raw = encode_string(value) if value is not None else None

            field = getattr(item, name)
            if raw is None:
                removed |= field.value != NO_INDEX
                field.value = NO_INDEX
            elif field.value == NO_INDEX:
                field.value = self.add_data(raw)
            else:
                self.replace_data(field.value, raw)

        if removed:
            self.compact()

    # layers

    def get_tile_grid(self, layer: TileLayerItem) -> TileGrid:
        if layer.data.value == NO_INDEX:
            return TileGrid(layer.width.value, layer.height.value)

        return decode_tiles(self.get_data(layer.data.value), layer.width.value, layer.height.value)

    def set_tile_grid(self, layer: TileLayerItem, grid: TileGrid):
        raw = encode_tiles(grid)

        if layer.data.value == NO_INDEX:
            layer.data.value = self.add_data(raw)
        else:
            self.replace_data(layer.data.value, raw)

        layer.width.value = grid.width
        layer.height.value = grid.height

    def get_quads(self, layer: QuadLayerItem) -> List[Quad]:
        if layer.data.value == NO_INDEX:
            return []

        return decode_quads(self.get_data(layer.data.value), layer.num_quads.value)

    def set_quads(self, layer: QuadLayerItem, quads: List[Quad]):
        raw = encode_quads(quads)

        if layer.data.value == NO_INDEX:
            layer.data.value = self.add_data(raw)
        else:
            self.replace_data(layer.data.value, raw)

        layer.num_quads.value = len(quads)
