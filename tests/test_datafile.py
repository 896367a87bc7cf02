import logging
import struct
import zlib

import pytest

from twmap import Datafile, DataBlock
from twmap.datafile.layout import DatafileLayout, ItemRecord, HEADER_SIZE
from twmap.enum import DatafileVersion, ItemType
from twmap.exceptions import (
    CompressionError,
    InvalidSignature,
    UnsupportedVersion,
    OutOfBounds,
    SizeMismatch,
)
from twmap.items import ImageItem, GroupItem, TileLayerItem, InfoItem, UnknownItem, NO_INDEX
from twmap.tiles import TileGrid, Tile


def patch(raw: bytes, offset: int, data: bytes) -> bytes:
    return raw[:offset] + data + raw[offset + len(data):]


def test_empty_datafile():
    raw = Datafile().pack()

    assert raw[:4] == b'DATA'
    assert struct.unpack('<8i', raw[4:HEADER_SIZE]) == (
        4,              # version
        len(raw) - 16,  # size
        len(raw) - 16,  # swaplen, no data
        3,              # version, info and envpoint
        3,
        0,
        3 * 8 + 4 + 24,
        0,
    )

    datafile = Datafile.parse(raw)

    assert [_.type_id for _ in datafile.items] == [ItemType.VERSION, ItemType.INFO, ItemType.ENVPOINT]
    assert datafile.data == []


def test_roundtrip(small_map, small_map_raw):
    datafile = Datafile.parse(small_map_raw)

    assert datafile.items == small_map.normalize().items
    assert [_.data for _ in datafile.data] == [_.data for _ in small_map.data]

    # nothing changed so the bytes are the same
    assert datafile.pack() == small_map_raw


def test_header_sizes(small_map_raw):
    layout = DatafileLayout(small_map_raw)
    header = layout.header

    assert header.body_size.value == len(small_map_raw) - 16
    assert header.swaplen.value == header.body_size.value - header.data_size.value
    assert layout.size == len(small_map_raw)
    assert len(layout.data_sizes) == header.num_data.value


def test_offset_tables(small_map_raw):
    layout = DatafileLayout(small_map_raw)

    item_offsets = [_.value for _ in layout.item_offsets]
    assert item_offsets[0] == 0
    assert item_offsets == sorted(item_offsets)

    last = ItemRecord(layout.item_area.value[item_offsets[-1]:])
    assert item_offsets[-1] + last.size == layout.header.item_size.value

    data_offsets = [_.value for _ in layout.data_offsets]
    assert data_offsets[0] == 0
    assert data_offsets == sorted(data_offsets)
    last_block = Datafile.parse(small_map_raw).data[-1].compressed
    assert data_offsets[-1] + len(last_block) == layout.header.data_size.value


def test_item_types_table(small_map_raw):
    datafile = Datafile.parse(small_map_raw)

    entries = [(_.type_id.value, _.start.value, _.num.value) for _ in datafile.item_types]

    assert [_[0] for _ in entries] == sorted([_[0] for _ in entries])
    assert sum([_[2] for _ in entries]) == len(datafile.items)

    for type_id, start, num in entries:
        assert all(_.type_id == type_id for _ in datafile.items[start:start + num])


def test_swapped_signature(small_map_raw):
    datafile = Datafile.parse(patch(small_map_raw, 0, b'ATAD'))

    assert datafile.header.signature.value == b'ATAD'
    assert len(datafile.layers) == 3


def test_invalid_signature(small_map_raw):
    with pytest.raises(InvalidSignature):
        Datafile.parse(patch(small_map_raw, 0, b'DTAA'))


def test_unsupported_version(small_map_raw):
    with pytest.raises(UnsupportedVersion):
        Datafile.parse(patch(small_map_raw, 4, struct.pack('<i', 5)))


def test_version_3(small_map):
    raw_v3 = small_map.pack(version=3)
    raw_v4 = small_map.pack(version=DatafileVersion.V4)

    # no table of the uncompressed sizes
    assert len(raw_v4) - len(raw_v3) == 4 * len(small_map.data)

    datafile = Datafile.parse(raw_v3)

    assert datafile.header.version.value == DatafileVersion.V3
    assert [_.data for _ in datafile.data] == [_.data for _ in small_map.data]


def test_version_4_uses_sizes(small_map_raw):
    layout = DatafileLayout(small_map_raw)
    offset = layout.data_sizes[0].offset

    wrong = patch(small_map_raw, offset, struct.pack('<i', layout.data_sizes[0].value + 1))

    with pytest.raises(SizeMismatch):
        Datafile.parse(wrong)


def test_truncated_header(small_map_raw):
    """A buffer truncated in the middle of the header is not zero filled."""
    with pytest.raises(OutOfBounds):
        Datafile.parse(small_map_raw[:20])


def test_truncated_body(small_map_raw):
    with pytest.raises(OutOfBounds):
        Datafile.parse(small_map_raw[:-1])


def test_trailing_bytes(small_map_raw, caplog):
    with caplog.at_level(logging.WARNING):
        datafile = Datafile.parse(small_map_raw + b'\x00' * 8)

    assert 'trailing' in caplog.text
    assert len(datafile.items) == 8


def test_corrupted_item_size(small_map_raw):
    layout = DatafileLayout(small_map_raw)

    # the first record is the version item, its size is 4
    wrong = patch(small_map_raw, layout.item_area.offset + 4, struct.pack('<i', 0))

    with pytest.raises(SizeMismatch):
        Datafile.parse(wrong)


def test_corrupted_data_block(small_map_raw):
    layout = DatafileLayout(small_map_raw)

    wrong = patch(small_map_raw, layout.data_area.offset, b'\x00\x00')

    with pytest.raises(CompressionError):
        Datafile.parse(wrong)


def test_record_size_precondition():
    record = ItemRecord.build(ItemType.VERSION, 0, b'\x01\x00\x00\x00')

    assert record.pack() == b'\x00\x00\x00\x00\x04\x00\x00\x00\x01\x00\x00\x00'

    record.length.value = 8

    with pytest.raises(SizeMismatch):
        record.pack()

    with pytest.raises(ValueError):
        ItemRecord.build(0x10000, 0, b'')


def test_scenario_single_tile_layer():
    """A 2x2 empty tile layer references 16 zero bytes."""
    datafile = Datafile()
    layer = TileLayerItem()
    datafile.set_tile_grid(layer, TileGrid(2, 2))
    datafile.add_item(layer)

    raw = datafile.pack()
    layout = DatafileLayout(raw)

    assert zlib.decompress(layout.data_area.value) == b'\x00' * 16

    parsed = Datafile.parse(raw)
    assert parsed.get_data(parsed.layers[0].data.value) == b'\x00' * 16
    assert parsed.get_tile_grid(parsed.layers[0]) == TileGrid(2, 2)


def test_scenario_info_payload():
    layout = DatafileLayout(Datafile().pack())
    records = Datafile._unpack_records(layout)

    info = [_ for _ in records if _.type_id == ItemType.INFO]

    assert len(info) == 1
    assert struct.unpack('<6i', info[0].payload.value) == (1, -1, -1, -1, -1, -1)


def test_scenario_item_types():
    datafile = Datafile()
    datafile.add_item(ImageItem(width=64, height=64, external=1, image_name=datafile.add_string('grass_main')))
    datafile.add_item(GroupItem(num_layers=2))
    for _ in range(2):
        layer = TileLayerItem()
        datafile.set_tile_grid(layer, TileGrid(3, 3))
        datafile.add_item(layer)

    parsed = Datafile.parse(datafile.pack())

    entries = {_.type_id.value: _.num.value for _ in parsed.item_types}

    assert entries == {
        ItemType.VERSION: 1,
        ItemType.INFO: 1,
        ItemType.IMAGE: 1,
        ItemType.GROUP: 1,
        ItemType.LAYER: 2,
        ItemType.ENVPOINT: 1,
    }


def test_info(small_map, reparse):
    datafile = reparse(small_map)

    assert datafile.info() == {
        'author': 'nameless tee',
        'map_version': None,
        'credits': 'everybody',
        'license': None,
        'settings': ['sv_gametype ctf', 'sv_scorelimit 400'],
    }

    datafile.set_info(author=None, license='CC-BY-SA')
    assert datafile.info_item.author.value == NO_INDEX
    assert datafile.info()['license'] == 'CC-BY-SA'

    with pytest.raises(AttributeError):
        datafile.set_info(title='nope')


def test_info_item_not_added_by_readers():
    datafile = Datafile()

    assert isinstance(datafile.info_item, InfoItem)
    assert datafile.info()['author'] is None
    assert datafile.payloads(ItemType.INFO) == []

    datafile.set_info(author='nameless tee')

    assert len(datafile.payloads(ItemType.INFO)) == 1
    assert datafile.info()['author'] == 'nameless tee'


def test_items_access(small_map):
    game = small_map.groups[0]

    assert [_.name.value for _ in small_map.group_layers(game)] == ['Game', 'Decoration']
    assert small_map.find(ItemType.GROUP, 1).payload is small_map.groups[1]
    assert small_map.find(ItemType.GROUP, 5) is None

    item = small_map.item_of(game)
    small_map.remove_item(item)

    assert len(small_map.groups) == 1

    with pytest.raises(ValueError):
        small_map.item_of(game)

    with pytest.raises(ValueError):
        small_map.remove_item(item)


def test_data_blocks():
    datafile = Datafile()

    index = datafile.add_data(b'kebab')
    assert datafile.get_data(index) == b'kebab'

    with pytest.raises(IndexError):
        datafile.get_data(index + 1)

    assert datafile.add_string(None) == NO_INDEX
    assert datafile.get_string(NO_INDEX) is None
    assert datafile.get_strings(NO_INDEX) == []
    assert datafile.get_strings(datafile.add_strings(['a', 'b'])) == ['a', 'b']
    assert datafile.add_strings([]) == NO_INDEX


def test_data_block_keeps_compressed():
    compressed = zlib.compress(b'\x00' * 32, 9)

    block = DataBlock.from_compressed(compressed, 32)

    assert block.uncompressed_size == 32
    assert block.compressed == compressed

    block.data = b'\x01' * 32

    assert block.compressed != compressed
    assert zlib.decompress(block.compressed) == b'\x01' * 32


def test_replace_tile_grid(small_map, reparse):
    layer = small_map.layers[0]
    grid = small_map.get_tile_grid(layer)
    grid.set(3, 2, Tile(id=1, flags=0b1000))

    small_map.set_tile_grid(layer, grid.resize(5, 5))

    datafile = reparse(small_map)
    layer = datafile.layers[0]

    assert (layer.width.value, layer.height.value) == (5, 5)
    assert datafile.get_tile_grid(layer).get(3, 2) == Tile(id=1, flags=0b1000)


def test_save(small_map, tmp_path):
    path = tmp_path / 'small.map'

    small_map.save(str(path), version=3)

    datafile = Datafile.from_file(str(path))

    assert datafile.header.version.value == DatafileVersion.V3


def test_corrupted_item_types():
    raw = Datafile().pack()
    # version, info and envpoint entries follow the header
    entries = [raw[HEADER_SIZE + 12 * _:HEADER_SIZE + 12 * (_ + 1)] for _ in range(3)]
    assert [struct.unpack('<3i', _) for _ in entries] == [(0, 0, 1), (1, 1, 1), (6, 2, 1)]

    repeated = patch(raw, HEADER_SIZE + 12, struct.pack('<3i', 0, 0, 1))
    with pytest.raises(SizeMismatch):
        Datafile.parse(repeated)

    unsorted = patch(raw, HEADER_SIZE, entries[1] + entries[0])
    with pytest.raises(SizeMismatch):
        Datafile.parse(unsorted)

    gap = patch(raw, HEADER_SIZE + 24, struct.pack('<3i', 6, 3, 1))
    with pytest.raises(SizeMismatch):
        Datafile.parse(gap)


def test_set_info_reuses_blocks(reparse):
    datafile = Datafile()

    for idx in range(5):
        datafile.set_info(author=f'author {idx}', settings=['sv_gametype ctf'] * idx)

    datafile = reparse(datafile)

    assert len(datafile.data) == 2
    assert datafile.info()['author'] == 'author 4'
    assert len(datafile.info()['settings']) == 4

    datafile.set_info(settings=[])

    assert len(datafile.data) == 1
    assert datafile.info()['settings'] == []
    assert datafile.info()['author'] == 'author 4'


def test_compact(small_map):
    orphan = small_map.add_data(b'nobody refers to me')
    assert len(small_map.data) == 7

    assert small_map.compact() == 1
    assert orphan == 6
    assert len(small_map.data) == 6
    assert small_map.compact() == 0


def test_compact_renumbers_references(small_map, reparse):
    # the game layer owns the first data block
    game = small_map.layers[0]
    assert game.data.value == 0
    game.data.value = small_map.add_data(b'\x00' * (4 * 3 * 4))

    assert small_map.compact() == 1

    datafile = reparse(small_map)

    assert len(datafile.data) == 6
    assert datafile.info()['author'] == 'nameless tee'
    assert datafile.info()['settings'] == ['sv_gametype ctf', 'sv_scorelimit 400']
    sky = datafile.layers[2]
    assert datafile.get_tile_grid(sky).get(1, 0) == Tile(id=7, flags=0b0101)


def test_compact_keeps_blocks_of_unknown_items():
    datafile = Datafile()
    datafile.add_data(b'maybe a sound')
    datafile.add_item(UnknownItem(data=b'\x00\x00\x00\x00'), type_id=ItemType.ENVELOPE)

    assert datafile.compact() == 0
    assert len(datafile.data) == 1
