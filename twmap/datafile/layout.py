'''
# Datafile layout

The general structure is the following

  .----------------------------------.
  | header (36 bytes)                |
  | item types   (type, start, num)  |
  | item offsets                     |
  | data offsets                     |
  | data sizes (version 4 only)      |
  | items        (type_and_id, size) |
  | data blocks  (compressed)        |
  '----------------------------------'

Item offsets are relative to the start of the item area, data offsets to the
start of the data area.
'''
from ..core import Chunk
from .. import fields
from ..enum import DatafileVersion
from ..properties import Dependency, VersionDependency
from ..exceptions import InvalidSignature, UnsupportedVersion, SizeMismatch


SIGNATURE = b'DATA'
SIGNATURE_SWAPPED = b'ATAD'

HEADER_SIZE = 36
# the signature, the version and the size itself are not counted in size
HEADER_SIZE_OFFSET = 16
ITEM_HEADER_SIZE = 8


class DatafileHeader(Chunk):
    signature      = fields.StringField(4, default=SIGNATURE, is_magic=True, aliases=(SIGNATURE_SWAPPED,),
                                        exception=InvalidSignature)
    version        = fields.StructField('i', default=DatafileVersion.V4, enum=DatafileVersion,
                                        exception=UnsupportedVersion)
    # length of the file minus the signature, the version and this field
    body_size      = fields.StructField('i')
    swaplen        = fields.StructField('i')
    num_item_types = fields.StructField('i')
    num_items      = fields.StructField('i')
    num_data       = fields.StructField('i')
    item_size      = fields.StructField('i')
    data_size      = fields.StructField('i')

    def validate(self):
        for name in ('body_size', 'swaplen', 'num_item_types', 'num_items', 'num_data', 'item_size', 'data_size'):
            value = getattr(self, name).value
            if value < 0:
                raise SizeMismatch(f'negative {name} ({value}) in header')

    @property
    def has_data_sizes(self):
        return self.version.value == DatafileVersion.V4


class ItemTypeEntry(Chunk):
    type_id = fields.StructField('i')
    start   = fields.StructField('i')
    num     = fields.StructField('i')

    def __repr__(self):
        return f'<{self.__class__.__name__}(type_id={self.type_id.value}, start={self.start.value}, num={self.num.value})>'


class ItemRecord(Chunk):
    '''An item: the upper 16 bits of type_and_id are the type, the lower
    the id of the item inside its type.'''
    type_and_id = fields.StructField('I')
    length      = fields.StructField('i')
    payload     = fields.StringField(Dependency('.length'))

    @classmethod
    def build(cls, type_id: int, id: int, payload: bytes) -> 'ItemRecord':
        if not (0 <= type_id <= 0xffff and 0 <= id <= 0xffff):
            raise ValueError(f'type {type_id} and id {id} must fit in 16 bits')

        return cls(type_and_id=(type_id << 16) | id, length=len(payload), payload=payload)

    @property
    def type_id(self):
        return self.type_and_id.value >> 16

    @property
    def id(self):
        return self.type_and_id.value & 0xffff

    def check_size(self):
        if self.length.value != len(self.payload.value):
            raise SizeMismatch(
                f'item {self.type_id}:{self.id} declares {self.length.value} bytes but has {len(self.payload.value)}')

    def pack_into(self, stream):
        self.check_size()
        super().pack_into(stream)


class DatafileLayout(Chunk):
    '''The raw layout of the file: tables and areas are kept as they are,
    the interpretation is done by twmap.datafile.Datafile.'''
    header       = DatafileHeader()
    item_types   = fields.ArrayField(ItemTypeEntry(), n=Dependency('.header.num_item_types'))
    item_offsets = fields.ArrayField(fields.StructField('i'), n=Dependency('.header.num_items'))
    data_offsets = fields.ArrayField(fields.StructField('i'), n=Dependency('.header.num_data'))
    data_sizes   = fields.ArrayField(fields.StructField('i'),
                                     n=VersionDependency(4, '.header.version', '.header.num_data'))
    item_area    = fields.StringField(Dependency('.header.item_size'))
    data_area    = fields.StringField(Dependency('.header.data_size'))
