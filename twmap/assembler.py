'''
Before being written the items are put in the canonical order

    Version, Info, Image*, Envelope*, Group*, Layer*, Envpoint

so that each type is a contiguous run and the table of the item types can be
derived by scanning for the transitions.

The id of an item is its position inside the run of its type: it's not
preserved from the original file. References between items never use the
id (a group refers to its layers by their position among the layers, layers
refer to images and data blocks by index) and the relative order inside a run
is never changed, so renumbering doesn't break them.
'''
import logging
from typing import List, Tuple

from .enum import ItemType
from .items import VersionItem, InfoItem, EnvpointItem


logger = logging.getLogger(__name__)

MANDATORY = {
    ItemType.VERSION: VersionItem,
    ItemType.INFO: InfoItem,
    ItemType.ENVPOINT: EnvpointItem,
}


def assemble(items) -> List["Item"]:
    '''Return a new list of items in canonical order, with the mandatory ones
    and the ids renumbered. The items passed are not modified.'''
    from .datafile import Item

    present = set()
    kept = []
    for item in items:
        if item.type_id in MANDATORY:
            if item.type_id in present:
                logger.warning('dropping duplicated item of type %s' % ItemType(item.type_id).name)
                continue
            present.add(item.type_id)
        kept.append(item)

    for type_id, cls in MANDATORY.items():
        if type_id not in present:
            logger.debug('adding missing item of type %s' % type_id.name)
            kept.append(Item(type_id, 0, cls()))

    # sorted() is stable: the order inside each type is preserved
    ordered = sorted(kept, key=lambda _: _.type_id)

    result = []
    last_type, counter = None, 0
    for item in ordered:
        counter = counter + 1 if item.type_id == last_type else 0
        last_type = item.type_id
        result.append(Item(item.type_id, counter, item.payload))

    return result


def derive_item_types(items) -> List[Tuple[int, int, int]]:
    '''Scan the items for type transitions, returning (type_id, start, num)
    for each run.'''
    runs = []
    for idx, item in enumerate(items):
        if runs and runs[-1][0] == item.type_id:
            type_id, start, num = runs[-1]
            runs[-1] = (type_id, start, num + 1)
            continue

        if any(_[0] == item.type_id for _ in runs):
            raise ValueError(f'items of type {item.type_id} are not contiguous')

        runs.append((item.type_id, idx, 1))

    return sorted(runs)
