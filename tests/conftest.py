import pytest

from twmap import Datafile
from twmap.map import new_map, add_group, add_tile_layer
from twmap.tiles import TileGrid, Tile


@pytest.fixture
def small_map():
    '''A map with an image, two groups and three tile layers.'''
    datafile = new_map(4, 3)
    datafile.set_info(author='nameless tee', credits='everybody', settings=['sv_gametype ctf', 'sv_scorelimit 400'])

    game = datafile.groups[0]
    background = add_group(datafile, name='Background', parallax_x=50, parallax_y=50)

    grid = TileGrid(2, 2)
    grid.set(1, 0, Tile(id=7, flags=0b0101))
    add_tile_layer(datafile, background, 2, 2, name='Sky', grid=grid)
    add_tile_layer(datafile, game, 4, 3, name='Decoration')

    return datafile


@pytest.fixture
def small_map_raw(small_map):
    return small_map.pack()


@pytest.fixture
def reparse():
    def _reparse(datafile: Datafile, **kwargs) -> Datafile:
        return Datafile.parse(datafile.pack(**kwargs))

    return _reparse
