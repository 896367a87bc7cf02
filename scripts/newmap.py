#!/usr/bin/env python3
'''
Write an empty map with a game layer of the given size

 $ newmap.py empty.map 100 50
'''
import sys
import os
import logging

from twmap.map import new_map, DEFAULT_WIDTH, DEFAULT_HEIGHT


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
logging.getLogger('twmap').setLevel(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)


def usage(progname):
    print(f'usage: {progname} <output path> [<width> <height>]')
    sys.exit(1)


if __name__ == '__main__':
    if len(sys.argv) not in (2, 4):
        usage(sys.argv[0])

    path = sys.argv[1]
    width, height = (int(sys.argv[2]), int(sys.argv[3])) if len(sys.argv) == 4 else (DEFAULT_WIDTH, DEFAULT_HEIGHT)

    datafile = new_map(width, height)
    datafile.set_info(author=os.environ.get('USER'))
    datafile.save(path)

    logger.info(f'saved {width}x{height} map into {path}')
