#!/usr/bin/env python3
'''
Save the images embedded into a map as PNG files

 $ mapimages.py ctf5.map /tmp/images/
'''
import logging
import sys
import os

from twmap import Datafile
from twmap.images import image_to_pil, image_name


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
logging.getLogger('twmap').setLevel(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)


def usage(progname):
    print(f'usage: {progname} <map file> <output directory>')
    sys.exit(1)


if __name__ == '__main__':
    if len(sys.argv) < 3:
        usage(sys.argv[0])

    path, directory = sys.argv[1], sys.argv[2]

    datafile = Datafile.from_file(path)

    os.makedirs(directory, exist_ok=True)

    for idx, image in enumerate(datafile.images):
        name = image_name(datafile, image) or f'image{idx:02d}'

        if image.is_external:
            logger.info(f'skipping external image {name!r}')
            continue

        output = os.path.join(directory, f'{name}.png')
        image_to_pil(datafile, image).save(output)

        print(f'[{idx:02d}] {name} {image.width.value}x{image.height.value} -> {output}')
