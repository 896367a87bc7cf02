'''
Conversion between the image items of a map and Pillow images.

An embedded image stores its pixels in a data block as raw RGBA, four bytes
per pixel row after row, with the name in a separate data block.
'''
import logging

from PIL import Image

from .datafile import Datafile
from .items import ImageItem
from .exceptions import SizeMismatch


logger = logging.getLogger(__name__)

PIXEL_SIZE = 4


def image_name(datafile: Datafile, image: ImageItem) -> str:
    return datafile.get_string(image.image_name.value) or ''


def image_to_pil(datafile: Datafile, image: ImageItem) -> Image.Image:
    if image.is_external:
        raise ValueError(f'the image {image_name(datafile, image)!r} is external, its pixels are not in the map')

    width, height = image.width.value, image.height.value
    data = datafile.get_data(image.image_data.value)

    expected = width * height * PIXEL_SIZE
    if len(data) != expected:
        raise SizeMismatch(f'image data of {len(data)} bytes for {width}x{height} pixels (expected {expected})')

    return Image.frombytes('RGBA', (width, height), data)


def embed_image(datafile: Datafile, pil_image: Image.Image, name: str) -> ImageItem:
    '''Add the image to the map, its pixels converted to RGBA.'''
    rgba = pil_image.convert('RGBA')
    width, height = rgba.size

    image = ImageItem(
        width=width,
        height=height,
        external=0,
        image_data=datafile.add_data(rgba.tobytes()),
        image_name=datafile.add_string(name),
    )
    datafile.add_item(image)

    logger.debug('embedded image %r (%dx%d)' % (name, width, height))

    return image
