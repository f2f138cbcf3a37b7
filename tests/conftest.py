import io
import struct
from zlib import crc32

import pytest
from PIL import Image


SECRET_TYPE = b'RuSt'
SECRET_MESSAGE = b'This is where your secret message will be!'
SECRET_CRC = 2882656334


def build_chunk(chunk_type: bytes, data: bytes, crc=None) -> bytes:
    '''Build by hand the binary representation of a chunk'''
    crc = crc32(chunk_type + data) if crc is None else crc
    return struct.pack('>I', len(data)) + chunk_type + data + struct.pack('>I', crc)


@pytest.fixture
def secret_chunk_bytes():
    return build_chunk(SECRET_TYPE, SECRET_MESSAGE, crc=SECRET_CRC)


@pytest.fixture
def png_bytes():
    """A real 5x5 red image as saved by Pillow"""
    image = Image.new('RGB', (5, 5), color='red')
    output = io.BytesIO()
    image.save(output, format='PNG')

    return output.getvalue()


@pytest.fixture
def png_path(tmp_path, png_bytes):
    path = tmp_path / 'red.png'
    path.write_bytes(png_bytes)

    return path
