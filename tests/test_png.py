import struct
from zlib import crc32

import pytest

from pngstash.exceptions import (
    BadSignatureException,
    ChecksumMismatchException,
    ChunkNotFoundException,
    MagicException,
    MalformedInputException,
    NotTextException,
    TruncatedInputException,
)
from pngstash.images.png import (
    SIGNATURE,
    ChunkType,
    PNGChunk,
    PNGFile,
    PNGHeader,
)

from conftest import SECRET_CRC, SECRET_MESSAGE, SECRET_TYPE, build_chunk


def testing_png():
    png = PNGFile()
    png.append_chunk(PNGChunk.new('FrSt', b'I am the first chunk'))
    png.append_chunk(PNGChunk.new('miDl', b'I am another chunk'))
    png.append_chunk(PNGChunk.new('LASt', b'I am the last chunk'))

    return png


def test_chunk_type_from_bytes():
    chunk_type = ChunkType(bytes([82, 117, 83, 116]))

    assert chunk_type.as_bytes() == bytes([82, 117, 83, 116])
    assert chunk_type == ChunkType.from_str('RuSt')
    assert chunk_type == ChunkType.parse(b'RuSt')
    assert str(chunk_type) == 'RuSt'


@pytest.mark.parametrize('code,critical,public,reserved_bit_clear,safe_to_copy', [
    ('RuSt', True,  False, True,  True),
    ('ruSt', False, False, True,  True),
    ('RUSt', True,  True,  True,  True),
    ('RuST', True,  False, True,  False),
    ('Rust', True,  False, False, True),
    ('IHDR', True,  True,  True,  False),
    ('tEXt', False, True,  True,  True),
])
def test_chunk_type_flags(code, critical, public, reserved_bit_clear, safe_to_copy):
    chunk_type = ChunkType.from_str(code)

    assert chunk_type.is_critical() == critical
    assert chunk_type.is_public() == public
    assert chunk_type.is_reserved_bit_clear() == reserved_bit_clear
    assert chunk_type.is_safe_to_copy() == safe_to_copy


@pytest.mark.parametrize('code,valid', [
    (b'RuSt', True),
    (b'IEND', True),
    (b'Rust', False),  # reserved bit set
    (b'Ru1t', False),
    (b'R1St', False),  # only the letters are wrong
    (b'Ru\xd3t', False),
])
def test_chunk_type_validity(code, valid):
    assert ChunkType(code).is_valid() == valid


def test_chunk_type_letters_and_reserved_bit_are_distinct():
    assert not ChunkType(b'R1St').has_valid_bytes()
    assert ChunkType(b'R1St').is_reserved_bit_clear()

    assert ChunkType(b'Rust').has_valid_bytes()
    assert not ChunkType(b'Rust').is_reserved_bit_clear()


@pytest.mark.parametrize('raw', [b'', b'RuS', b'RuStt', 4, 'RuSt'])
def test_chunk_type_wrong_input(raw):
    """Only 4 bytes make a type: neither an int nor a str are taken as such"""
    with pytest.raises(MalformedInputException):
        ChunkType(raw)


def test_chunk_type_is_immutable_and_hashable():
    chunk_type = ChunkType(b'RuSt')

    with pytest.raises(AttributeError):
        chunk_type._raw = b'IEND'

    assert {chunk_type: 'rust'}[ChunkType.from_str('RuSt')] == 'rust'
    assert chunk_type != ChunkType(b'RUST')


def test_new_chunk():
    chunk = PNGChunk.new(ChunkType.from_str('RuSt'), SECRET_MESSAGE)

    assert chunk.length.value == 42
    assert chunk.crc.value == SECRET_CRC
    assert chunk.chunk_type == ChunkType(SECRET_TYPE)
    assert chunk.data.value == SECRET_MESSAGE


def test_chunk_from_bytes(secret_chunk_bytes):
    chunk = PNGChunk.parse(secret_chunk_bytes)

    assert chunk.length.value == 42
    assert str(chunk.chunk_type) == 'RuSt'
    assert chunk.data_as_text() == 'This is where your secret message will be!'
    assert chunk.crc.value == SECRET_CRC
    assert chunk.as_bytes() == secret_chunk_bytes


def test_chunk_round_trip():
    chunk = PNGChunk.new(b'ruSt', b'\x00\xff binary \x01')

    assert PNGChunk.parse(chunk.as_bytes()) == chunk


def test_chunk_wrong_crc():
    raw = build_chunk(SECRET_TYPE, SECRET_MESSAGE, crc=SECRET_CRC - 1)

    with pytest.raises(ChecksumMismatchException) as excinfo:
        PNGChunk.parse(raw)

    assert excinfo.value.chain == ['crc']


def test_chunk_crc_detects_every_bit_flip(secret_chunk_bytes):
    """Flipping a single bit of type or data, keeping the stored crc, must be detected"""
    for idx in range(4, 8 + len(SECRET_MESSAGE)):
        for bit in range(8):
            raw = bytearray(secret_chunk_bytes)
            raw[idx] ^= 1 << bit

            with pytest.raises(ChecksumMismatchException):
                PNGChunk.parse(bytes(raw))


@pytest.mark.parametrize('size', [0, 3, 7, 20, 12 + 42 - 1])
def test_chunk_truncated(secret_chunk_bytes, size):
    with pytest.raises(TruncatedInputException):
        PNGChunk.parse(secret_chunk_bytes[:size])


def test_chunk_trailing_bytes(secret_chunk_bytes):
    with pytest.raises(MalformedInputException):
        PNGChunk.parse(secret_chunk_bytes + b'\x00')


def test_chunk_not_text():
    chunk = PNGChunk.new('ruSt', b'\xff\xfe\xfd')

    with pytest.raises(NotTextException):
        chunk.data_as_text()

    # the binary side is not affected
    assert chunk.as_bytes() == build_chunk(b'ruSt', b'\xff\xfe\xfd')


def test_chunk_with_invalid_type_is_parsed():
    """An invalid type is not a reason to reject a chunk"""
    chunk = PNGChunk.parse(build_chunk(b'Ru1t', b'data'))

    assert not chunk.chunk_type.is_valid()
    assert chunk.data.value == b'data'


def test_chunk_crc_follows_type_and_data():
    chunk = PNGChunk.new('ruSt', b'hello')

    chunk.data.value = b'world'
    assert chunk.crc.value == crc32(b'ruStworld')

    chunk.type.value = 'RuSt'
    assert chunk.crc.value == crc32(b'RuStworld')

    assert chunk.as_bytes() == build_chunk(b'RuSt', b'world')


def test_chunk_length_follows_data():
    """A length written by hand is replaced by the real one when packing"""
    chunk = PNGChunk.new('ruSt', b'hello')

    chunk.length.value = 99
    raw = chunk.as_bytes()

    assert raw == build_chunk(b'ruSt', b'hello')
    assert chunk.length.value == 5
    assert PNGChunk.parse(raw) == chunk


def test_header():
    """Check header is right"""
    png_header = PNGHeader()

    assert png_header.magic.value == b'\x89PNG\x0d\x0a\x1a\x0a'


def test_empty_png():
    png = PNGFile()

    assert len(png.chunks) == 0
    assert png.as_bytes() == SIGNATURE
    assert PNGFile.from_bytes(SIGNATURE) == png


def test_png_file(png_bytes):
    """Check unpacking a PNG file saved by Pillow is fine"""
    png = PNGFile.from_bytes(png_bytes)

    assert png.chunks[0].chunk_type == ChunkType(b'IHDR')
    assert png.chunks[0].length.value == 13
    assert png.chunks[-1].chunk_type == ChunkType(b'IEND')
    assert png.chunks[-1].length.value == 0

    for chunk in png.chunks:
        assert chunk.chunk_type.is_valid()

    # byte exact
    assert png.as_bytes() == png_bytes


def test_png_round_trip():
    png = testing_png()
    raw = png.as_bytes()

    parsed = PNGFile.from_bytes(raw)

    assert parsed == png
    assert [str(_.chunk_type) for _ in parsed.chunks] == ['FrSt', 'miDl', 'LASt']
    assert raw == SIGNATURE + b''.join([_.as_bytes() for _ in png.chunks])


def test_png_chunk_by_type():
    png = testing_png()

    chunk = png.chunk_by_type('miDl')

    assert chunk.data_as_text() == 'I am another chunk'
    assert png.chunk_by_type(b'miDl') is chunk
    assert png.chunk_by_type(ChunkType(b'miDl')) is chunk
    assert png.chunk_by_type('nope') is None


def test_png_append_and_remove(png_bytes):
    png = PNGFile.from_bytes(png_bytes)
    n_chunks = len(png.chunks)

    png.append_chunk(PNGChunk.new('ruSt', b'sEcReT meSsAgE'))

    assert len(png.chunks) == n_chunks + 1
    assert png.chunks[-1].chunk_type == ChunkType(b'ruSt')

    chunk = png.remove_chunk('ruSt')

    assert chunk.data_as_text() == 'sEcReT meSsAgE'
    assert png.chunk_by_type('ruSt') is None
    assert png.as_bytes() == png_bytes

    with pytest.raises(ChunkNotFoundException):
        png.remove_chunk('ruSt')


def test_png_remove_only_the_first():
    png = testing_png()
    png.append_chunk(PNGChunk.new('ruSt', b'first'))
    png.append_chunk(PNGChunk.new('LASt', b'between'))
    png.append_chunk(PNGChunk.new('ruSt', b'second'))

    removed = png.remove_chunk('ruSt')

    assert removed.data.value == b'first'
    assert [str(_.chunk_type) for _ in png.chunks] == ['FrSt', 'miDl', 'LASt', 'LASt', 'ruSt']
    assert png.chunk_by_type('ruSt').data.value == b'second'

    # survives a round trip
    parsed = PNGFile.from_bytes(png.as_bytes())
    assert [_.data.value for _ in parsed.chunks if _.chunk_type == ChunkType(b'ruSt')] == [b'second']


def test_png_append_same_chunk_twice():
    png = PNGFile()
    chunk = PNGChunk.new('ruSt', b'twice')

    first = png.append_chunk(chunk)
    second = png.append_chunk(chunk)

    assert first is chunk
    assert second is not chunk

    raw = png.as_bytes()
    assert raw == SIGNATURE + build_chunk(b'ruSt', b'twice') * 2

    parsed = PNGFile.from_bytes(raw)
    assert len(parsed.chunks) == 2
    assert parsed.chunks[0].data.value == parsed.chunks[1].data.value == b'twice'


def test_png_append_chunk_of_the_file(png_bytes):
    png = PNGFile.from_bytes(png_bytes)
    png.append_chunk(PNGChunk.new('ruSt', b'again'))
    n_chunks = len(png.chunks)

    chunk = png.chunk_by_type('ruSt')
    appended = png.append_chunk(chunk)

    assert appended is not chunk
    assert len(png.chunks) == n_chunks + 1

    parsed = PNGFile.from_bytes(png.as_bytes())
    assert [_.data.value for _ in parsed.chunks if _.chunk_type == ChunkType(b'ruSt')] == [b'again'] * 2
    assert parsed == png


@pytest.mark.parametrize('raw', [
    b'',
    b'\x89PN',
    b'\x00' * 8,
    b'GIF89a\x00\x00',
])
def test_png_bad_signature(raw, secret_chunk_bytes):
    with pytest.raises(BadSignatureException) as excinfo:
        PNGFile.from_bytes(raw + secret_chunk_bytes)

    assert isinstance(excinfo.value, MagicException)
    assert excinfo.value.chain == ['magic', 'header']


def test_png_truncated_chunk():
    raw = SIGNATURE + build_chunk(b'IHDR', b'\x00' * 13) + struct.pack('>I', 100) + b'ruSt' + b'short'

    with pytest.raises(TruncatedInputException) as excinfo:
        PNGFile.from_bytes(raw)

    assert excinfo.value.chain == ['data', 1, 'chunks']
    assert 'chunks.1.data' in str(excinfo.value)


def test_png_trailing_garbage(png_bytes):
    with pytest.raises(TruncatedInputException):
        PNGFile.from_bytes(png_bytes + b'\x00\x00')


def test_png_corrupted_chunk(png_bytes):
    raw = bytearray(png_bytes)
    raw[8 + 8] ^= 0x01  # first byte of the IHDR's data

    with pytest.raises(ChecksumMismatchException) as excinfo:
        PNGFile.from_bytes(bytes(raw))

    assert excinfo.value.chain == ['crc', 0, 'chunks']
