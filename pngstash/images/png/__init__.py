'''
# Portable Network Graphics

Format created to replace patent-emcumbered GIF files.

The specification is at <http://www.libpng.org/pub/png/spec/1.2/PNG-Contents.html>.

A PNG file is an 8-byte signature followed by a sequence of chunks, each
one composed of a length, a type, the data and a CRC. Nothing here looks
inside the data: a chunk is an opaque payload with a type attached, and
that is enough to append new chunks (for example to hide a message into
an ancillary chunk) or to remove them.
'''
import logging

from bitstring import Bits

from pngstash.core import Chunk
from pngstash import fields
from pngstash.properties import Dependency
from pngstash.common import crc
from pngstash.exceptions import (
    MalformedInputException,
    MagicException,
    BadSignatureException,
    ChunkNotFoundException,
    NotTextException,
)


logger = logging.getLogger(__name__)

SIGNATURE = b'\x89\x50\x4e\x47\x0d\x0a\x1a\x0a'


class ChunkType(object):
    '''The 4 bytes identifying the kind of a chunk.

    Each byte must be an ASCII letter and the case of each letter encodes a
    property: the bit 5 (value 32) of each byte is the flag

     1. ancillary bit: uppercase means critical
     2. private bit: uppercase means public
     3. reserved bit: must be uppercase
     4. safe-to-copy bit: uppercase means unsafe to copy

    A type that doesn't follow these rules is still representable (a file can
    contain whatever) but is_valid() returns False.
    '''
    __slots__ = ('_raw', '_bits')

    PROPERTY_BIT = 2  # bit 5 counting from the most significant one

    def __init__(self, raw):
        # bytes(4) would be four zero bytes
        if isinstance(raw, (int, str)):
            raise MalformedInputException(message=f'a chunk type is built from bytes, not {raw.__class__.__name__}')

        raw = bytes(raw)
        if len(raw) != 4:
            raise MalformedInputException(message=f'a chunk type is 4 bytes long, not {len(raw)}')

        object.__setattr__(self, '_raw', raw)
        object.__setattr__(self, '_bits', Bits(raw))

    def __setattr__(self, name, value):
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def __reduce__(self):
        return (self.__class__, (self._raw,))

    @classmethod
    def parse(cls, raw):
        return cls(raw)

    @classmethod
    def from_str(cls, text):
        return cls(text.encode('utf-8'))

    def __eq__(self, other):
        if not isinstance(other, ChunkType):
            return NotImplemented

        return self._raw == other._raw

    def __hash__(self):
        return hash(self._raw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self._raw!r})>'

    def __str__(self):
        return self._raw.decode('ascii', errors='backslashreplace')

    def _property_bit(self, index):
        return self._bits[index * 8 + self.PROPERTY_BIT]

    def as_bytes(self):
        return self._raw

    def has_valid_bytes(self):
        return self._raw.isalpha()

    def is_valid(self):
        return self.has_valid_bytes() and self.is_reserved_bit_clear()

    def is_critical(self):
        return not self._property_bit(0)

    def is_public(self):
        return not self._property_bit(1)

    def is_reserved_bit_clear(self):
        return not self._property_bit(2)

    def is_safe_to_copy(self):
        return self._property_bit(3)


def to_chunk_type(value):
    '''Normalize what the user passes as a type (ChunkType, bytes or str).'''
    if isinstance(value, ChunkType):
        return value

    if isinstance(value, str):
        return ChunkType.from_str(value)

    return ChunkType(value)


class ChunkTypeField(fields.Field):
    '''Field containing a ChunkType'''

    def __init__(self, **kw):
        kw.setdefault('default', ChunkType(b'\x00' * 4))
        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({str(self.value)!r})>'

    def _set_value(self, value):
        self._value = to_chunk_type(value)

    def _get_size(self):
        return 4

    def _get_raw(self):
        return self.value.as_bytes()

    def _set_raw(self, raw):
        self.value = ChunkType(raw)

    def unpack(self, stream):
        self.value = ChunkType(stream.read_exactly(self.size))


class PNGHeader(Chunk):
    magic = fields.FixedLengthString(8, default=SIGNATURE, is_magic=True)

    def unpack(self, stream):
        try:
            super().unpack(stream)
        except MagicException as e:
            raise BadSignatureException(chain=e.chain, message='not a PNG file: ' + e.message) from e


class PNGChunk(Chunk):
    '''This is the main data structure of the format: the 4 fields represent
    a chunk into the file. Each field is intended big-endian.

    A chunk is defined as critical or ancillary depending on the case of the
    starting letter of the type field.

    The crc field is network-byte-order CRC-32 computed over the chunk type and chunk data, but not the length.

    # Critical chunks

     1. IHDR: contains image's width, height, bit depth, color type, compression method, filter method and interlace method
     2. PLTE: contains the palette data
     3. IDAT: contains the actual image data (compressed)
     4. IEND: is the terminator chunk
    '''
    length = fields.StructField('I', endianess=fields.Endianess.BIG_ENDIAN)
    type   = ChunkTypeField()
    data   = fields.StringField(Dependency('.length'))
    crc    = crc.CRCField(['type', 'data'], endianess=fields.Endianess.BIG_ENDIAN)  # network byte order

    @classmethod
    def new(cls, chunk_type, data):
        chunk = cls()
        chunk.type.value = chunk_type
        chunk.data.value = data
        chunk.relayout()

        return chunk

    @classmethod
    def parse(cls, raw):
        '''Build a chunk from its exact binary representation.'''
        chunk = cls(raw)
        size = len(raw)

        if chunk.size != size:
            raise MalformedInputException(message=f'{size - chunk.size} trailing bytes after the chunk')

        return chunk

    def relayout(self, offset=0):
        # the length is whatever the data is, even if someone wrote it directly
        self.length.value = len(self.data.value)

        return super().relayout(offset=offset)

    @property
    def chunk_type(self):
        return self.type.value

    def is_critical(self):
        return self.chunk_type.is_critical()

    def data_as_text(self):
        try:
            return self.data.value.decode('utf-8')
        except UnicodeDecodeError as e:
            raise NotTextException(message=f'data of chunk {self.chunk_type} is not text: {e}') from e

    def as_bytes(self):
        return self.pack()


class PNGFile(Chunk):
    header = PNGHeader()
    chunks = fields.ArrayField(PNGChunk())

    @classmethod
    def from_bytes(cls, raw):
        return cls(raw)

    def __str__(self):
        return '\n'.join([f'[{idx:02d}] {chunk.chunk_type} ({chunk.length.value} bytes)'
                          for idx, chunk in enumerate(self.chunks)])

    def _index_of(self, chunk_type):
        chunk_type = to_chunk_type(chunk_type)
        for idx, chunk in enumerate(self.chunks):
            if chunk.chunk_type == chunk_type:
                return idx

        return None

    def append_chunk(self, chunk):
        '''Returns the chunk actually stored: a copy if the one passed is
        already part of a file.'''
        logger.debug('appending chunk %s with %d bytes of data' % (chunk.chunk_type, chunk.length.value))

        return self.chunks.append(chunk)

    def chunk_by_type(self, chunk_type):
        idx = self._index_of(chunk_type)

        return self.chunks[idx] if idx is not None else None

    def remove_chunk(self, chunk_type):
        idx = self._index_of(chunk_type)

        if idx is None:
            raise ChunkNotFoundException(message=f'no chunk with type {to_chunk_type(chunk_type)}')

        logger.debug('removing chunk at index %d' % idx)

        return self.chunks.pop(idx)

    def as_bytes(self):
        return self.pack()
