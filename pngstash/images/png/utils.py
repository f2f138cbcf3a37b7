import logging

from pngstash.exceptions import ChunkNotFoundException, InvalidChunkTypeException

from . import PNGChunk, to_chunk_type


logger = logging.getLogger(__name__)


def encode(png, chunk_type, message):
    '''Hide the message into a new chunk appended to the file.

    The chunk type must be valid since we are writing it, a string
    message is encoded as UTF-8.'''
    chunk_type = to_chunk_type(chunk_type)

    if not chunk_type.is_valid():
        raise InvalidChunkTypeException(message=f'\'{chunk_type}\' is not a valid chunk type')

    if isinstance(message, str):
        message = message.encode('utf-8')

    logger.debug(f'encoding {len(message)} bytes into a chunk of type {chunk_type}')
    png.append_chunk(PNGChunk.new(chunk_type, message))

    return png


def decode(png, chunk_type):
    chunk = png.chunk_by_type(chunk_type)

    if chunk is None:
        raise ChunkNotFoundException(message=f'no chunk with type {to_chunk_type(chunk_type)}')

    return chunk.data_as_text()


def remove(png, chunk_type):
    return png.remove_chunk(chunk_type)


def list_chunks(png):
    '''Returns (type, validity, length) for each chunk, in file order.'''
    return [(chunk.chunk_type, chunk.chunk_type.is_valid(), chunk.length.value) for chunk in png.chunks]


def searchable_chunks(png):
    '''The chunks that can contain a message are the ancillary ones: a
    decoder is free to ignore them.'''
    return [chunk.chunk_type for chunk in png.chunks if not chunk.is_critical()]
