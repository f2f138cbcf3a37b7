'''
File level commands: read a PNG, do something with its chunks and
eventually write it back.

    encode <file> <chunk type> <message> [<output file>]
    decode <file> <chunk type>
    remove <file> <chunk type>
    print  <file>
'''
import logging
import sys

from .exceptions import PNGStashException
from .images.png import PNGFile
from .images.png.utils import (
    encode,
    decode,
    remove,
    searchable_chunks,
)


logger = logging.getLogger(__name__)


def load(path):
    with open(path, 'rb') as f:
        return PNGFile.from_bytes(f.read())


def save(png, path):
    logger.debug(f'writing to \'{path}\'')
    with open(path, 'wb') as f:
        f.write(png.as_bytes())


def encode_file(path, chunk_type, message, output=None):
    '''Without an output file nothing is written.'''
    png = encode(load(path), chunk_type, message)

    if output is not None:
        save(png, output)

    return png


def decode_file(path, chunk_type):
    message = decode(load(path), chunk_type)
    print(message)

    return message


def remove_file(path, chunk_type):
    png = load(path)
    chunk = remove(png, chunk_type)
    save(png, path)

    return chunk


def print_file(path):
    chunk_types = searchable_chunks(load(path))

    if not chunk_types:
        print('No searchable PNG chunks available!')
    else:
        print('Searchable PNG chunks (by chunk type): %s' % ', '.join([str(_) for _ in chunk_types]))

    return chunk_types


# name -> (function, minimum number of arguments, maximum number of arguments)
COMMANDS = {
    'encode': (encode_file, 3, 4),
    'decode': (decode_file, 2, 2),
    'remove': (remove_file, 2, 2),
    'print':  (print_file, 1, 1),
}


def usage(progname):
    print(f'usage: {progname} encode <file> <chunk type> <message> [<output file>]', file=sys.stderr)
    print(f'       {progname} decode <file> <chunk type>', file=sys.stderr)
    print(f'       {progname} remove <file> <chunk type>', file=sys.stderr)
    print(f'       {progname} print <file>', file=sys.stderr)

    return 1


def main(argv=None):
    argv = sys.argv if argv is None else argv

    if len(argv) < 2 or argv[1] not in COMMANDS:
        return usage(argv[0])

    command, min_args, max_args = COMMANDS[argv[1]]
    args = argv[2:]

    if not (min_args <= len(args) <= max_args):
        return usage(argv[0])

    try:
        command(*args)
    except (PNGStashException, OSError) as e:
        logger.debug('command \'%s\' failed' % argv[1], exc_info=True)
        print(f'error: {e}', file=sys.stderr)
        return 1

    return 0
