import io
import logging

from .exceptions import TruncatedInputException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around an in-memory buffer to
    uniform its properties: mainly we need a seek() that accepts only
    absolute offsets and a way to read exactly a given number of bytes.'''
    def __init__(self, obj):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self._type = type(obj)
        self.obj = obj

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            raise ValueError('\'%s\' cannot be used as a stream' % self._type.__name__)

        init_method()

    def __getattr__(self, name):
        return getattr(self.obj, name)

    def __repr__(self):
        return '<%s(%s @ %d)>' % (self.__class__.__name__, self._type.__name__, self.obj.tell())

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        self.obj = io.BytesIO(bytes(self.obj))

    def seek(self, offset):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        self.obj.seek(offset)

        return self

    def read_exactly(self, size):
        '''Read "size" bytes or fail: a short read here means the data
        declared more than it actually contains.'''
        offset = self.obj.tell()
        data = self.obj.read(size)

        if len(data) != size:
            logger.debug('short read at offset %d: %d bytes instead of %d' % (offset, len(data), size))
            raise TruncatedInputException(
                message=f'expected {size} bytes at offset {offset}, only {len(data)} available')

        return data

    def read_all(self):
        return self.obj.read()

    def is_exhausted(self):
        offset = self.obj.tell()
        is_there_more = len(self.obj.read(1)) != 0
        self.obj.seek(offset)

        return not is_there_more

    def write(self, data):
        return self.obj.write(data)
