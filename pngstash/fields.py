"""
A Field is "fundamental" datatype from the format point of view, something directly
packable/unpackable without need for relayouting.
"""
import logging
import struct

from .meta import FieldBase, Endianess
from .properties import Dependency
from .exceptions import PNGStashException, UnpackException, MagicException


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, name=None, father=None, default=None, offset=None,
                 endianess=Endianess.LITTLE_ENDIAN, is_magic=False):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.father = father
        self.default = default
        self.offset = offset
        self.endianess = endianess
        self.is_magic = is_magic

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    @property
    def root(self):
        '''Obtain the final father of this field'''
        instance = self
        while instance.father is not None:
            instance = instance.father

        return instance

    def _get_value(self):
        return self._value

    def _set_value(self, value):
        self._value = value

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    def _set_raw(self, value) -> None:
        raise NotImplementedError(f"method {self.__class__.__name__}._set_raw() not implemented")

    raw = property(
        fget=lambda self: self._get_raw(),
        fset=lambda self, value: self._set_raw(value),
    )

    def relayout(self, offset=0):
        self.offset = offset

        return self.size

    def pack(self, stream):
        '''Write the binary representation at the actual position of the stream.'''
        self.logger.debug('packing %s at offset %d' % (self.__class__.__name__, stream.tell()))
        stream.write(self.raw)

    def unpack(self, stream):
        raise NotImplementedError('you need to implement this in the subclass')


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module packing/unpacking
    integers to/from bytes.
    """

    _prefixes = {
        Endianess.LITTLE_ENDIAN: '<',
        Endianess.BIG_ENDIAN: '>',
        Endianess.NETWORK: '!',
        Endianess.NATIVE: '=',
    }

    def __init__(self, format, default=0, **kw):
        self.format = format
        super().__init__(default=default, **kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, hex(self.value))

    def __str__(self):
        width = self.size * 2
        formatter = '0x%%0%dx' % width
        return formatter % self.value

    def get_format(self):
        return '%s%s' % (self._prefixes[self.endianess], self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _get_raw(self) -> bytes:
        return struct.pack(self.get_format(), self.value)

    def _set_raw(self, raw: bytes) -> None:
        self.value = self._unpack(raw)

    def _unpack(self, raw: bytes) -> int:
        try:
            value = struct.unpack(self.get_format(), raw)[0]
        except struct.error as e:
            self.logger.error(e)
            raise UnpackException(message=str(e))

        return value

    def unpack(self, stream):
        self.value = self._unpack(stream.read_exactly(self.size))


class StringField(Field):
    """Represent a contiguous chunk of bytes.

    The length can be an integer, and in that case the field accepts only
    values of that exact size, or a Dependency towards another field that is
    read while unpacking and updated when a new value is set."""

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError(f"StringField must have 'n' or 'default' indicated!")

        self._length = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, repr(self.value))

    def __len__(self):
        return len(self.value)

    def is_dependent(self):
        return isinstance(self._length, Dependency)

    def value_from_default(self):
        if self.default is not None:
            return self.default

        return b'' if self.is_dependent() else b'\x00' * self._length

    def _set_value(self, value) -> None:
        value = bytes(value)
        length = len(value)

        if self.is_dependent():
            self._length.resolve_and_set(self, length)
        elif length != self._length:
            raise ValueError(f'you are trying to set a value with the wrong size (that is {self._length} bytes)')

        self._value = value

    def _get_size(self):
        return len(self.value)

    def _get_raw(self):
        return self.value

    def _set_raw(self, raw):
        self.value = raw

    def unpack(self, stream):
        length = self._length.resolve(self) if self.is_dependent() else self._length

        if self.is_magic:
            raw = stream.read(length)
            if raw != self.default:
                self.logger.warning('the magic doesn\'t correspond')
                raise MagicException(message=f'expected {self.default!r}, found {raw!r}')
        else:
            raw = stream.read_exactly(length)

        # the length is already right, no need to go through the setter
        self._value = raw


class FixedLengthString(StringField):
    """This field can contain only binary strings with fixed length."""
    def __init__(self, length, **kw):
        if not isinstance(length, int):
            raise ValueError(f"class '{self.__class__.__name__}' needs an integer length")

        super().__init__(n=length, **kw)


class ArrayField(Field):
    '''Un/Pack an array of elements.

    The elements are copies of the prototype passed as "field_cls" and are
    unpacked one after the other until the stream is exhausted.

    This class must behave like a list in python, obviously cannot implement all the methods
    since, for example, slicing what should mean?
    '''

    def __init__(self, field_cls, **kw):
        self.field_cls = field_cls
        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.value!r})>'

    def __getitem__(self, item):
        return self.value[item]

    def __len__(self):
        return len(self.value)

    def __iter__(self):
        return iter(self.value)

    def value_from_default(self):
        return list(self.default) if self.default else []

    def clear(self):
        self.value.clear()

    def _get_raw(self):
        return b''.join([_.raw for _ in self.value])

    def _get_size(self):
        size = 0
        for element in self.value:
            size += element.size

        return size

    def relayout(self, offset=0):
        self.offset = offset

        size = 0
        for element in self.value:
            size += element.relayout(offset=offset + size)

        return size

    def instance_element(self):
        return self.field_cls.create(father=self)  # pass the father so that we don't lose the hierarchy

    def append(self, element):
        '''An element has a single offset, so one that already belongs to an
        array (this one included) is stored as a copy.'''
        if element.father is not None:
            # detached while copying, otherwise its whole tree would be copied too
            original, father = element, element.father
            original.father = None
            try:
                element = original.create(father=self)
            finally:
                original.father = father

        element.father = self
        self.value.append(element)

        return element

    def pop(self, index=-1):
        element = self.value.pop(index)
        element.father = None

        return element

    def pack(self, stream):
        for element in self.value:
            stream.seek(element.offset)
            element.pack(stream)

    def unpack(self, stream):
        self.value = []

        while not stream.is_exhausted():
            idx = len(self.value)
            self.logger.debug('unpacking %s[%d] at offset %d' % (self.name, idx, stream.tell()))

            element = self.instance_element()
            element.offset = stream.tell()
            try:
                element.unpack(stream)
            except PNGStashException as e:
                e.chain.append(idx)
                raise

            self.value.append(element)
