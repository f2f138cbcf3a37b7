'''
Machinery that turns the fields declared in the body of a Chunk subclass
into per-instance attributes, keeping the order of declaration.
'''
import copy
import logging
from enum import Enum, auto


logger = logging.getLogger(__name__)


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()
    NETWORK       = auto()
    NATIVE        = auto()


class FieldDescriptor(object):
    """Installed on the class in place of a declared field.

    The declared field acts as a prototype: every chunk instance lazily
    gets its own copy, with the chunk as father."""

    def __init__(self, prototype: "Field", name: str):
        self.prototype = prototype
        self.prototype.name = name

    @property
    def name(self):
        return self.prototype.name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self

        fields = instance.__dict__
        if self.name not in fields:
            logger.debug("copying prototype of '%s' for %s", self.name, instance.__class__.__name__)
            fields[self.name] = self.prototype.create(father=instance)

        return fields[self.name]

    def __set__(self, instance, value):
        # a whole field replaces the copy, anything else is a new value for it
        if isinstance(value, self.prototype.__class__):
            value.father = instance
            value.name = self.name
            instance.__dict__[self.name] = value
            return

        self.__get__(instance).value = value


class FieldBase(object):

    def contribute_to_chunk(self, cls, name):
        if name in cls.__dict__:
            raise AttributeError(f'{cls.__name__} has already an attribute named {name}')

        setattr(cls, name, FieldDescriptor(self, name))

    def create(self, father):
        '''A deep copy of this field attached to another father.'''
        instance = copy.deepcopy(self)
        instance.father = father
        return instance


class Meta(object):
    """What the metaclass knows about a format: for now the ordered field names."""

    def __init__(self, fields=None):
        self.fields = list(fields) if fields else []


class MetaChunk(type):
    '''The class is created empty and the body is added attribute by
    attribute, so that fields are recorded in order of declaration after the
    ones inherited.'''

    def __new__(mcs, name, bases, attrs):
        namespace = {'__module__': attrs.pop('__module__')}
        if '__classcell__' in attrs:
            namespace['__classcell__'] = attrs.pop('__classcell__')

        cls = super().__new__(mcs, name, bases, namespace)
        cls._meta = Meta()

        for base in bases:
            if not isinstance(base, MetaChunk):
                continue

            for field_name in base._meta.fields:
                if field_name not in cls._meta.fields:
                    setattr(cls, field_name, base.__dict__[field_name])
                    cls._meta.fields.append(field_name)

        for attr_name, value in attrs.items():
            cls.add_to_class(attr_name, value)

        return cls

    def add_to_class(cls, name, value):
        if not isinstance(value, FieldBase):
            setattr(cls, name, value)
            return

        logger.debug('field \'%s\' added to %s' % (name, cls.__name__))
        cls._meta.fields.append(name)
        value.contribute_to_chunk(cls, name)
