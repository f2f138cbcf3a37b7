import logging


class Dependency:
    '''This makes the relation between fields possible.

    In practice this class allows to write something like

        class Simple(Chunk):
            length = fields.StructField('I')
            data = fields.StringField(Dependency('.length'))

    and have the length of the string contained in the field named 'data'
    strictly connected to the field named 'length': while unpacking
    the length is read from the sibling, while setting a new value on 'data'
    the sibling is updated.

    The expression is a dotted path: a leading '.' means that the resolution
    starts from the father of the field, otherwise from the root chunk.
    '''
    def __init__(self, expression):
        self.expression = expression
        self.logger = logging.getLogger(__name__)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        fields_path = self.expression.split('.')
        # '.length'.split(".") -> ['', 'length']

        if fields_path[0] == '':
            field = instance.father
            fields_path = fields_path[1:]
        else:
            field = instance.root

        for component_name in fields_path:
            field = getattr(field, component_name)

        self.logger.debug('resolved \'%s\' as %s' % (self.expression, field.__class__.__name__))

        return field

    def resolve(self, instance):
        '''Returns the value of the field the expression points to.'''
        return self.resolve_field(instance).value

    def resolve_and_set(self, instance, value):
        '''Write back the value: a field without father has nothing to update.'''
        if instance.father is None:
            return

        self.resolve_field(instance).value = value
