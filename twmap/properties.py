import logging


class Dependency:
    '''This makes the relation between fields possible.

    In practice this class allows to write something like

        class Simple(Chunk):
            length = fields.StructField('i')
            data = fields.StringField(Dependency('.length'))

    and have the length of the string contained in the field named 'data'
    read from the field named 'length' while unpacking.

    The expression starts with a dot and is resolved from the chunk the field
    belongs to, each further dot going down into a sub-chunk (e.g.
    '.header.num_items').

    The relation is resolved only while unpacking: when packing, whoever
    builds the chunk is in charge of setting the value of the referenced
    field (they are sizes and counters computed bottom-up).
    '''
    def __init__(self, expression):
        if not expression.startswith('.'):
            raise ValueError(f'the expression {expression!r} must start with a dot')

        self.expression = expression
        self.logger = logging.getLogger(__name__)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        # '.header.num_items'.split('.') -> ['', 'header', 'num_items']
        fields_path = self.expression.split('.')[1:]
        field = instance.father

        if field is None:
            raise AttributeError(f'cannot resolve {self.expression!r} for a field without father')

        for component_name in fields_path:
            field = getattr(field, component_name)

        return field

    def resolve(self, instance):
        '''With this method we resolve the attribute with respect to the instance
        passed as argument.'''
        value = self.resolve_field(instance).value

        self.logger.debug('%r resolved with value %s' % (self, value))

        return value


class VersionDependency(Dependency):
    '''Resolves to zero if the version indicated by version_expression is
    lower than the given one, i.e. the field doesn't exist in older versions
    of the format.'''

    def __init__(self, version, version_expression, expression):
        super().__init__(expression)
        self.version = version
        self.version_expression = Dependency(version_expression)

    def resolve(self, instance):
        version = self.version_expression.resolve(instance)
        # the field could be an enum
        version = getattr(version, 'value', version)

        if version < self.version:
            return 0

        return super().resolve(instance)


class PropertyDescriptor(object):
    """An attribute of a field that can be an actual value or a Dependency
    to resolve against the chunk the field belongs to."""

    def __init__(self, name: str, _type: type):
        self.name = name
        self.type = _type

    def __get__(self, instance, owner):
        if instance is None:
            return self

        data = instance.__dict__
        if self.name not in data:
            raise AttributeError(f"no '{self.name}' here!")

        value = data[self.name]

        if isinstance(value, Dependency):
            return value.resolve(instance)

        return value

    def __set__(self, instance, value):
        if not isinstance(value, (self.type, Dependency)):
            raise ValueError(f"A property must be of type {self.type} or a Dependency")

        instance.__dict__[self.name] = value
