import copy
import logging


class FieldDescriptor(object):
    """Wrapper around field access of a Chunk: every instance gets its own
    copy of the field declared in the class."""

    def __init__(self, field_instance: "Field", field_name: str):
        self.field = field_instance
        self.field.field_name = field_name

    def __get__(self, instance, type=None):
        if instance is None:
            return self.field

        data = instance.__dict__

        if self.field.field_name not in data:
            data[self.field.field_name] = self.field.create(father=instance)

        return data[self.field.field_name]

    def __set__(self, instance, value):
        data = instance.__dict__

        # a field of the same type replaces the old one
        if isinstance(value, self.field.__class__):
            value.father = instance
            value.field_name = self.field.field_name
            data[self.field.field_name] = value
        # otherwise we are setting its value
        else:
            self.__get__(instance).value = value


class FieldBase(object):

    def contribute_to_chunk(self, cls, name):
        if name in cls.__dict__:
            raise AttributeError(f'field {name} is already present in class {cls.__name__}')

        setattr(cls, name, FieldDescriptor(self, name))

    def create(self, father):
        # detach from the old father otherwise the copy climbs the hierarchy
        old_father, self.father = getattr(self, 'father', None), None
        try:
            instance = copy.deepcopy(self)
        finally:
            self.father = old_father

        instance.father = father
        return instance


class Meta(object):
    """Class containing metadata about the abstraction"""

    def __init__(self):
        self.fields = []


class MetaChunk(type):

    def __new__(cls, names, bases, attrs):
        '''Fields are collected in order of declaration, the ones of the parents
        come first.'''
        module = attrs.pop('__module__')
        classcell = attrs.pop('__classcell__', None)

        new_attrs = {
            '__module__': module,
        }
        if classcell is not None:
            new_attrs['__classcell__'] = classcell
        new_cls = super(MetaChunk, cls).__new__(cls, names, bases, new_attrs)

        new_cls._meta = Meta()

        # handle inheritance
        parents = [_ for _ in bases if isinstance(_, MetaChunk)]
        for parent in parents:
            for obj_name in parent._meta.fields:
                if obj_name not in new_cls._meta.fields:
                    new_cls._meta.fields.append(obj_name)

        for obj_name, obj in attrs.items():
            new_cls.add_to_class(obj_name, obj)

        return new_cls

    def add_to_class(cls, name, value):
        if hasattr(value, 'contribute_to_chunk'):
            logging.getLogger(__name__).debug('contribute_to_chunk() found for field \'%s\'' % name)
            # a redefinition keeps the position of the parent's field
            if name not in cls._meta.fields:
                cls._meta.fields.append(name)
            value.contribute_to_chunk(cls, name)
        else:
            setattr(cls, name, value)
