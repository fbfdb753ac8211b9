class MappingError(Exception):
    pass


class NotAnEntity(MappingError):
    pass


class EntityWithoutIdentity(MappingError):
    pass


class MultipleIdentities(MappingError):
    pass


# finders are resolved in Repository.__getattr__
class PropertyNotFound(MappingError, AttributeError):
    pass


class PropertyNotIndexed(MappingError, AttributeError):
    pass


class UnknownEvent(MappingError):
    pass


class DetachedProxy(MappingError):
    pass


class EntityNotFlushed(MappingError):
    pass
