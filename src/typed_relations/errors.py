"""Exceptions raised by the typed_relations library."""


class RelationError(Exception):
    """Base class for all typed_relations errors."""


class SchemaError(RelationError):
    """A schema definition is invalid (unknown key attribute, duplicate name, ...)."""


class SchemaMismatch(RelationError):
    """Two relations are not union compatible."""


class TypeViolation(RelationError):
    """A tuple does not conform to the schema it is inserted into."""


class MalformedJoinSpec(RelationError):
    """The attribute lists given to an explicit join have different lengths."""


class UnknownAttributeError(RelationError, KeyError):
    """An attribute name does not exist in the schema."""

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""


class PersistenceError(RelationError):
    """A table snapshot could not be written or read back."""
