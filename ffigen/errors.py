"""Generation-time errors"""


class GenerationError(Exception):
    """Base class for errors that abort a generation run"""


class UnsupportedType(GenerationError):
    """A type kind reached a derivation that has no rule for it"""

    def __init__(self, type_, operation: str):
        self.type = type_
        self.operation = operation
        super().__init__(f"unsupported type {type_} in {operation}")


class UnsupportedConstructorArity(GenerationError):
    """An object declares a number of constructors other than one"""

    def __init__(self, object_name: str, count: int):
        self.object_name = object_name
        self.count = count
        super().__init__(
            f"object {object_name} has {count} constructors, exactly one is supported"
        )


class InterfaceError(ValueError):
    """The interface model is malformed or inconsistent"""
