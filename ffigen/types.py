"""Data types for the interface model"""

import builtins
import keyword
from dataclasses import dataclass, field
from enum import Enum as _Enum
from typing import Optional

from . import runtime
from .errors import InterfaceError

# Module-level names of a generated binding besides its own definitions
MODULE_NAMES = frozenset(
    [name for name in vars(runtime) if not name.startswith('__')]
    + ['enum', 'os', 'sys', 'Optional', '_lib', '_load_library']
)
# Locals and builtins referenced inside generated wrappers
WRAPPER_LOCALS = frozenset(['self', '_retval', 'bool', 'len'])
# Parameters of the generated record methods
CODEC_LOCALS = frozenset(['cls', 'v', 'buf', 'rbuf', 'other'])


class TypeKind(_Enum):
    """Closed set of type kinds an interface can mention"""
    U32 = "u32"
    U64 = "u64"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    BYTES = "bytes"
    ENUM = "enum"
    RECORD = "record"
    OPTIONAL = "optional"
    OBJECT = "object"
    # Representable in a model, rejected by the type mapper
    STRING = "string"
    SEQUENCE = "sequence"
    MAP = "map"


@dataclass(frozen=True)
class TypeReference:
    """A type kind plus the type name or inner type it carries"""
    kind: TypeKind
    name: Optional[str] = None
    inner: Optional['TypeReference'] = None

    def __str__(self) -> str:
        if self.inner is not None:
            return f"{self.kind.value}<{self.inner}>"
        if self.name is not None:
            return f"{self.kind.value}({self.name})"
        return self.kind.value

    @property
    def is_named(self) -> bool:
        return self.kind in (TypeKind.ENUM, TypeKind.RECORD, TypeKind.OBJECT)

    def walk(self):
        """Yield this type and every type nested inside it"""
        yield self
        if self.inner is not None:
            yield from self.inner.walk()


U32 = TypeReference(TypeKind.U32)
U64 = TypeReference(TypeKind.U64)
FLOAT = TypeReference(TypeKind.FLOAT)
DOUBLE = TypeReference(TypeKind.DOUBLE)
BOOLEAN = TypeReference(TypeKind.BOOLEAN)
BYTES = TypeReference(TypeKind.BYTES)
STRING = TypeReference(TypeKind.STRING)


def enum_ref(name: str) -> TypeReference:
    return TypeReference(TypeKind.ENUM, name=name)


def record_ref(name: str) -> TypeReference:
    return TypeReference(TypeKind.RECORD, name=name)


def object_ref(name: str) -> TypeReference:
    return TypeReference(TypeKind.OBJECT, name=name)


def optional(inner: TypeReference) -> TypeReference:
    return TypeReference(TypeKind.OPTIONAL, inner=inner)


def sequence(inner: TypeReference) -> TypeReference:
    return TypeReference(TypeKind.SEQUENCE, inner=inner)


def map_of(inner: TypeReference) -> TypeReference:
    return TypeReference(TypeKind.MAP, inner=inner)


@dataclass
class Argument:
    """Named argument of a function, constructor or method"""
    name: str
    type: TypeReference


@dataclass
class Field:
    """Record field"""
    name: str
    type: TypeReference


@dataclass
class FFIFunction:
    """Native entry point exported by the compiled library"""
    name: str
    arguments: list[Argument] = field(default_factory=list)
    return_type: Optional[TypeReference] = None


@dataclass
class Function:
    """Free function"""
    name: str
    arguments: list[Argument]
    return_type: Optional[TypeReference]
    ffi_func: FFIFunction


@dataclass
class Constructor:
    """Object constructor"""
    name: str
    arguments: list[Argument]
    ffi_func: FFIFunction


@dataclass
class Method:
    """Object instance method"""
    name: str
    arguments: list[Argument]
    return_type: Optional[TypeReference]
    ffi_func: FFIFunction


@dataclass
class Object:
    """Opaque object with reference semantics"""
    name: str
    constructors: list[Constructor] = field(default_factory=list)
    methods: list[Method] = field(default_factory=list)


@dataclass
class Record:
    """Record with an ordered field list"""
    name: str
    fields: list[Field] = field(default_factory=list)


@dataclass
class Enum:
    """Enumeration with ordered variants"""
    name: str
    variants: list[str] = field(default_factory=list)

    def ordinals(self) -> list[tuple[str, int]]:
        """Variant names paired with their 1-based ordinals"""
        return [(name, index) for index, name in enumerate(self.variants, start=1)]


def _check_unique(names: list[str], what: str):
    seen = set()
    for name in names:
        if name in seen:
            raise InterfaceError(f"duplicate {what} '{name}'")
        seen.add(name)


def _check_identifier(name: str, what: str):
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise InterfaceError(f"{what} {name!r} is not a usable Python identifier")


def _check_member_name(name: str, what: str):
    """Names that become attributes or enum members"""
    _check_identifier(name, what)
    if name.startswith('_') and name.endswith('_'):
        raise InterfaceError(f"{what} '{name}' is reserved in generated bindings")


def _check_global_name(name: str, what: str):
    """Names that become module-level definitions of the generated binding"""
    _check_identifier(name, what)
    if (name in MODULE_NAMES or name in WRAPPER_LOCALS or name in CODEC_LOCALS
            or hasattr(builtins, name)):
        raise InterfaceError(f"{what} '{name}' is reserved in generated bindings")


def _check_arguments(arguments: list[Argument], owner: str):
    for arg in arguments:
        _check_identifier(arg.name, f"argument of {owner}")
        if arg.name in MODULE_NAMES or arg.name in WRAPPER_LOCALS:
            raise InterfaceError(f"argument '{arg.name}' of {owner} is reserved in generated bindings")
    _check_unique([a.name for a in arguments], f"argument of {owner}")


@dataclass
class ComponentInterface:
    """Complete interface of one component.

    Definitions are added through the ``add_*`` methods, which derive the
    native entry point of every function, constructor and method from the
    namespace and reject names the generated binding cannot carry. Once
    generation starts the interface is treated as read-only.
    """
    namespace: str
    enums: list[Enum] = field(default_factory=list)
    records: list[Record] = field(default_factory=list)
    functions: list[Function] = field(default_factory=list)
    objects: list[Object] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.namespace, str) or not self.namespace.isidentifier():
            raise InterfaceError(f"namespace {self.namespace!r} is not a usable identifier")

    def type_names(self) -> list[str]:
        return ([e.name for e in self.enums] + [r.name for r in self.records]
                + [o.name for o in self.objects])

    def _check_new_type(self, name: str):
        _check_global_name(name, "type name")
        if name in self.type_names() or any(f.name == name for f in self.functions):
            raise InterfaceError(f"duplicate type name '{name}'")

    def add_enum(self, name: str, variants: list[str]) -> Enum:
        self._check_new_type(name)
        for variant in variants:
            _check_member_name(variant, f"variant of enum {name}")
        _check_unique(variants, f"variant in enum {name}")
        enum = Enum(name=name, variants=list(variants))
        self.enums.append(enum)
        return enum

    def add_record(self, name: str, fields: list[Field]) -> Record:
        self._check_new_type(name)
        for f in fields:
            _check_member_name(f.name, f"field of record {name}")
            if f.name == 'self':
                raise InterfaceError(f"field 'self' of record {name} is reserved in generated bindings")
        _check_unique([f.name for f in fields], f"field in record {name}")
        record = Record(name=name, fields=list(fields))
        self.records.append(record)
        return record

    def add_function(self, name: str, arguments: list[Argument],
                     return_type: Optional[TypeReference] = None) -> Function:
        _check_global_name(name, "function name")
        _check_arguments(arguments, name)
        if any(f.name == name for f in self.functions) or name in self.type_names():
            raise InterfaceError(f"duplicate function '{name}'")
        ffi_func = FFIFunction(
            name=f"{self.namespace}_{name}",
            arguments=list(arguments),
            return_type=return_type,
        )
        function = Function(name, list(arguments), return_type, ffi_func)
        self.functions.append(function)
        return function

    def add_object(self, name: str) -> Object:
        self._check_new_type(name)
        obj = Object(name=name)
        self.objects.append(obj)
        return obj

    def add_constructor(self, obj: Object, name: str, arguments: list[Argument]) -> Constructor:
        _check_identifier(name, f"constructor of {obj.name}")
        _check_arguments(arguments, f"{obj.name}.{name}")
        ffi_func = FFIFunction(
            name=f"{self.namespace}_{obj.name}_{name}",
            arguments=list(arguments),
            return_type=object_ref(obj.name),
        )
        ctor = Constructor(name, list(arguments), ffi_func)
        obj.constructors.append(ctor)
        return ctor

    def add_method(self, obj: Object, name: str, arguments: list[Argument],
                   return_type: Optional[TypeReference] = None) -> Method:
        _check_member_name(name, f"method of {obj.name}")
        if name == '_handle':
            raise InterfaceError(f"method '_handle' of {obj.name} is reserved in generated bindings")
        _check_arguments(arguments, f"{obj.name}.{name}")
        if any(m.name == name for m in obj.methods):
            raise InterfaceError(f"duplicate method '{obj.name}.{name}'")
        ffi_func = FFIFunction(
            name=f"{self.namespace}_{obj.name}_{name}",
            arguments=[Argument("handle", object_ref(obj.name))] + list(arguments),
            return_type=return_type,
        )
        method = Method(name, list(arguments), return_type, ffi_func)
        obj.methods.append(method)
        return method

    def ffi_bytebuffer_alloc(self) -> FFIFunction:
        return FFIFunction(
            name=f"{self.namespace}_bytebuffer_alloc",
            arguments=[Argument("size", U64)],
            return_type=BYTES,
        )

    def ffi_bytebuffer_free(self) -> FFIFunction:
        return FFIFunction(
            name=f"{self.namespace}_bytebuffer_free",
            arguments=[Argument("buf", BYTES)],
        )

    def iter_ffi_function_definitions(self):
        """Every native entry point, in a stable order"""
        for func in self.functions:
            yield func.ffi_func
        for obj in self.objects:
            for ctor in obj.constructors:
                yield ctor.ffi_func
            for method in obj.methods:
                yield method.ffi_func
        yield self.ffi_bytebuffer_alloc()
        yield self.ffi_bytebuffer_free()

    def iter_types(self):
        """Every type reference mentioned anywhere in the interface"""
        for record in self.records:
            for f in record.fields:
                yield from f.type.walk()
        for ffi_func in self.iter_ffi_function_definitions():
            for arg in ffi_func.arguments:
                yield from arg.type.walk()
            if ffi_func.return_type is not None:
                yield from ffi_func.return_type.walk()

    def check_references(self):
        """Raise InterfaceError for undeclared types and arguments named after types"""
        declared = {
            TypeKind.ENUM: {e.name for e in self.enums},
            TypeKind.RECORD: {r.name for r in self.records},
            TypeKind.OBJECT: {o.name for o in self.objects},
        }
        for type_ in self.iter_types():
            if type_.is_named and type_.name not in declared[type_.kind]:
                raise InterfaceError(f"reference to undeclared {type_}")

        # Arguments are locals of the generated wrappers and would hide a type
        type_names = set(self.type_names())
        routines = list(self.functions)
        for obj in self.objects:
            routines.extend(obj.constructors)
            routines.extend(obj.methods)
        for routine in routines:
            for arg in routine.arguments:
                if arg.name in type_names:
                    raise InterfaceError(
                        f"argument '{arg.name}' of {routine.ffi_func.name} hides the type of the same name")
