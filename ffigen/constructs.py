"""Source constructs produced by the binding emitter.

The emitter resolves every marshaling rule into one of these frozen records
before anything is rendered. Code fragments are plain Python source strings
already derived by the TypeMapper; renderers only lay them out.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NativeDeclaration:
    """argtypes/restype of one native entry point"""
    name: str
    argtypes: tuple[str, ...]
    restype: Optional[str]
    # C spellings of the same signature, for the native header
    c_argtypes: tuple[str, ...] = ()
    c_restype: Optional[str] = None
    arg_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class EnumType:
    name: str
    variants: tuple[tuple[str, int], ...]


@dataclass(frozen=True)
class RecordField:
    name: str
    py_type: str
    lowers_into_size: str
    lower_into: str
    lift_from: str
    coerce: str


@dataclass(frozen=True)
class RecordType:
    name: str
    fields: tuple[RecordField, ...]


@dataclass(frozen=True)
class CallArgument:
    """Argument of a wrapper: how it is validated and how it is passed"""
    name: str
    py_type: str
    coerce: str
    lower: str


@dataclass(frozen=True)
class Routine:
    """Free function or method wrapping one native entry point"""
    name: str
    arguments: tuple[CallArgument, ...]
    ffi_name: str
    lift: Optional[str]
    py_return_type: str = 'None'


@dataclass(frozen=True)
class ObjectType:
    name: str
    constructor: Routine
    methods: tuple[Routine, ...]


@dataclass(frozen=True)
class BindingModule:
    """Everything one generated module contains, in emission order"""
    namespace: str
    library_name: str
    alloc_name: str
    free_name: str
    declarations: tuple[NativeDeclaration, ...]
    enums: tuple[EnumType, ...]
    records: tuple[RecordType, ...]
    functions: tuple[Routine, ...]
    objects: tuple[ObjectType, ...]
    exports: tuple[str, ...]
