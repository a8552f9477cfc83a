"""Type mapping from interface types to ctypes declarations and marshaling code"""

from .errors import UnsupportedType
from .types import TypeKind, TypeReference


class TypeMapper:
    """Maps interface types to the Python source that moves them across the FFI.

    Every method is a pure function of its arguments. A type kind with no rule
    for the requested derivation raises UnsupportedType.
    """

    # Native declaration types (for argtypes/restype)
    DECL_TYPES = {
        TypeKind.U32: 'ctypes.c_uint32',
        TypeKind.U64: 'ctypes.c_uint64',
        TypeKind.FLOAT: 'ctypes.c_float',
        TypeKind.DOUBLE: 'ctypes.c_double',
        TypeKind.BOOLEAN: 'ctypes.c_byte',
        TypeKind.BYTES: 'ByteBuffer',
        TypeKind.ENUM: 'ctypes.c_uint32',
        TypeKind.RECORD: 'ByteBuffer',
        TypeKind.OPTIONAL: 'ByteBuffer',
        TypeKind.OBJECT: 'ctypes.c_uint64',
    }

    # C declaration types (for the native header)
    C_TYPES = {
        TypeKind.U32: 'uint32_t',
        TypeKind.U64: 'uint64_t',
        TypeKind.FLOAT: 'float',
        TypeKind.DOUBLE: 'double',
        TypeKind.BOOLEAN: 'int8_t',
        TypeKind.BYTES: 'ByteBuffer',
        TypeKind.ENUM: 'uint32_t',
        TypeKind.RECORD: 'ByteBuffer',
        TypeKind.OPTIONAL: 'ByteBuffer',
        TypeKind.OBJECT: 'uint64_t',
    }

    # Scalars that cross the boundary as machine values
    SCALAR_KINDS = (
        TypeKind.U32, TypeKind.U64, TypeKind.FLOAT, TypeKind.DOUBLE, TypeKind.BOOLEAN,
    )

    # Fixed in-buffer sizes and the BufferStream accessor suffix for each
    PRIMITIVE_CODECS = {
        TypeKind.U32: (4, 'u32'),
        TypeKind.U64: (8, 'u64'),
        TypeKind.FLOAT: (4, 'float'),
        TypeKind.DOUBLE: (8, 'double'),
        TypeKind.BOOLEAN: (1, 'boolean'),
    }

    # Python type hints
    PY_TYPES = {
        TypeKind.U32: 'int',
        TypeKind.U64: 'int',
        TypeKind.FLOAT: 'float',
        TypeKind.DOUBLE: 'float',
        TypeKind.BOOLEAN: 'bool',
        TypeKind.BYTES: 'bytes',
        TypeKind.STRING: 'str',
    }

    @classmethod
    def decl_c(cls, type_: TypeReference) -> str:
        """ctypes declaration used in argtypes/restype"""
        if type_.kind in cls.DECL_TYPES:
            return cls.DECL_TYPES[type_.kind]
        raise UnsupportedType(type_, 'decl_c')

    @classmethod
    def decl_c_header(cls, type_: TypeReference) -> str:
        """C declaration used in the native header"""
        if type_.kind in cls.C_TYPES:
            return cls.C_TYPES[type_.kind]
        raise UnsupportedType(type_, 'decl_c_header')

    @classmethod
    def coerce(cls, nm: str, type_: TypeReference) -> str:
        """Statement validating and normalizing argument ``nm``"""
        if type_.kind in cls.SCALAR_KINDS or type_.kind == TypeKind.BYTES:
            return f'{nm} = coerce_{type_.kind.value}({nm})'
        elif type_.kind == TypeKind.ENUM:
            return f'{nm} = {type_.name}({nm})'
        elif type_.kind == TypeKind.RECORD:
            return f'{nm} = {type_.name}._coerce({nm})'
        raise UnsupportedType(type_, 'coerce')

    @classmethod
    def coerce_field(cls, nm: str, type_: TypeReference) -> str:
        """Expression validating and normalizing record field value ``nm``"""
        if type_.kind in cls.SCALAR_KINDS or type_.kind == TypeKind.BYTES:
            return f'coerce_{type_.kind.value}({nm})'
        elif type_.kind == TypeKind.ENUM:
            return f'{type_.name}({nm})'
        elif type_.kind == TypeKind.RECORD:
            return f'{type_.name}._coerce({nm})'
        elif type_.kind == TypeKind.OPTIONAL:
            return f'coerce_optional({nm}, lambda v: {cls.coerce_field("v", type_.inner)})'
        raise UnsupportedType(type_, 'coerce_field')

    @classmethod
    def lower(cls, nm: str, type_: TypeReference) -> str:
        """Expression turning ``nm`` into the value passed to the native call"""
        if type_.kind in cls.SCALAR_KINDS:
            return nm
        elif type_.kind == TypeKind.BYTES:
            return f'lower_bytes({nm})'
        elif type_.kind == TypeKind.ENUM:
            return f'{nm}.value'
        elif type_.kind == TypeKind.RECORD:
            return f'{type_.name}._lower({nm})'
        elif type_.kind == TypeKind.OPTIONAL:
            inner = type_.inner
            return (f'lower_optional({nm}, '
                    f'lambda v: {cls.lowers_into_size("v", inner)}, '
                    f'lambda v, buf: {cls.lower_into("v", "buf", inner)})')
        raise UnsupportedType(type_, 'lower')

    @classmethod
    def lift(cls, nm: str, type_: TypeReference) -> str:
        """Expression turning native value ``nm`` back into a Python value"""
        if type_.kind == TypeKind.BOOLEAN:
            return f'bool({nm})'
        elif type_.kind in cls.SCALAR_KINDS:
            return nm
        elif type_.kind == TypeKind.BYTES:
            return f'lift_bytes({nm})'
        elif type_.kind == TypeKind.ENUM:
            return f'{type_.name}({nm})'
        elif type_.kind == TypeKind.RECORD:
            return f'{type_.name}._lift({nm})'
        elif type_.kind == TypeKind.OPTIONAL:
            return f'lift_optional({nm}, lambda buf: {cls.lift_from("buf", type_.inner)})'
        raise UnsupportedType(type_, 'lift')

    @classmethod
    def lowers_into_size(cls, nm: str, type_: TypeReference) -> str:
        """Expression for the number of bytes ``nm`` occupies inside a buffer"""
        if type_.kind in cls.PRIMITIVE_CODECS:
            return str(cls.PRIMITIVE_CODECS[type_.kind][0])
        elif type_.kind == TypeKind.ENUM:
            return '4'
        elif type_.kind == TypeKind.BYTES:
            return f'4 + len({nm})'
        elif type_.kind == TypeKind.RECORD:
            return f'{type_.name}._lowers_into_size({nm})'
        elif type_.kind == TypeKind.OPTIONAL:
            return (f'lowers_into_size_optional({nm}, '
                    f'lambda v: {cls.lowers_into_size("v", type_.inner)})')
        raise UnsupportedType(type_, 'lowers_into_size')

    @classmethod
    def lower_into(cls, nm: str, target: str, type_: TypeReference) -> str:
        """Statement writing ``nm`` into the BufferStream ``target``"""
        if type_.kind in cls.PRIMITIVE_CODECS:
            return f'{target}.put_{cls.PRIMITIVE_CODECS[type_.kind][1]}({nm})'
        elif type_.kind == TypeKind.ENUM:
            return f'{target}.put_u32({nm}.value)'
        elif type_.kind == TypeKind.BYTES:
            return f'{target}.put_bytes({nm})'
        elif type_.kind == TypeKind.RECORD:
            return f'{type_.name}._lower_into({nm}, {target})'
        elif type_.kind == TypeKind.OPTIONAL:
            return (f'lower_into_optional({nm}, {target}, '
                    f'lambda v, buf: {cls.lower_into("v", "buf", type_.inner)})')
        raise UnsupportedType(type_, 'lower_into')

    @classmethod
    def lift_from(cls, nm: str, type_: TypeReference) -> str:
        """Expression reading a value off the BufferStream ``nm``"""
        if type_.kind in cls.PRIMITIVE_CODECS:
            return f'{nm}.get_{cls.PRIMITIVE_CODECS[type_.kind][1]}()'
        elif type_.kind == TypeKind.ENUM:
            return f'{type_.name}({nm}.get_u32())'
        elif type_.kind == TypeKind.BYTES:
            return f'{nm}.get_bytes()'
        elif type_.kind == TypeKind.RECORD:
            return f'{type_.name}._lift_from({nm})'
        elif type_.kind == TypeKind.OPTIONAL:
            return f'lift_from_optional({nm}, lambda buf: {cls.lift_from("buf", type_.inner)})'
        raise UnsupportedType(type_, 'lift_from')

    @classmethod
    def py_type(cls, type_: TypeReference) -> str:
        """Python type hint for generated signatures"""
        if type_.kind in cls.PY_TYPES:
            return cls.PY_TYPES[type_.kind]
        elif type_.kind == TypeKind.OPTIONAL:
            return f'Optional[{cls.py_type(type_.inner)}]'
        elif type_.is_named:
            return f"'{type_.name}'"
        return 'object'

