"""Binding Emitter - resolves an interface into an ordered tree of source constructs"""

from typing import Optional

from .config import Config
from .constructs import (
    BindingModule, CallArgument, EnumType, NativeDeclaration, ObjectType,
    RecordField, RecordType, Routine,
)
from .errors import UnsupportedConstructorArity
from .type_mapper import TypeMapper
from .types import (
    Argument, ComponentInterface, Enum, FFIFunction, Function, Method, Object,
    Record, TypeReference,
)


class BindingEmitter:
    """Builds a BindingModule for one ComponentInterface.

    Every marshaling rule is derived up front, so an unsupported type or
    construct raises before a single line is rendered.
    """

    def __init__(self, ci: ComponentInterface, config: Optional[Config] = None):
        self.ci = ci
        self.config = config or Config.from_interface(ci)

    def emit(self) -> BindingModule:
        self.ci.check_references()

        declarations = tuple(self._native_declaration(f)
                             for f in self.ci.iter_ffi_function_definitions())
        enums = tuple(self._enum_type(e) for e in self.ci.enums)
        records = tuple(self._record_type(r) for r in self.ci.records)
        functions = tuple(self._function(f) for f in self.ci.functions)
        objects = tuple(self._object_type(o) for o in self.ci.objects)
        exports = tuple(
            [e.name for e in enums]
            + [r.name for r in records]
            + [f.name for f in functions]
            + [o.name for o in objects]
        )

        return BindingModule(
            namespace=self.ci.namespace,
            library_name=self.config.library_name,
            alloc_name=self.ci.ffi_bytebuffer_alloc().name,
            free_name=self.ci.ffi_bytebuffer_free().name,
            declarations=declarations,
            enums=enums,
            records=records,
            functions=functions,
            objects=objects,
            exports=exports,
        )

    def _native_declaration(self, ffi_func: FFIFunction) -> NativeDeclaration:
        ret = ffi_func.return_type
        return NativeDeclaration(
            name=ffi_func.name,
            argtypes=tuple(TypeMapper.decl_c(a.type) for a in ffi_func.arguments),
            restype=TypeMapper.decl_c(ret) if ret is not None else None,
            c_argtypes=tuple(TypeMapper.decl_c_header(a.type) for a in ffi_func.arguments),
            c_restype=TypeMapper.decl_c_header(ret) if ret is not None else None,
            arg_names=tuple(a.name for a in ffi_func.arguments),
        )

    def _enum_type(self, enum: Enum) -> EnumType:
        return EnumType(name=enum.name, variants=tuple(enum.ordinals()))

    def _record_type(self, record: Record) -> RecordType:
        fields = []
        for f in record.fields:
            value = f"v.{f.name}"
            fields.append(RecordField(
                name=f.name,
                py_type=TypeMapper.py_type(f.type),
                lowers_into_size=TypeMapper.lowers_into_size(value, f.type),
                lower_into=TypeMapper.lower_into(value, "buf", f.type),
                lift_from=TypeMapper.lift_from("buf", f.type),
                coerce=TypeMapper.coerce_field(value, f.type),
            ))
        return RecordType(name=record.name, fields=tuple(fields))

    def _call_argument(self, arg: Argument) -> CallArgument:
        return CallArgument(
            name=arg.name,
            py_type=TypeMapper.py_type(arg.type),
            coerce=TypeMapper.coerce(arg.name, arg.type),
            lower=TypeMapper.lower(arg.name, arg.type),
        )

    def _routine(self, name: str, arguments: list[Argument], ffi_func: FFIFunction,
                 return_type: Optional[TypeReference]) -> Routine:
        return Routine(
            name=name,
            arguments=tuple(self._call_argument(a) for a in arguments),
            ffi_name=ffi_func.name,
            lift=TypeMapper.lift("_retval", return_type) if return_type is not None else None,
            py_return_type=TypeMapper.py_type(return_type) if return_type is not None else 'None',
        )

    def _function(self, func: Function) -> Routine:
        return self._routine(func.name, func.arguments, func.ffi_func, func.return_type)

    def _method(self, method: Method) -> Routine:
        return self._routine(method.name, method.arguments, method.ffi_func, method.return_type)

    def _object_type(self, obj: Object) -> ObjectType:
        # TODO: multiple constructors need named factory classmethods
        if len(obj.constructors) != 1:
            raise UnsupportedConstructorArity(obj.name, len(obj.constructors))
        ctor = obj.constructors[0]
        return ObjectType(
            name=obj.name,
            constructor=self._routine("__init__", ctor.arguments, ctor.ffi_func, None),
            methods=tuple(self._method(m) for m in obj.methods),
        )
