"""
FFI Binding Generator Package

Takes a language-neutral interface model and generates:
  1. Python bindings using ctypes, with an inlined buffer codec
  2. The C header the native library has to implement
"""

from .errors import GenerationError, UnsupportedType, UnsupportedConstructorArity, InterfaceError
from .types import (
    TypeKind, TypeReference, Argument, Field, FFIFunction, Function, Constructor,
    Method, Object, Record, Enum, ComponentInterface,
)
from .parser import InterfaceParser
from .type_mapper import TypeMapper
from .config import Config
from .emitter import BindingEmitter
from .c_api_generator import CAPIGenerator
from .python_generator import PythonGenerator

__all__ = [
    'GenerationError', 'UnsupportedType', 'UnsupportedConstructorArity', 'InterfaceError',
    'TypeKind', 'TypeReference', 'Argument', 'Field', 'FFIFunction', 'Function',
    'Constructor', 'Method', 'Object', 'Record', 'Enum', 'ComponentInterface',
    'InterfaceParser', 'TypeMapper', 'Config', 'BindingEmitter',
    'CAPIGenerator', 'PythonGenerator',
]
