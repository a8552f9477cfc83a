"""Interface model loader.

Reads a pre-built interface model from its JSON document form::

    {
      "namespace": "geometry",
      "enums": [{"name": "Color", "variants": ["RED", "GREEN"]}],
      "records": [{"name": "Point",
                   "fields": [{"name": "x", "type": "double"}]}],
      "functions": [{"name": "gradient",
                     "arguments": [{"name": "ln", "type": "Line"}],
                     "return_type": "double"}],
      "objects": [{"name": "Counter",
                   "constructors": [{"name": "new", "arguments": []}],
                   "methods": [{"name": "get", "return_type": "u64"}]}]
    }

Type strings are primitive names, declared type names, ``optional<T>``
(or ``T?``), ``sequence<T>`` and ``map<T>``.
"""

import json
import re
from typing import Optional

from .errors import InterfaceError
from .types import (
    BOOLEAN, BYTES, DOUBLE, FLOAT, STRING, U32, U64,
    Argument, ComponentInterface, Field, TypeReference,
    enum_ref, map_of, object_ref, optional, record_ref, sequence,
)

PRIMITIVES = {
    'u32': U32,
    'u64': U64,
    'float': FLOAT,
    'double': DOUBLE,
    'boolean': BOOLEAN,
    'bytes': BYTES,
    'string': STRING,
}

WRAPPERS = {
    'optional': optional,
    'sequence': sequence,
    'map': map_of,
}


class InterfaceParser:
    """Builds a ComponentInterface from a JSON model document"""

    def __init__(self, content: str):
        try:
            self.data = json.loads(content)
        except json.JSONDecodeError as e:
            raise InterfaceError(f"interface model is not valid JSON: {e}") from e
        if not isinstance(self.data, dict):
            raise InterfaceError("interface model must be a JSON object")
        self._enum_names: set[str] = set()
        self._record_names: set[str] = set()
        self._object_names: set[str] = set()

    def parse(self) -> ComponentInterface:
        namespace = self.data.get('namespace')
        if not namespace or not isinstance(namespace, str):
            raise InterfaceError("interface model needs a 'namespace' string")

        enums = self._list(self.data, 'enums')
        records = self._list(self.data, 'records')
        functions = self._list(self.data, 'functions')
        objects = self._list(self.data, 'objects')

        # Names first, so types may refer to definitions declared later
        self._enum_names = {self._name(e) for e in enums}
        self._record_names = {self._name(r) for r in records}
        self._object_names = {self._name(o) for o in objects}

        ci = ComponentInterface(namespace=namespace)
        for e in enums:
            ci.add_enum(e['name'], self._list(e, 'variants'))
        for r in records:
            fields = [Field(self._name(f), self._type(f)) for f in self._list(r, 'fields')]
            ci.add_record(r['name'], fields)
        for f in functions:
            ci.add_function(f['name'], self._arguments(f), self._return_type(f))
        for o in objects:
            obj = ci.add_object(o['name'])
            for ctor in self._list(o, 'constructors'):
                ci.add_constructor(obj, self._entry(ctor).get('name', 'new'), self._arguments(ctor))
            for m in self._list(o, 'methods'):
                ci.add_method(obj, self._name(m), self._arguments(m), self._return_type(m))

        ci.check_references()
        return ci

    def parse_type(self, text: str) -> TypeReference:
        """Resolve a type string against the declared type names"""
        if not isinstance(text, str):
            raise InterfaceError(f"type must be a string, got {text!r}")
        text = text.strip()
        if text.endswith('?'):
            return optional(self.parse_type(text[:-1]))
        if m := re.fullmatch(r'(\w+)\s*<(.+)>', text):
            wrapper, inner = m.group(1), m.group(2)
            if wrapper not in WRAPPERS:
                raise InterfaceError(f"unknown type constructor '{wrapper}' in '{text}'")
            return WRAPPERS[wrapper](self.parse_type(inner))
        if text in PRIMITIVES:
            return PRIMITIVES[text]
        if text in self._enum_names:
            return enum_ref(text)
        if text in self._record_names:
            return record_ref(text)
        if text in self._object_names:
            return object_ref(text)
        raise InterfaceError(f"unknown type '{text}'")

    def _entry(self, decl) -> dict:
        if not isinstance(decl, dict):
            raise InterfaceError(f"definition must be a JSON object, got {decl!r}")
        return decl

    def _list(self, decl: dict, key: str) -> list:
        items = decl.get(key, [])
        if not isinstance(items, list):
            raise InterfaceError(f"'{key}' must be a list, got {items!r}")
        return items

    def _name(self, decl) -> str:
        if not isinstance(self._entry(decl).get('name'), str):
            raise InterfaceError(f"definition without a name: {decl!r}")
        return decl['name']

    def _type(self, decl: dict) -> TypeReference:
        if 'type' not in decl:
            raise InterfaceError(f"definition without a type: {decl!r}")
        return self.parse_type(decl['type'])

    def _arguments(self, decl: dict) -> list[Argument]:
        return [Argument(self._name(a), self._type(a)) for a in self._list(decl, 'arguments')]

    def _return_type(self, decl: dict) -> Optional[TypeReference]:
        ret = decl.get('return_type')
        return self.parse_type(ret) if ret is not None else None
