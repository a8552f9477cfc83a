"""Python Generator - generates Python bindings using ctypes for shared library access"""

from pathlib import Path
from typing import Optional

from .config import Config
from .constructs import BindingModule, EnumType, NativeDeclaration, ObjectType, RecordType, Routine
from .emitter import BindingEmitter
from .types import ComponentInterface

RUNTIME_SOURCE = Path(__file__).with_name("runtime.py")

RULE = "# ══════════════════════════════════════════════════════════════"


def _section(title: str) -> list[str]:
    return [RULE, f"# {title}", RULE, ""]


class PythonGenerator:
    """Generates Python bindings using ctypes"""

    def __init__(self, ci: ComponentInterface, config: Optional[Config] = None):
        self.ci = ci
        self.config = config or Config.from_interface(ci)

    def generate(self) -> str:
        """Generate complete Python module"""
        module = BindingEmitter(self.ci, self.config).emit()
        return self.render(module)

    def render(self, module: BindingModule) -> str:
        lines = [
            '"""',
            f"AUTO-GENERATED Python bindings for {module.namespace}",
            "DO NOT EDIT - Generated by ffigen",
            '"""',
            "",
            "import ctypes",
            "import enum",
            "import os",
            "import sys",
            "from typing import Optional",
            "",
            "",
        ]
        lines.extend(self._generate_runtime())
        lines.extend(self._generate_library_loader(module))
        lines.extend(self._generate_function_decls(module))
        lines.extend(self._generate_enums(module.enums))
        lines.extend(self._generate_records(module.records))
        lines.extend(self._generate_functions(module.functions))
        for obj in module.objects:
            lines.extend(self._generate_object(obj))
        lines.extend(self._generate_exports(module.exports))
        return "\n".join(lines)

    def _generate_runtime(self) -> list[str]:
        """Inline the buffer codec helpers"""
        lines = _section("Runtime Helpers")
        lines.extend(RUNTIME_SOURCE.read_text(encoding="utf-8").rstrip("\n").split("\n"))
        lines.extend(["", ""])
        return lines

    def _generate_library_loader(self, module: BindingModule) -> list[str]:
        lib = module.library_name
        lines = _section("Library Loading")
        lines.extend([
            "def _load_library():",
            '    """Load the native library"""',
            "    if sys.platform == 'win32':",
            f'        lib_name = "{lib}.dll"',
            "    elif sys.platform == 'darwin':",
            f'        lib_name = "lib{lib}.dylib"',
            "    else:",
            f'        lib_name = "lib{lib}.so"',
            "",
            "    this_dir = os.path.dirname(os.path.abspath(__file__))",
            "    for path in (this_dir, os.getcwd()):",
            "        lib_path = os.path.join(path, lib_name)",
            "        if os.path.exists(lib_path):",
            "            return ctypes.CDLL(lib_path)",
            "",
            "    # Try system library path",
            "    return ctypes.CDLL(lib_name)",
            "",
            "",
            "_lib = _load_library()",
            "",
        ])
        return lines

    def _generate_function_decls(self, module: BindingModule) -> list[str]:
        """Generate ctypes function declarations"""
        lines = _section("Native Entry Points")
        for decl in module.declarations:
            lines.extend(self._function_decl(decl))
        lines.append(f"ByteBuffer.bind(_lib.{module.alloc_name}, _lib.{module.free_name})")
        lines.extend(["", ""])
        return lines

    def _function_decl(self, decl: NativeDeclaration) -> list[str]:
        lines = [f"_lib.{decl.name}.argtypes = ("]
        lines.extend(f"    {t}," for t in decl.argtypes)
        lines.append(")")
        lines.append(f"_lib.{decl.name}.restype = {decl.restype or 'None'}")
        lines.append("")
        return lines

    def _generate_enums(self, enums: tuple[EnumType, ...]) -> list[str]:
        """Generate Python enum classes"""
        if not enums:
            return []

        lines = _section("Enum Definitions")
        for e in enums:
            lines.append(f"class {e.name}(enum.Enum):")
            for name, ordinal in e.variants:
                lines.append(f"    {name} = {ordinal}")
            if not e.variants:
                lines.append("    pass")
            lines.extend(["", ""])
        return lines

    def _generate_records(self, records: tuple[RecordType, ...]) -> list[str]:
        """Generate record classes with their buffer codec"""
        if not records:
            return []

        lines = _section("Record Definitions")
        for rec in records:
            lines.extend(self._generate_record(rec))
        return lines

    def _generate_record(self, rec: RecordType) -> list[str]:
        names = [f.name for f in rec.fields]
        params = "".join(f", {f.name}: {f.py_type}" for f in rec.fields)
        lines = [
            f"class {rec.name}(object):",
            f"    def __init__(self{params}):",
        ]
        lines.extend(f"        self.{n} = {n}" for n in names)
        if not names:
            lines.append("        pass")

        field_strs = ", ".join(f"{n}={{}}" for n in names)
        field_args = ", ".join(f"self.{n}" for n in names)
        lines.extend([
            "",
            "    def __str__(self):",
            f'        return "{rec.name}({field_strs})".format({field_args})',
            "",
            "    __repr__ = __str__",
            "",
            "    def __eq__(self, other):",
            f"        if not isinstance(other, {rec.name}):",
            "            return NotImplemented",
            f"        return [{field_args}] == [{', '.join(f'other.{n}' for n in names)}]",
            "",
            "    __hash__ = None",
            "",
            "    @classmethod",
            "    def _coerce(cls, v):",
            "        if not isinstance(v, cls):",
            '            raise TypeError("expected {}, got {!r}".format(cls.__name__, v))',
            "        return cls(",
        ])
        lines.extend(f"            {f.coerce}," for f in rec.fields)
        lines.extend([
            "        )",
            "",
            "    @classmethod",
            "    def _lift(cls, rbuf):",
            "        return lift_buffer(rbuf, cls._lift_from)",
            "",
            "    @classmethod",
            "    def _lift_from(cls, buf):",
            "        return cls(",
        ])
        lines.extend(f"            {f.lift_from}," for f in rec.fields)
        lines.extend([
            "        )",
            "",
            "    @classmethod",
            "    def _lower(cls, v):",
            "        return lower_buffer(cls._lowers_into_size(v), lambda buf: cls._lower_into(v, buf))",
            "",
            "    @classmethod",
            "    def _lowers_into_size(cls, v):",
            f"        return {' + '.join(['0'] + [f.lowers_into_size for f in rec.fields])}",
            "",
            "    @classmethod",
            "    def _lower_into(cls, v, buf):",
        ])
        lines.extend(f"        {f.lower_into}" for f in rec.fields)
        if not rec.fields:
            lines.append("        pass")
        lines.extend(["", ""])
        return lines

    def _generate_functions(self, functions: tuple[Routine, ...]) -> list[str]:
        if not functions:
            return []

        lines = _section("Functions")
        for func in functions:
            lines.extend(self._generate_routine(func, indent=""))
            lines.append("")
        return lines

    def _generate_routine(self, routine: Routine, indent: str, handle: bool = False) -> list[str]:
        """Wrapper that coerces, lowers, calls the native entry point and lifts"""
        params = [f"{a.name}: {a.py_type}" for a in routine.arguments]
        if handle:
            params.insert(0, "self")
        signature = f"def {routine.name}({', '.join(params)})"
        if routine.name != "__init__":
            signature += f" -> {routine.py_return_type}"

        body = indent + "    "
        lines = [f"{indent}{signature}:"]
        lines.extend(f"{body}{a.coerce}" for a in routine.arguments)

        call_args = [f"{a.lower}," for a in routine.arguments]
        if handle and routine.name != "__init__":
            call_args.insert(0, "self._handle,")

        if routine.name == "__init__":
            call = f"self._handle = _lib.{routine.ffi_name}("
        elif routine.lift is not None:
            call = f"_retval = _lib.{routine.ffi_name}("
        else:
            call = f"_lib.{routine.ffi_name}("
        lines.append(f"{body}{call}")
        lines.extend(f"{body}    {arg}" for arg in call_args)
        lines.append(f"{body})")
        if routine.lift is not None:
            lines.append(f"{body}return {routine.lift}")
        lines.append("")
        return lines

    def _generate_object(self, obj: ObjectType) -> list[str]:
        """Generate Python wrapper class for an object"""
        lines = _section(f"{obj.name} Object")
        lines.append(f"class {obj.name}(object):")
        lines.extend(self._generate_routine(obj.constructor, indent="    ", handle=True))
        for method in obj.methods:
            lines.extend(self._generate_routine(method, indent="    ", handle=True))
        lines.append("")
        return lines

    def _generate_exports(self, exports: tuple[str, ...]) -> list[str]:
        lines = ["__all__ = ["]
        lines.extend(f'    "{name}",' for name in exports)
        lines.append("]")
        lines.append("")
        return lines
