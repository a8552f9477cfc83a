"""C API Generator - generates the C header the native library must implement"""

from typing import Optional

from .config import Config
from .constructs import BindingModule, NativeDeclaration
from .emitter import BindingEmitter
from .types import ComponentInterface


class CAPIGenerator:
    """Generates the C header declaring every native entry point.

    The prototypes come from the same construct tree as the Python bindings,
    so both sides of the FFI are derived from a single source.
    """

    def __init__(self, ci: ComponentInterface, config: Optional[Config] = None):
        self.ci = ci
        self.config = config or Config.from_interface(ci)

    def generate_header(self) -> str:
        module = BindingEmitter(self.ci, self.config).emit()
        return self.render(module)

    def render(self, module: BindingModule) -> str:
        lines = self._header_preamble(module.namespace)
        for decl in module.declarations:
            lines.append(self._prototype(decl))
        lines.append("")
        lines.extend(self._header_postamble(module.namespace))
        return "\n".join(lines)

    def _header_preamble(self, namespace: str) -> list[str]:
        guard = f"{namespace.upper()}_FFI_H"
        return [
            "// AUTO-GENERATED - DO NOT EDIT",
            f"#ifndef {guard}",
            f"#define {guard}",
            "",
            "#include <stdint.h>",
            "",
            "#ifdef __cplusplus",
            'extern "C" {',
            "#endif",
            "",
            "typedef struct ByteBuffer {",
            "    int64_t len;",
            "    uint8_t* data;",
            "} ByteBuffer;",
            "",
        ]

    def _header_postamble(self, namespace: str) -> list[str]:
        return [
            "#ifdef __cplusplus",
            "}",
            "#endif",
            "",
            f"#endif // {namespace.upper()}_FFI_H",
            "",
        ]

    def _prototype(self, decl: NativeDeclaration) -> str:
        ret = decl.c_restype or "void"
        params = ", ".join(
            f"{ctype} {name}" for ctype, name in zip(decl.c_argtypes, decl.arg_names)
        ) or "void"
        return f"{ret} {decl.name}({params});"
