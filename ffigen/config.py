"""Generator options"""

from dataclasses import dataclass, fields, replace
from typing import Optional

from .types import ComponentInterface


@dataclass(frozen=True)
class Config:
    """Options that shape the generated code without changing the interface.

    Nothing here may affect how values cross the FFI; that is fixed by the
    ComponentInterface alone.
    """
    library_name: str
    module_name: str
    c_header: bool = False

    @classmethod
    def from_interface(cls, ci: ComponentInterface, **overrides: Optional[object]) -> 'Config':
        """Defaults derived from the interface, with non-None overrides applied"""
        config = cls(
            library_name=f"uniffi_{ci.namespace}",
            module_name=ci.namespace,
        )
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"unknown config option(s): {', '.join(sorted(unknown))}")
        return replace(config, **{k: v for k, v in overrides.items() if v is not None})
