#!/usr/bin/env python3
"""
FFI Binding Generator

Reads a JSON interface model and generates:
  1. Python ctypes bindings for the native library
  2. The C header declaring the native entry points (optional)

Usage:
    python generate_bindings.py model.json --output-dir generated/
    python generate_bindings.py model.json -o generated/ --library-name mylib --c-header
"""

import argparse
import sys
import time
from pathlib import Path

# Add parent directory to path so ffigen package can be found
sys.path.insert(0, str(Path(__file__).parent.parent))

from ffigen import (
    CAPIGenerator,
    Config,
    GenerationError,
    InterfaceError,
    InterfaceParser,
    PythonGenerator,
)


def main(argv=None):
    start_time = time.perf_counter()

    parser = argparse.ArgumentParser(description="Generate Python FFI bindings from an interface model")
    parser.add_argument("model_file", nargs="?", help="Path to JSON interface model (positional)")
    parser.add_argument("--model", help="Path to JSON interface model (alternative)")
    parser.add_argument("--output-dir", "-o", default="generated", help="Output directory")
    parser.add_argument("--library-name", default=None, help="Native library base name")
    parser.add_argument("--module-name", default=None, help="Generated Python module name")
    parser.add_argument("--c-header", action="store_true", default=None, help="Also generate the C header")
    args = parser.parse_args(argv)

    # Support both positional and --model argument
    model_file = args.model_file or args.model
    if not model_file:
        parser.error("interface model is required (positional or --model)")

    model_path = Path(model_file)
    try:
        ci = InterfaceParser(model_path.read_text()).parse()
        config = Config.from_interface(
            ci,
            library_name=args.library_name,
            module_name=args.module_name,
            c_header=args.c_header,
        )

        # Render everything before touching the output directory
        files = {f"{config.module_name}.py": PythonGenerator(ci, config).generate()}
        if config.c_header:
            files[f"{ci.namespace}.h"] = CAPIGenerator(ci, config).generate_header()
    except (GenerationError, InterfaceError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    for filename, content in files.items():
        path = output_dir / filename
        path.write_text(content, encoding="utf-8")
        print(f"Generated: {path}")

    elapsed = time.perf_counter() - start_time
    print(f"Generation completed in {elapsed*1000:.2f} ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
