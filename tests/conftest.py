import ctypes
import importlib.util
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
DATA = Path(__file__).resolve().parent / "data"

# Ensure repo root is importable when pytest uses importlib mode.
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ffigen import runtime  # noqa: E402
from ffigen.python_generator import PythonGenerator  # noqa: E402
from ffigen.types import (  # noqa: E402
    BOOLEAN, BYTES, DOUBLE, FLOAT, U32, U64,
    Argument, ComponentInterface, Field, enum_ref, optional, record_ref,
)


def build_geometry_interface() -> ComponentInterface:
    ci = ComponentInterface(namespace="geometry")
    ci.add_enum("Color", ["RED", "GREEN", "BLUE"])
    point = record_ref("Point")
    line = record_ref("Line")
    ci.add_record("Point", [Field("x", DOUBLE), Field("y", DOUBLE)])
    ci.add_record("Line", [Field("start", point), Field("end", point)])
    ci.add_record("Anchor", [Field("point", point)])
    ci.add_record("Sample", [
        Field("count", U32),
        Field("total", U64),
        Field("ratio", FLOAT),
        Field("flag", BOOLEAN),
        Field("color", enum_ref("Color")),
        Field("payload", BYTES),
        Field("weight", optional(DOUBLE)),
        Field("anchor", optional(point)),
    ])
    ci.add_function("gradient", [Argument("ln", line)], DOUBLE)
    ci.add_function("intersection", [Argument("ln1", line), Argument("ln2", line)], optional(point))
    ci.add_function("next_color", [Argument("color", enum_ref("Color"))], enum_ref("Color"))
    ci.add_function("is_origin", [Argument("p", point)], BOOLEAN)
    ci.add_function("reverse", [Argument("data", BYTES)], BYTES)
    ci.add_function("echo_sample", [Argument("sample", record_ref("Sample"))], record_ref("Sample"))
    ci.add_function("log_point", [Argument("p", point)])
    counter = ci.add_object("Counter")
    ci.add_constructor(counter, "new", [Argument("start", U64)])
    ci.add_method(counter, "increment", [Argument("by", U32)], U64)
    ci.add_method(counter, "reset", [])
    return ci


@pytest.fixture
def geometry_ci():
    return build_geometry_interface()


@pytest.fixture
def geometry_json():
    return (DATA / "geometry.json").read_text()


class LocalAllocator:
    """Stands in for the native library's ByteBuffer allocator"""

    def __init__(self):
        self.live = {}
        self.allocated = 0

    def alloc(self, buffer_type, size):
        storage = (ctypes.c_uint8 * size)()
        rbuf = buffer_type(size, ctypes.cast(storage, ctypes.POINTER(ctypes.c_uint8)))
        self.live[ctypes.addressof(storage)] = storage
        self.allocated += 1
        return rbuf

    def free(self, rbuf):
        address = ctypes.cast(rbuf.data, ctypes.c_void_p).value
        if self.live.pop(address, None) is None:
            raise AssertionError("release of an unknown or already released buffer")


@pytest.fixture
def allocator():
    alloc = LocalAllocator()
    runtime.ByteBuffer.bind(lambda size: alloc.alloc(runtime.ByteBuffer, size), alloc.free)
    yield alloc
    runtime.ByteBuffer.bind(None, None)


def make_buffer(allocator, data: bytes):
    rbuf = allocator.alloc(runtime.ByteBuffer, len(data))
    for i, byte in enumerate(data):
        rbuf.data[i] = byte
    return rbuf


class FakeFunction:
    """Native entry point; argtypes/restype are recorded, calls are forwarded"""

    def __init__(self, name, resolve):
        self.name = name
        self.argtypes = None
        self.restype = None
        self._resolve = resolve

    def __call__(self, *args):
        return self._resolve(self.name)(*args)


class FakeLibrary:
    def __init__(self, natives):
        self.natives = natives
        self.functions = {}
        self.opened = []

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        if name not in self.functions:
            self.functions[name] = FakeFunction(name, self._resolve)
        return self.functions[name]

    def _resolve(self, name):
        prefix = "geometry_"
        assert name.startswith(prefix), name
        return getattr(self.natives, name[len(prefix):])


class GeometryNatives:
    """Python rendition of the native side of the geometry component"""

    def __init__(self, allocator):
        self.allocator = allocator
        self.module = None
        self.counters = {}
        self.logged = []

    def bytebuffer_alloc(self, size):
        return self.allocator.alloc(self.module.ByteBuffer, size)

    def bytebuffer_free(self, rbuf):
        self.allocator.free(rbuf)

    def _lower_optional_point(self, point):
        m = self.module
        return m.lower_optional(point, m.Point._lowers_into_size, lambda v, buf: m.Point._lower_into(v, buf))

    def gradient(self, ln):
        ln = self.module.Line._lift(ln)
        return (ln.end.y - ln.start.y) / (ln.end.x - ln.start.x)

    def intersection(self, ln1, ln2):
        a = self.module.Line._lift(ln1)
        b = self.module.Line._lift(ln2)
        ga = (a.end.y - a.start.y) / (a.end.x - a.start.x)
        gb = (b.end.y - b.start.y) / (b.end.x - b.start.x)
        if ga == gb:
            return self._lower_optional_point(None)
        ca = a.start.y - ga * a.start.x
        cb = b.start.y - gb * b.start.x
        x = (cb - ca) / (ga - gb)
        return self._lower_optional_point(self.module.Point(x, ga * x + ca))

    def next_color(self, ordinal):
        return ordinal % 3 + 1

    def is_origin(self, p):
        p = self.module.Point._lift(p)
        return 1 if p.x == 0 and p.y == 0 else 0

    def reverse(self, data):
        return self.module.lower_bytes(self.module.lift_bytes(data)[::-1])

    def echo_sample(self, sample):
        return self.module.Sample._lower(self.module.Sample._lift(sample))

    def log_point(self, p):
        self.logged.append(self.module.Point._lift(p))

    def Counter_new(self, start):
        handle = len(self.counters) + 1
        self.counters[handle] = start
        return handle

    def Counter_increment(self, handle, by):
        self.counters[handle] += by
        return self.counters[handle]

    def Counter_reset(self, handle):
        self.counters[handle] = 0


def load_module(path: Path, name: str):
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def natives():
    return GeometryNatives(LocalAllocator())


@pytest.fixture
def fake_library(natives):
    return FakeLibrary(natives)


@pytest.fixture
def bindings(tmp_path, monkeypatch, geometry_ci, natives, fake_library):
    """The generated geometry module, imported against GeometryNatives"""
    path = tmp_path / "geometry.py"
    path.write_text(PythonGenerator(geometry_ci).generate(), encoding="utf-8")

    def fake_cdll(name):
        fake_library.opened.append(os.path.basename(name))
        return fake_library

    monkeypatch.setattr(ctypes, "CDLL", fake_cdll)
    module = load_module(path, "geometry")
    natives.module = module
    return module
