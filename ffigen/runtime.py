# Helper code shared by every generated binding.
#
# The generator copies this module verbatim into each generated file, because
# the way values are laid out in a ByteBuffer has to match the native library
# the bindings were generated against. It is also importable as
# ``ffigen.runtime`` so the codec can be exercised without a native library.

import ctypes
import struct


class MarshalError(RuntimeError):
    """A value could not be moved across the FFI boundary"""


class OutOfBounds(MarshalError):
    """A read or write would run past the end of a ByteBuffer"""


class TrailingBytes(MarshalError):
    """Bytes were left over after lifting a value out of a ByteBuffer"""


class ByteBuffer(ctypes.Structure):
    """Length-prefixed byte region shared with the native library.

    Buffers are allocated and released by the native library; ``bind`` wires
    in the two entry points that do so.
    """
    _fields_ = [
        ("len", ctypes.c_int64),
        ("data", ctypes.POINTER(ctypes.c_uint8)),
    ]

    _alloc = None
    _free = None

    @classmethod
    def bind(cls, alloc, free):
        cls._alloc = staticmethod(alloc) if alloc is not None else None
        cls._free = staticmethod(free) if free is not None else None

    @classmethod
    def alloc(cls, size):
        if cls._alloc is None:
            raise MarshalError("no ByteBuffer allocator is bound")
        return cls._alloc(size)

    def free(self):
        if type(self)._free is None:
            raise MarshalError("no ByteBuffer release function is bound")
        type(self)._free(self)

    def __str__(self):
        return "ByteBuffer(len={}, data={})".format(self.len, bytes(self.data[0:self.len]))


class BufferStream(object):
    """Cursor over a ByteBuffer.

    Every access advances the offset. An access past the end raises
    OutOfBounds and leaves the stream unusable.
    """

    def __init__(self, rbuf):
        if rbuf.len < 0:
            raise MarshalError("negative ByteBuffer length {}".format(rbuf.len))
        self.rbuf = rbuf
        self.offset = 0
        self.failed = False

    def remaining(self):
        return self.rbuf.len - self.offset

    def _check_access(self, size):
        if self.failed:
            raise OutOfBounds("ByteBuffer stream is no longer usable after an out-of-bounds access")
        if self.offset + size > self.rbuf.len:
            self.failed = True
            raise OutOfBounds("access of {} bytes at offset {} exceeds buffer length {}".format(
                size, self.offset, self.rbuf.len))

    def get_raw(self, size):
        self._check_access(size)
        data = bytes(self.rbuf.data[self.offset:self.offset + size])
        self.offset += size
        return data

    def put_raw(self, data):
        size = len(data)
        self._check_access(size)
        for i, byte in enumerate(data):
            self.rbuf.data[self.offset + i] = byte
        self.offset += size

    def _unpack_from(self, size, fmt):
        return struct.unpack(fmt, self.get_raw(size))[0]

    def _pack_into(self, fmt, value):
        self.put_raw(struct.pack(fmt, value))

    def get_byte(self):
        return self._unpack_from(1, ">B")

    def put_byte(self, v):
        self._pack_into(">B", v)

    def get_boolean(self):
        return self.get_byte() != 0

    def put_boolean(self, v):
        self.put_byte(1 if v else 0)

    def get_u32(self):
        return self._unpack_from(4, ">I")

    def put_u32(self, v):
        self._pack_into(">I", v)

    def get_u64(self):
        return self._unpack_from(8, ">Q")

    def put_u64(self, v):
        self._pack_into(">Q", v)

    def get_float(self):
        return self._unpack_from(4, ">f")

    def put_float(self, v):
        self._pack_into(">f", v)

    def get_double(self):
        return self._unpack_from(8, ">d")

    def put_double(self, v):
        self._pack_into(">d", v)

    def get_bytes(self):
        return self.get_raw(self.get_u32())

    def put_bytes(self, v):
        self.put_u32(len(v))
        self.put_raw(v)


def lower_buffer(size, lower_into):
    """Allocate exactly ``size`` bytes and fill them with ``lower_into(stream)``"""
    rbuf = ByteBuffer.alloc(size)
    try:
        stream = BufferStream(rbuf)
        lower_into(stream)
        if stream.offset != size:
            raise MarshalError("wrote {} bytes into a buffer of {} bytes".format(stream.offset, size))
    except BaseException:
        rbuf.free()
        raise
    return rbuf


def lift_buffer(rbuf, lift_from):
    """Read a value with ``lift_from(stream)`` and release the buffer"""
    try:
        stream = BufferStream(rbuf)
        value = lift_from(stream)
        if stream.remaining() != 0:
            raise TrailingBytes("{} bytes remaining in buffer after lifting".format(stream.remaining()))
    finally:
        rbuf.free()
    return value


def lift_optional(rbuf, lift_from):
    return lift_buffer(rbuf, lambda buf: lift_from_optional(buf, lift_from))


def lift_from_optional(buf, lift_from):
    if buf.get_byte() == 0:
        return None
    return lift_from(buf)


def lowers_into_size_optional(v, lowers_into_size):
    if v is None:
        return 1
    return 1 + lowers_into_size(v)


def lower_into_optional(v, buf, lower_into):
    if v is None:
        buf.put_byte(0)
    else:
        buf.put_byte(1)
        lower_into(v, buf)


def lower_optional(v, lowers_into_size, lower_into):
    return lower_buffer(
        lowers_into_size_optional(v, lowers_into_size),
        lambda buf: lower_into_optional(v, buf, lower_into),
    )


def lift_bytes(rbuf):
    return lift_buffer(rbuf, lambda buf: buf.get_raw(buf.remaining()))


def lower_bytes(v):
    return lower_buffer(len(v), lambda buf: buf.put_raw(v))


def _coerce_unsigned(v, bits):
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError("expected an integer, got {!r}".format(v))
    if not 0 <= v < (1 << bits):
        raise ValueError("{} does not fit in an unsigned {}-bit integer".format(v, bits))
    return v


def coerce_u32(v):
    return _coerce_unsigned(v, 32)


def coerce_u64(v):
    return _coerce_unsigned(v, 64)


def coerce_double(v):
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise TypeError("expected a number, got {!r}".format(v))
    try:
        return float(v)
    except OverflowError as e:
        raise ValueError("{} does not fit in a double".format(v)) from e


def coerce_float(v):
    v = coerce_double(v)
    try:
        struct.pack(">f", v)
    except OverflowError as e:
        raise ValueError("{} does not fit in a 32-bit float".format(v)) from e
    return v


def coerce_boolean(v):
    if not isinstance(v, bool):
        raise TypeError("expected a bool, got {!r}".format(v))
    return v


def coerce_bytes(v):
    if not isinstance(v, (bytes, bytearray, memoryview)):
        raise TypeError("expected bytes, got {!r}".format(v))
    return bytes(v)


def coerce_optional(v, coerce):
    if v is None:
        return None
    return coerce(v)
