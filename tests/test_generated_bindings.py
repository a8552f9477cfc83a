import struct
import sys

import pytest


def _contents(rbuf):
    return bytes(rbuf.data[0:rbuf.len])


def test_library_is_resolved_by_namespace(bindings, fake_library):
    expected = {
        "win32": "uniffi_geometry.dll",
        "darwin": "libuniffi_geometry.dylib",
    }.get(sys.platform, "libuniffi_geometry.so")
    assert fake_library.opened == [expected]


def test_entry_points_are_declared(bindings, fake_library):
    gradient = fake_library.functions["geometry_gradient"]
    assert gradient.argtypes == (bindings.ByteBuffer,)
    assert gradient.restype is bindings.ctypes.c_double
    increment = fake_library.functions["geometry_Counter_increment"]
    assert increment.argtypes == (bindings.ctypes.c_uint64, bindings.ctypes.c_uint32)
    assert fake_library.functions["geometry_Counter_reset"].restype is None


def test_record_lowers_to_packed_big_endian_doubles(bindings, natives):
    point = bindings.Point(1.5, 2.5)
    rbuf = bindings.Point._lower(point)
    assert rbuf.len == 16
    assert _contents(rbuf) == struct.pack(">dd", 1.5, 2.5)
    assert bindings.Point._lift(rbuf) == point
    assert natives.allocator.live == {}


def test_nested_record_size_matches_bytes_written(bindings):
    anchor = bindings.Anchor(bindings.Point(-1.0, 4.0))
    assert bindings.Anchor._lowers_into_size(anchor) == 16
    rbuf = bindings.Anchor._lower(anchor)
    assert rbuf.len == 16
    assert bindings.Anchor._lift(rbuf) == anchor


@pytest.mark.parametrize("weight, anchor", [
    (None, None),
    (0.25, None),
    (None, (3.0, 4.0)),
    (8.0, (0.0, -1.0)),
])
def test_every_field_kind_round_trips(bindings, natives, weight, anchor):
    m = bindings
    sample = m.Sample(
        count=7,
        total=2 ** 63 + 1,
        ratio=0.5,
        flag=True,
        color=m.Color.GREEN,
        payload=b"\x00raw\xff",
        weight=weight,
        anchor=m.Point(*anchor) if anchor is not None else None,
    )
    expected_size = 4 + 8 + 4 + 1 + 4 + (4 + 5) + (9 if weight is not None else 1) \
        + (17 if anchor is not None else 1)
    assert m.Sample._lowers_into_size(sample) == expected_size

    echoed = m.echo_sample(sample)
    assert echoed == sample
    assert echoed.color is m.Color.GREEN
    assert natives.allocator.live == {}


def test_record_arguments_are_type_checked(bindings):
    with pytest.raises(TypeError):
        bindings.gradient(bindings.Point(0.0, 0.0))


def test_function_lowers_record_and_returns_scalar(bindings, natives):
    m = bindings
    line = m.Line(m.Point(0.0, 0.0), m.Point(2.0, 3.0))
    assert m.gradient(line) == 1.5
    assert natives.allocator.live == {}


def test_optional_return_present_and_absent(bindings, natives):
    m = bindings
    rising = m.Line(m.Point(0.0, 0.0), m.Point(1.0, 1.0))
    falling = m.Line(m.Point(0.0, 2.0), m.Point(1.0, 1.0))
    parallel = m.Line(m.Point(0.0, 1.0), m.Point(1.0, 2.0))

    assert m.intersection(rising, falling) == m.Point(1.0, 1.0)
    assert m.intersection(rising, parallel) is None
    assert natives.allocator.live == {}


def test_enums_cross_as_ordinals(bindings):
    m = bindings
    assert m.next_color(m.Color.RED) is m.Color.GREEN
    assert m.next_color(m.Color.BLUE) is m.Color.RED
    # Raw ordinals are coerced into the enumeration
    assert m.next_color(2) is m.Color.BLUE
    with pytest.raises(ValueError):
        m.next_color(0)


def test_boolean_results_are_lifted_to_bool(bindings):
    m = bindings
    assert m.is_origin(m.Point(0.0, 0.0)) is True
    assert m.is_origin(m.Point(0.0, 1.0)) is False


def test_bytes_round_trip_through_native(bindings, natives):
    assert bindings.reverse(b"abc") == b"cba"
    assert bindings.reverse(b"") == b""
    with pytest.raises(TypeError):
        bindings.reverse("abc")
    assert natives.allocator.live == {}


def test_function_without_result_returns_none(bindings, natives):
    assert bindings.log_point(bindings.Point(1.0, 2.0)) is None
    assert natives.logged == [bindings.Point(1.0, 2.0)]


def test_object_methods_pass_handle(bindings, natives):
    first = bindings.Counter(10)
    second = bindings.Counter(0)
    assert first.increment(5) == 15
    assert second.increment(1) == 1
    assert first.reset() is None
    assert first.increment(2) == 2
    assert natives.counters == {first._handle: 2, second._handle: 1}


def test_scalar_arguments_are_range_checked(bindings):
    counter = bindings.Counter(0)
    with pytest.raises(ValueError):
        counter.increment(2 ** 32)
    with pytest.raises(ValueError):
        bindings.Counter(-1)


def test_truncated_buffer_fails_without_leaking(bindings, natives):
    m = bindings
    rbuf = m.ByteBuffer.alloc(12)
    with pytest.raises(m.OutOfBounds):
        m.Point._lift(rbuf)
    assert natives.allocator.live == {}


def test_exports(bindings):
    assert bindings.__all__ == [
        "Color", "Point", "Line", "Anchor", "Sample",
        "gradient", "intersection", "next_color", "is_origin", "reverse",
        "echo_sample", "log_point", "Counter",
    ]


def _sample(m, **overrides):
    fields = dict(count=1, total=2, ratio=0.5, flag=False, color=m.Color.RED,
                  payload=b"", weight=None, anchor=None)
    fields.update(overrides)
    return m.Sample(**fields)


def test_record_fields_are_coerced(bindings, natives):
    m = bindings
    echoed = m.echo_sample(_sample(m, color=2, ratio=1, payload=bytearray(b"ab"),
                                   anchor=m.Point(1, 2)))
    assert echoed.color is m.Color.GREEN
    assert echoed.ratio == 1.0
    assert echoed.payload == b"ab"
    assert echoed.anchor == m.Point(1.0, 2.0)
    assert natives.allocator.live == {}


@pytest.mark.parametrize("overrides, error", [
    ({"count": 2 ** 32}, ValueError),
    ({"ratio": 1e300}, ValueError),
    ({"total": True}, TypeError),
    ({"color": 0}, ValueError),
    ({"weight": "heavy"}, TypeError),
    ({"anchor": (1.0, 2.0)}, TypeError),
])
def test_invalid_record_fields_fail_before_lowering(bindings, natives, overrides, error):
    with pytest.raises(error):
        bindings.echo_sample(_sample(bindings, **overrides))
    assert natives.allocator.live == {}


def test_records_compare_by_value_and_are_unhashable(bindings):
    point = bindings.Point(1.0, 2.0)
    assert point == bindings.Point(1.0, 2.0)
    assert point != bindings.Point(2.0, 1.0)
    with pytest.raises(TypeError):
        hash(point)
