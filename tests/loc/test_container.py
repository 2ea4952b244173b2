import struct

import pytest

from moqloc.loc import BufferTooSmallError, Container, Field, Header, parse

TIMESTAMP = 1_700_000_000_000_000
PAYLOAD = b"\x01\x02\x03\x04"


def _expected_wire() -> bytes:
    return (
        b"\x01\x08"
        + struct.pack(">Q", TIMESTAMP)
        + b"\x02\x08"
        + struct.pack(">Q", 101)
        + b"\x03"
        + b"\x04"
        + PAYLOAD
    )


def test_reference_container_sizes_and_bytes():
    container = Container(Header(TIMESTAMP, 101), [PAYLOAD])
    assert container.header.size() == 21
    assert container.required_bytes() == 26

    buffer = bytearray(container.required_bytes())
    assert container.serialize(buffer) == 26
    assert bytes(buffer) == _expected_wire()
    assert container.to_bytes() == _expected_wire()


def test_under_capacity_raises_without_writing():
    container = Container(Header(TIMESTAMP, 101), [PAYLOAD])
    for size in (0, 10, 21, 25):
        buffer = bytearray(size)
        with pytest.raises(BufferTooSmallError) as excinfo:
            container.serialize(buffer)
        assert excinfo.value.required == 26
        assert buffer == bytearray(size)


def test_over_capacity_leaves_trailing_bytes_untouched():
    container = Container(Header(TIMESTAMP, 101), [PAYLOAD])
    buffer = bytearray(b"\xaa" * 40)
    written = container.serialize(buffer)
    assert written == container.required_bytes()
    assert bytes(buffer[written:]) == b"\xaa" * (40 - written)
    assert parse(buffer[:written]) == container


def test_serialize_at_offset():
    container = Container(Header(TIMESTAMP, 101), [PAYLOAD])
    buffer = bytearray(30)
    assert container.serialize(buffer, offset=4) == 26
    assert bytes(buffer[4:]) == _expected_wire()

    with pytest.raises(BufferTooSmallError):
        container.serialize(bytearray(30), offset=5)


def test_serialize_requires_writable_buffer():
    container = Container(Header(TIMESTAMP, 101), [PAYLOAD])
    with pytest.raises(TypeError):
        container.serialize(bytes(26))


@pytest.mark.parametrize(
    "timestamp, sequence_number, payloads",
    [
        (0, 0, []),
        (TIMESTAMP, 101, [PAYLOAD]),
        ((1 << 64) - 1, (1 << 64) - 1, [b"", b"\xff"]),
        (42, 7, [bytes(range(256)) * 300, b"tail"]),
    ],
)
def test_round_trip(timestamp, sequence_number, payloads):
    container = Container(Header(timestamp, sequence_number), payloads)
    blob = container.to_bytes()
    assert len(blob) == container.required_bytes()

    parsed = parse(blob)
    assert parsed.header.timestamp == timestamp
    assert parsed.header.sequence_number == sequence_number
    assert list(parsed.payload) == payloads


def test_round_trip_with_custom_fields():
    header = Header(TIMESTAMP, 5, [Field(10, b"codec=opus"), Field(500, b"\x00\x01")])
    container = Container(header, [b"frame-1", b"frame-2"])
    parsed = Container.parse(container.to_bytes())
    assert parsed == container
    assert parsed.header.get_field(500).value == b"\x00\x01"


def test_large_payload_uses_wide_length_prefix():
    payload = b"\x00" * 70_000
    container = Container(Header(TIMESTAMP, 1), [payload])
    assert container.required_bytes() == 21 + 4 + 70_000
    blob = container.to_bytes()
    assert blob[21] >> 6 == 0b10


def test_container_owns_its_payloads():
    source = bytearray(b"abc")
    container = Container(Header(TIMESTAMP, 1), [source, memoryview(b"def")])
    source[0] = ord("z")
    assert container.payload == (b"abc", b"def")
    assert all(isinstance(item, bytes) for item in container.payload)

    with pytest.raises(TypeError):
        Container(Header(TIMESTAMP, 1), ["text"])
    with pytest.raises(TypeError):
        Container("header", [])
