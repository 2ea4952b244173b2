import pytest

from moqloc.loc import Container, ContainerView, Field, Header, parse, parse_view
from moqloc.loc.errors import FailedToParseError

HEADER = Header(1_700_000_000_000_000, 101, [Field(10, b"meta")])


def _source() -> bytearray:
    return bytearray(Container(HEADER, [b"\x01\x02\x03\x04", b"second"]).to_bytes())


def test_parse_view_aliases_source_buffer():
    source = _source()
    view = parse_view(source)
    assert isinstance(view, ContainerView)
    assert all(isinstance(item, memoryview) and item.readonly for item in view.payload)
    assert view.payload[0] == b"\x01\x02\x03\x04"
    assert isinstance(view.header.get_field(10).value, memoryview)

    offset = bytes(source).index(b"\x01\x02\x03\x04")
    source[offset] = 0xFF
    assert bytes(view.payload[0]) == b"\xff\x02\x03\x04"
    view.release()


def test_view_blocks_resizing_until_released():
    source = _source()
    view = parse_view(source)
    with pytest.raises(BufferError):
        source.extend(b"\x00")

    view.release()
    with pytest.raises(ValueError):
        len(view.payload[0])
    with pytest.raises(ValueError):
        bytes(view.header.fields[0].value)
    source.extend(b"\x00")


def test_view_context_manager_releases():
    source = _source()
    with ContainerView.parse(source) as view:
        owned = view.to_owned()
    with pytest.raises(ValueError):
        view.payload[1].tobytes()
    assert owned == parse(bytes(source))


def test_to_owned_copies_every_range():
    source = _source()
    with parse_view(source) as view:
        owned = view.to_owned()
    assert isinstance(owned, Container)
    assert all(isinstance(item, bytes) for item in owned.payload)
    assert isinstance(owned.header.fields[0].value, bytes)
    assert owned.payload == (b"\x01\x02\x03\x04", b"second")


def test_view_serializes_to_identical_bytes():
    source = _source()
    with parse_view(source) as view:
        assert view.required_bytes() == len(source)
        assert view.to_bytes() == bytes(source)


def test_parse_view_accepts_memoryview_slices():
    padded = b"junk" + bytes(_source())
    with parse_view(memoryview(padded)[4:]) as view:
        assert view.header.sequence_number == 101
        assert view.payload[1] == b"second"


@pytest.mark.parametrize("parser", [parse, parse_view])
@pytest.mark.parametrize("cut", [10, -1])
def test_failed_parse_releases_the_source(parser, cut):
    blob = bytes(_source())
    source = bytearray(blob[:cut])
    try:
        parser(source)
    except FailedToParseError:
        source.extend(blob[cut:])
    else:
        pytest.fail("truncated container parsed")
    assert parse(source) == parse(blob)


def test_failed_header_parse_releases_the_source():
    buffer = bytearray(HEADER.size())
    HEADER.serialize(buffer)
    source = buffer[:-1]
    with pytest.raises(FailedToParseError):
        Header.parse(source, copy=False)
    source.append(buffer[-1])
    assert Header.parse(source) == (HEADER, HEADER.size())


def test_successful_copy_parse_leaves_source_resizable():
    source = _source()
    container = parse(source)
    source.extend(b"\x00")
    assert container.payload[1] == b"second"
