import pytest

from moqloc.config import ParseCfg
from moqloc.loc import Container, Header, parse
from moqloc.loc.buffer import BufferReader, BufferWriter
from moqloc.loc.errors import FailedToParseError, LimitExceededError, TruncatedPayloadError
from moqloc.loc.payload import payload_size, read_payloads, write_payloads

HEADER = Header(1_700_000_000_000_000, 101)


def _header_bytes() -> bytes:
    buffer = bytearray(HEADER.size())
    HEADER.serialize(buffer)
    return bytes(buffer)


def test_payload_size_counts_length_prefixes():
    assert payload_size([]) == 0
    assert payload_size([b"", b"\x01\x02\x03\x04"]) == 1 + 5
    assert payload_size([b"x" * 64]) == 2 + 64
    assert payload_size([b"x" * 16384]) == 4 + 16384


def test_write_and_read_frames():
    payloads = [b"abc", b"", b"x" * 100]
    buffer = bytearray(payload_size(payloads))
    writer = BufferWriter(buffer)
    assert write_payloads(writer, payloads) == len(buffer)
    assert bytes(buffer[:4]) == b"\x03abc"
    assert buffer[4] == 0

    assert read_payloads(BufferReader(buffer)) == tuple(payloads)


def test_zero_length_payload_does_not_stop_parsing():
    container = Container(HEADER, [b"", b"tail", b""])
    parsed = parse(container.to_bytes())
    assert parsed.payload == (b"", b"tail", b"")


def test_header_only_container_has_no_payloads():
    parsed = parse(_header_bytes())
    assert parsed.payload == ()


@pytest.mark.parametrize(
    "trailer",
    [
        b"\x05abc",
        b"\x40",
        b"\x80\x00\x01",
        b"\x01a\x02b",
    ],
)
def test_truncated_payload_frame_is_an_error(trailer):
    with pytest.raises(TruncatedPayloadError):
        parse(_header_bytes() + trailer)


def test_every_truncation_is_a_parse_failure():
    blob = Container(HEADER, [b"\x01\x02\x03\x04"]).to_bytes()
    assert parse(blob[: HEADER.size()]).payload == ()
    for cut in range(len(blob)):
        if cut == HEADER.size():
            continue
        with pytest.raises(FailedToParseError):
            parse(blob[:cut])


def test_payload_limits():
    blob = Container(HEADER, [b"a", b"bb"]).to_bytes()
    with pytest.raises(LimitExceededError):
        parse(blob, cfg=ParseCfg(max_payloads=1))
    with pytest.raises(LimitExceededError):
        parse(blob, cfg=ParseCfg(max_value_length=1))
    assert parse(blob, cfg=ParseCfg(max_payloads=2, max_value_length=2)).payload == (b"a", b"bb")
