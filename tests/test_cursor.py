import pytest

from vnd_re.vnd.cursor import MAX_STRING_LENGTH, ByteCursor, OutOfBounds

from helpers import bs, u32


def test_typed_reads_are_little_endian():
    c = ByteCursor(b"\x01\x02\x03\x04\x05\x06\x07\x08\xff\xff\xff\xff")
    assert c.read_u8() == 0x01
    assert c.read_u16() == 0x0302
    c.seek(4)
    assert c.read_u32() == 0x08070605
    assert c.read_i32() == -1
    assert c.at_end()


def test_read_past_end_raises_and_keeps_position():
    c = ByteCursor(b"\x01\x02\x03")
    with pytest.raises(OutOfBounds):
        c.read_u32()
    assert c.pos == 0
    assert c.remaining == 3


def test_peek_does_not_advance():
    c = ByteCursor(u32(7) + u32(9))
    assert c.peek_u32() == 7
    assert c.peek_u32(4) == 9
    assert c.pos == 0
    with pytest.raises(OutOfBounds):
        c.peek_u32(5)


def test_seek_bounds():
    c = ByteCursor(b"abcd")
    c.seek(4)
    assert c.remaining == 0
    with pytest.raises(OutOfBounds):
        c.seek(5)
    with pytest.raises(OutOfBounds):
        c.seek(-1)


def test_read_bs():
    c = ByteCursor(bs("VNFILE") + bs(""))
    assert c.read_bs() == "VNFILE"
    assert c.read_bs() == ""
    assert c.at_end()


def test_read_bs_is_latin1():
    c = ByteCursor(u32(4) + b"\xe9t\xe9!")
    assert c.read_bs() == "\u00e9t\u00e9!"


@pytest.mark.parametrize(
    "length",
    [0xFFFFFFFF, MAX_STRING_LENGTH + 1, 0x80000000, 5],
)
def test_read_bs_implausible_length_is_absent(length):
    data = u32(length) + b"abc"
    c = ByteCursor(data)
    assert c.read_bs() is None
    assert c.pos == 0


def test_read_bs_short_buffer_is_absent():
    assert ByteCursor(b"\x01\x00").read_bs() is None
    assert ByteCursor(b"").read_bs() is None


def test_read_bs_never_overruns_for_any_prefix():
    data = bs("hello") + b"\xff" * 11
    for start in range(len(data)):
        c = ByteCursor(data, start)
        text = c.read_bs()
        assert c.pos <= len(data)
        if text is None:
            assert c.pos == start


def test_read_bs_or_empty_consumes_length_field():
    c = ByteCursor(u32(0xFFFFFFFF) + u32(3))
    assert c.read_bs_or_empty() == ""
    assert c.pos == 4
    assert c.read_u32() == 3


def test_fixed_string_strips_trailing_padding():
    c = ByteCursor(b"Village" + b"\x00" * 43 + b"\x01")
    assert c.read_fixed_string(50) == "Village"
    assert c.read_u8() == 1
