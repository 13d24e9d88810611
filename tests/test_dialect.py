import pytest

from vnd_re.vnd.cursor import ByteCursor
from vnd_re.vnd.dialect import detect_dialect
from vnd_re.vnd.tags import Dialect

from helpers import u32


@pytest.mark.parametrize(
    "value, expected",
    [
        (1, Dialect.A),
        (54, Dialect.A),
        (99, Dialect.A),
        (0, Dialect.B),
        (100, Dialect.B),
        (0x81, Dialect.B),
        (0xFFFFFFFF, Dialect.B),
    ],
)
def test_dialect_from_word(value, expected):
    data = b"\xaa" * 8 + u32(value)
    assert detect_dialect(data, 8) is expected


def test_detection_is_idempotent_and_does_not_move_cursor():
    c = ByteCursor(b"\x00" * 4 + u32(3) + b"\x00" * 8)
    c.seek(2)
    results = {detect_dialect(c, 4) for _ in range(3)}
    assert results == {Dialect.A}
    assert c.pos == 2


def test_missing_word_means_dialect_b():
    assert detect_dialect(b"\x05\x00", 0) is Dialect.B
    assert detect_dialect(b"", 0) is Dialect.B
