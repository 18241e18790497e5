from __future__ import annotations

import pytest

from tsumego_storm.coords import Vertex, decode, encode
from tsumego_storm.errors import FormatError


def test_decode_reads_column_then_row() -> None:
    assert decode("aa") == Vertex(0, 0)
    assert decode("dc") == Vertex(3, 2)
    assert decode("sz") == (18, 25)


def test_round_trip_every_point_of_19x19() -> None:
    for y in range(19):
        for x in range(19):
            v = Vertex(x, y)
            assert decode(encode(v)) == v


@pytest.mark.parametrize("code", ["", "a", "abc", "A1", "{a", "a`", "1a"])
def test_decode_rejects_malformed_codes(code: str) -> None:
    with pytest.raises(FormatError):
        decode(code)


def test_encode_rejects_points_beyond_26() -> None:
    with pytest.raises(FormatError):
        encode((26, 0))
    with pytest.raises(FormatError):
        encode((0, -1))
