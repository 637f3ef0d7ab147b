from __future__ import annotations

import itertools

import pytest

from floorpulse.ingestion.frame import MalformedFrame, decode_frame, parse_frame
from floorpulse.models import Reading

_PAIRS = [
    ("temp", "25"),
    ("baro", "1013.25"),
    ("co2", "800"),
    ("voc", "1"),
    ("accuracy", "3"),
    ("movement", "not moving"),
]


def _frame(pairs) -> str:
    return "".join(f"{key}:{value};" for key, value in pairs)


def test_parse_frame_reads_all_fields() -> None:
    reading = parse_frame("temp:25;baro:1013.25;co2:800;voc:1;accuracy:3;movement:not moving;")

    assert reading == Reading(
        temperature=25.0,
        barometric_pressure=1013.25,
        co2=800.0,
        voc=1.0,
        accuracy=3,
        movement="not moving",
    )
    assert isinstance(reading.accuracy, int)


def test_parse_frame_is_order_independent() -> None:
    expected = parse_frame(_frame(_PAIRS))

    for permutation in itertools.permutations(_PAIRS):
        assert parse_frame(_frame(permutation)) == expected


@pytest.mark.parametrize("missing", [key for key, _ in _PAIRS])
def test_parse_frame_rejects_missing_field(missing: str) -> None:
    raw = _frame([(key, value) for key, value in _PAIRS if key != missing])

    with pytest.raises(MalformedFrame, match=f"Missing required field\\(s\\): {missing}"):
        parse_frame(raw)


def test_parse_frame_ignores_unknown_fields() -> None:
    raw = "iaq:42;temp:21.5;baro:1001;humidity:40;co2:500;voc:0.3;accuracy:1;movement:walking;gas:7;"

    reading = parse_frame(raw)

    assert reading.temperature == 21.5
    assert reading.movement == "walking"


def test_parse_frame_accepts_missing_trailing_delimiter() -> None:
    reading = parse_frame("temp:25;baro:1010;co2:400;voc:0.1;accuracy:3;movement:not moving")

    assert reading.movement == "not moving"


def test_parse_frame_accepts_signed_and_exponent_numbers() -> None:
    reading = parse_frame("temp:-4.5;baro:1.01325e3;co2:+400;voc:.5;accuracy:2;movement:still;")

    assert reading.temperature == -4.5
    assert reading.barometric_pressure == 1013.25
    assert reading.co2 == 400.0
    assert reading.voc == 0.5


@pytest.mark.parametrize(
    ("raw", "match"),
    [
        ("temp:warm;baro:1010;co2:400;voc:0.1;accuracy:3;movement:x;", "'temp' must be a decimal"),
        ("temp:25;baro:1010;co2:nan;voc:0.1;accuracy:3;movement:x;", "'co2' must be a decimal"),
        ("temp:25;baro:1010;co2:400;voc:0.1;accuracy:2.5;movement:x;", "'accuracy' must be an integer"),
        ("temp:25;baro:1010;co2:400;voc:0.1;accuracy:3;movement: ;", "'movement' must not be empty"),
        ("temp:25;baro:0;co2:400;voc:0.1;accuracy:3;movement:x;", "barometric_pressure must be positive"),
    ],
)
def test_parse_frame_rejects_uncoercible_values(raw: str, match: str) -> None:
    with pytest.raises(MalformedFrame, match=match):
        parse_frame(raw)


def test_parse_frame_decodes_notification_bytes() -> None:
    payload = bytearray(_frame(_PAIRS).encode("utf-8"))

    assert parse_frame(payload).co2 == 800.0


def test_decode_frame_rejects_invalid_utf8() -> None:
    with pytest.raises(MalformedFrame, match="not valid UTF-8"):
        decode_frame(b"\xff\xfetemp:1;")


def test_parse_frame_first_duplicate_wins() -> None:
    reading = parse_frame(_frame(_PAIRS) + "co2:9999;")

    assert reading.co2 == 800.0
