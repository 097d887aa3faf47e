import pytest

from lessonbook.domain.time_of_day import TimeOfDay

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "raw,minutes",
    [("00:00", 0), ("09:30", 570), ("22:00", 1320), ("24:00", 1440)],
)
def test_parse_valid(raw, minutes):
    assert TimeOfDay.parse(raw).minutes == minutes


@pytest.mark.parametrize("raw", ["9:00", "09:60", "24:01", "25:00", "0900", "", None])
def test_parse_invalid(raw):
    with pytest.raises(ValueError):
        TimeOfDay.parse(raw)


def test_ordering_and_format():
    assert TimeOfDay.of(9) < TimeOfDay.of(9, 30) < TimeOfDay.of(18)
    assert str(TimeOfDay.of(7, 5)) == "07:05"
    assert TimeOfDay.of(10).hour == 10
