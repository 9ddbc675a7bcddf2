import pytest

from weather_app.domain.conditions import UNKNOWN_CONDITION, WEATHER_CODE_CONDITIONS, describe_condition

EXPECTED_CONDITIONS = {
    0: ("Clear sky", "01d"),
    1: ("Mainly clear", "02d"),
    2: ("Partly cloudy", "03d"),
    3: ("Overcast", "04d"),
    45: ("Foggy", "50d"),
    48: ("Foggy", "50d"),
    51: ("Drizzle", "09d"),
    53: ("Drizzle", "09d"),
    55: ("Drizzle", "09d"),
    61: ("Rain", "10d"),
    63: ("Rain", "10d"),
    65: ("Rain", "10d"),
    71: ("Snow", "13d"),
    73: ("Snow", "13d"),
    75: ("Snow", "13d"),
    77: ("Snow grains", "13d"),
    80: ("Rain showers", "09d"),
    81: ("Rain showers", "09d"),
    82: ("Rain showers", "09d"),
    85: ("Snow showers", "13d"),
    86: ("Snow showers", "13d"),
    95: ("Thunderstorm", "11d"),
    96: ("Thunderstorm with hail", "11d"),
    99: ("Thunderstorm with hail", "11d"),
}


@pytest.mark.parametrize("code,expected", sorted(EXPECTED_CONDITIONS.items()))
def test_known_codes_map_to_documented_pair(code, expected):
    assert describe_condition(code) == expected


def test_table_covers_exactly_the_provider_codes():
    assert set(WEATHER_CODE_CONDITIONS) == set(EXPECTED_CONDITIONS)


@pytest.mark.parametrize("code", [-1, 4, 44, 56, 57, 66, 67, 100, 999])
def test_unmapped_codes_fall_back_to_unknown(code):
    assert describe_condition(code) == ("Unknown", "01d")


@pytest.mark.parametrize("code", [None, "rain", 2.5, True, [], {}])
def test_non_integer_codes_fall_back_to_unknown(code):
    assert describe_condition(code) == UNKNOWN_CONDITION


def test_integral_float_and_numeric_string_are_accepted():
    assert describe_condition(3.0) == ("Overcast", "04d")
    assert describe_condition("95") == ("Thunderstorm", "11d")
