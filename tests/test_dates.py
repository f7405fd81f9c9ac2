"""Tests for the date format grammar."""

from datetime import date

from fieldguard.validation.dates import DateFormat

FRENCH_MONTHS = (
    "janvier", "fevrier", "mars", "avril", "mai", "juin",
    "juillet", "aout", "septembre", "octobre", "novembre", "decembre",
)


class TestParse:
    def test_iso(self):
        assert DateFormat("Y-m-d").parse("2024-01-10") == date(2024, 1, 10)

    def test_impossible_date(self):
        assert DateFormat("Y-m-d").parse("2024-02-31") is None
        assert DateFormat("Y-m-d").parse("2023-02-29") is None
        assert DateFormat("Y-m-d").parse("2024-02-29") == date(2024, 2, 29)

    def test_must_match_whole_value(self):
        assert DateFormat("Y-m-d").parse("2024-01-10x") is None
        assert DateFormat("Y-m-d").parse(" 2024-01-10") is None

    def test_zero_padding_required(self):
        assert DateFormat("d/m/Y").parse("1/2/2024") is None
        assert DateFormat("j/n/Y").parse("1/2/2024") == date(2024, 2, 1)

    def test_short_month_names_case_insensitive(self):
        fmt = DateFormat("M d, Y")
        assert fmt.parse("Jan 05, 2024") == date(2024, 1, 5)
        assert fmt.parse("jan 05, 2024") == date(2024, 1, 5)
        assert fmt.parse("Jnu 05, 2024") is None

    def test_full_names_and_suffix(self):
        fmt = DateFormat("l, F jS Y")
        assert fmt.parse("Saturday, February 3rd 2024") == date(2024, 2, 3)
        assert fmt.parse("Funday, February 3rd 2024") is None

    def test_two_digit_year(self):
        assert DateFormat("m/d/y").parse("01/02/85") == date(1985, 1, 2)

    def test_missing_year_uses_reference_year(self):
        assert DateFormat("d.m").parse("15.03", today=date(2020, 5, 5)) == date(2020, 3, 15)

    def test_missing_day_defaults_to_first(self):
        assert DateFormat("F Y").parse("March 2021") == date(2021, 3, 1)

    def test_time_tokens_are_matched_but_ignored(self):
        assert DateFormat("Y-m-d H:i").parse("2024-01-10 23:59") == date(2024, 1, 10)
        assert DateFormat("Y-m-d H:i").parse("2024-01-10 24:00") is None

    def test_custom_month_names(self):
        fmt = DateFormat("j F Y", month_names=FRENCH_MONTHS)
        assert fmt.parse("3 mars 2024") == date(2024, 3, 3)
        assert fmt.parse("3 March 2024") is None

    def test_literal_characters_escaped(self):
        assert DateFormat("Y.m.d").parse("2024x01x10") is None


class TestTimestamp:
    def test_utc_midnight(self):
        assert DateFormat("Y-m-d").timestamp("1970-01-02") == 86400

    def test_order_preserved(self):
        fmt = DateFormat("Y-m-d")
        assert fmt.timestamp("2024-01-10") < fmt.timestamp("2024-02-01")

    def test_invalid(self):
        assert DateFormat("Y-m-d").timestamp("yesterday") is None
