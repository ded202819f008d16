"""Tests for file name dates and day indices."""

from datetime import date, datetime

import pytest

from songseq.dates import date_from_filename, day_indices, parse_date


class TestDateFromFilename:
    def test_default_layout(self):
        assert date_from_filename("llb3_0012_2018_04_23_06_12_44.wav") == date(2018, 4, 23)

    def test_custom_separator_and_fields(self):
        name = "bird-2019-12-01-morning.wav"
        assert date_from_filename(name, sep="-", fields=(1, 2, 3)) == date(2019, 12, 1)

    def test_too_few_tokens(self):
        with pytest.raises(ValueError, match="date tokens"):
            date_from_filename("short_name.wav")

    def test_not_a_date(self):
        with pytest.raises(ValueError, match="Cannot parse"):
            date_from_filename("llb3_0012_xx_04_23.wav")


class TestParseDate:
    def test_date_passthrough(self):
        assert parse_date(date(2018, 4, 23)) == date(2018, 4, 23)

    def test_datetime(self):
        assert parse_date(datetime(2018, 4, 23, 6, 0)) == date(2018, 4, 23)

    def test_underscore_string(self):
        assert parse_date("2018_04_23") == date(2018, 4, 23)

    def test_iso_string(self):
        assert parse_date("2018-04-23") == date(2018, 4, 23)

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_date("yesterday")


class TestDayIndices:
    def test_gap_free_ranks(self):
        dates = [date(2018, 4, 23), date(2018, 4, 25), date(2018, 4, 23), date(2018, 5, 1)]
        assert day_indices(dates) == [1, 2, 1, 3]

    def test_unsorted_input(self):
        dates = [date(2018, 5, 1), date(2018, 4, 23)]
        assert day_indices(dates) == [2, 1]

    def test_empty(self):
        assert day_indices([]) == []

    def test_accepts_generator(self):
        assert day_indices(d for d in [date(2020, 1, 1)]) == [1]
