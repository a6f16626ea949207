from datetime import date, datetime

import pytest

from src.shared.utils.dates import (
    days_in_month,
    last_periods,
    month_start,
    parse_date,
    parse_period,
    period_of,
    shift_months,
)


class TestPeriods:
    def test_period_of(self):
        assert period_of(date(2026, 4, 9)) == "2026-04"

    def test_parse_period(self):
        assert parse_period("2026-12") == "2026-12"
        for bad in ("2026-00", "2026-13", "26-01", None, 202601):
            with pytest.raises(ValueError):
                parse_period(bad)

    def test_last_periods_cross_year(self):
        assert last_periods(date(2026, 2, 15), 4) == ["2025-11", "2025-12", "2026-01", "2026-02"]


class TestParseDate:
    def test_accepts_common_forms(self):
        assert parse_date(date(2026, 4, 1)) == date(2026, 4, 1)
        assert parse_date(datetime(2026, 4, 1, 13, 5)) == date(2026, 4, 1)
        assert parse_date("2026-04-01") == date(2026, 4, 1)
        assert parse_date("2026-04-01 10:00:00") == date(2026, 4, 1)
        assert parse_date("2026-04-01T10:00:00") == date(2026, 4, 1)

    @pytest.mark.parametrize("bad", ["01/04/2026", "not-a-date", "", None, 20260401])
    def test_rejects_garbage(self, bad):
        with pytest.raises(ValueError):
            parse_date(bad)


class TestMonthHelpers:
    def test_days_in_month(self):
        assert days_in_month(2026, 4) == 30
        assert days_in_month(2026, 2) == 28
        assert days_in_month(2028, 2) == 29

    def test_month_start(self):
        assert month_start(date(2026, 4, 20)) == date(2026, 4, 1)

    def test_shift_months(self):
        assert shift_months(date(2026, 1, 31), -1) == date(2025, 12, 1)
        assert shift_months(date(2026, 12, 5), 1) == date(2027, 1, 1)
        assert shift_months(date(2026, 4, 20), 0) == date(2026, 4, 1)
