from datetime import UTC, date

from backend.app.core.time import utc_now, utc_today


def test_utc_now_is_timezone_aware_utc():
    value = utc_now()
    assert value.tzinfo is UTC


def test_utc_today_is_plain_date():
    value = utc_today()
    assert isinstance(value, date)
    assert abs((value - utc_now().date()).days) <= 1
