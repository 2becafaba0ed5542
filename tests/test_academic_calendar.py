from datetime import date
from types import SimpleNamespace

from app.services.academic_calendar import pick_current_academic_year, pick_semester


def year(start, end):
    return SimpleNamespace(start_year=start, end_year=end)


def semester(name, start, end):
    return SimpleNamespace(semester_name=name, start_date=start, end_date=end)


YEARS = [
    year(date(2024, 9, 1), date(2025, 6, 30)),
    year(date(2025, 9, 1), date(2026, 6, 30)),
]
SEMESTERS = [
    semester("First", date(2025, 9, 1), date(2026, 1, 31)),
    semester("Second", date(2026, 2, 1), date(2026, 6, 30)),
]


def test_year_covering_today():
    assert pick_current_academic_year(YEARS, date(2025, 1, 10)) is YEARS[0]
    assert pick_current_academic_year(YEARS, date(2025, 10, 1)) is YEARS[1]


def test_year_falls_back_to_latest_start():
    assert pick_current_academic_year(YEARS, date(2025, 7, 15)) is YEARS[1]


def test_no_years():
    assert pick_current_academic_year([], date(2025, 7, 15)) is None


def test_semester_covering_today():
    assert pick_semester(SEMESTERS, date(2026, 3, 1)).semester_name == "Second"


def test_semester_after_all_have_started():
    assert pick_semester(SEMESTERS, date(2026, 8, 1)).semester_name == "Second"


def test_semester_before_any_has_started():
    assert pick_semester(SEMESTERS, date(2025, 8, 1)).semester_name == "First"


def test_no_semesters():
    assert pick_semester([], date(2025, 8, 1)) is None
