"""
tests/test_reminders.py
=======================

Unit tests for leadtrack.reminders.derive_reminders.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from leadtrack.models import Company, Severity, Status
from leadtrack.reminders import days_until, derive_reminders

NOW = datetime(2025, 3, 10, 9, 30)
TODAY = NOW.date()


def _company(id=1, name="Acme", owner=7, status=Status.CLOSED, contact_date=None):
    return Company(id=id, name=name, assigned_to=owner, assigned_by=owner,
                   status=status, contact_date=contact_date)


def _messages(reminders):
    return [r.message for r in reminders]


def test_meeting_today():
    [r] = derive_reminders([_company(contact_date=TODAY)], owner=7, now=NOW)
    assert r.message == "Meeting with Acme today"
    assert r.severity is Severity.HIGH


def test_five_days_ahead_is_reminded():
    [r] = derive_reminders([_company(contact_date=TODAY + timedelta(days=5))], owner=7, now=NOW)
    assert r.message == "Meeting with Acme in 5 days"
    assert r.severity is Severity.MEDIUM


def test_six_days_ahead_is_not():
    assert derive_reminders([_company(contact_date=TODAY + timedelta(days=6))], owner=7, now=NOW) == []


def test_tomorrow_uses_singular():
    [r] = derive_reminders([_company(contact_date=TODAY + timedelta(days=1))], owner=7, now=NOW)
    assert r.message == "Meeting with Acme in 1 day"


def test_past_dates_are_ignored():
    assert derive_reminders([_company(contact_date=TODAY - timedelta(days=1))], owner=7, now=NOW) == []


def test_pending_without_date():
    [r] = derive_reminders([_company(status=Status.PENDING)], owner=7, now=NOW)
    assert r.message == "Acme is still pending (no meeting scheduled)"
    assert r.severity is Severity.LOW


def test_pending_and_upcoming_both_fire_in_order():
    c = _company(status=Status.PENDING, contact_date=TODAY + timedelta(days=2))
    reminders = derive_reminders([c], owner=7, now=NOW)
    assert _messages(reminders) == [
        "Meeting with Acme in 2 days",
        "Acme is still pending (contact date Mar 12, 2025)",
    ]


def test_only_owner_companies_in_input_order():
    companies = [
        _company(id=1, name="Zeta", status=Status.PENDING),
        _company(id=2, name="Other", owner=9, status=Status.PENDING),
        _company(id=3, name="Alpha", contact_date=TODAY),
    ]
    reminders = derive_reminders(companies, owner=7, now=NOW)
    assert [r.company_id for r in reminders] == [1, 3]


def test_escalated_companies_get_no_pending_notice():
    c = Company(id=1, name="Acme", assigned_to=7, assigned_by=7, status=Status.ESCALATED, escalated_to=9)
    assert derive_reminders([c], owner=7, now=NOW) == []


def test_is_deterministic():
    companies = [_company(id=i, status=Status.PENDING, contact_date=TODAY + timedelta(days=i))
                 for i in range(8)]
    assert derive_reminders(companies, 7, NOW) == derive_reminders(list(companies), 7, NOW)


def test_window_is_configurable():
    c = _company(contact_date=TODAY + timedelta(days=3))
    assert derive_reminders([c], owner=7, now=NOW, window_days=2) == []


def test_malformed_contact_date_is_skipped():
    c = _company(status=Status.PENDING, contact_date="soon")
    assert _messages(derive_reminders([c], owner=7, now=NOW)) == [
        "Acme is still pending (no meeting scheduled)"]


@pytest.mark.parametrize("hour", [0, 9, 23])
def test_days_until_counts_calendar_days(hour):
    now = datetime(2025, 3, 10, hour)
    assert days_until(date(2025, 3, 10), now) == 0
    assert days_until(date(2025, 3, 15), now) == 5
    assert days_until(date(2025, 3, 9), now) == -1


def test_days_until_with_aware_now():
    now = datetime(2025, 3, 10, 22, 0, tzinfo=timezone.utc)
    assert days_until(date(2025, 3, 11), now) == 1
