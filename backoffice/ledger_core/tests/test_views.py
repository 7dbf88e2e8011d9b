import datetime
import json

import pytest
from django.urls import reverse

from ledger_core.models import AccountingPeriod, JournalEntry, PeriodStatus
from ledger_core.services import draft_entry, post_entry

from .helpers import (cash_sale, make_business_unit, make_january,
                      make_member)


@pytest.fixture
def ledger(db):
    bu = make_business_unit()
    period = make_january(bu)
    user = make_member(bu)
    return bu, period, user


@pytest.fixture
def member_client(client, ledger):
    client.force_login(ledger[2])
    return client


def post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type="application/json")


""" Access """
@pytest.mark.django_db
def test_anonymous_request_is_rejected(client):
    response = client.get(reverse("ledger_core:journal-entry-list"))
    assert response.status_code == 401


@pytest.mark.django_db
def test_user_without_business_unit_is_forbidden(client, django_user_model):
    user = django_user_model.objects.create_user(username="loner", password="pw")
    client.force_login(user)
    response = client.get(reverse("ledger_core:period-list"))
    assert response.status_code == 403
    assert response.json()["code"] == "no_business_unit"


""" Journal entries """
def test_post_journal_entry(member_client, ledger):
    bu, _, user = ledger
    response = post_json(
        member_client,
        reverse("ledger_core:journal-entry-list"),
        {
            "posting_date": "2025-01-15",
            "remarks": "Friday dinner service",
            "lines": [
                {"account_code": "1000", "debit": "500.00"},
                {"account_code": "4000", "credit": "500.00"},
            ],
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["doc_num"] == "JE-1"
    assert body["status"] == "posted"
    assert len(body["lines"]) == 2
    assert JournalEntry.objects.get(pk=body["id"]).author == user


def test_unbalanced_entry_returns_400(member_client):
    response = post_json(
        member_client,
        reverse("ledger_core:journal-entry-list"),
        {
            "posting_date": "2025-01-15",
            "lines": [
                {"account_code": "1000", "debit": "500.00"},
                {"account_code": "4000", "credit": "499.00"},
            ],
        },
    )
    assert response.status_code == 400
    assert response.json()["code"] == "unbalanced_entry"
    assert not JournalEntry.objects.exists()


def test_bad_date_returns_400(member_client):
    response = post_json(
        member_client,
        reverse("ledger_core:journal-entry-list"),
        {"posting_date": "15/01/2025", "lines": []},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_date"


def test_non_object_lines_return_400(member_client):
    response = post_json(
        member_client,
        reverse("ledger_core:journal-entry-list"),
        {"posting_date": "2025-01-15", "lines": ["x", "y"]},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_line"
    assert not JournalEntry.objects.exists()


def test_json_array_body_returns_400(member_client):
    response = post_json(member_client, reverse("ledger_core:journal-entry-list"), [1, 2])
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_json"


def test_posting_outside_periods_returns_400(member_client):
    response = post_json(
        member_client,
        reverse("ledger_core:journal-entry-list"),
        {"posting_date": "2025-03-01", "lines": [
            {"account_code": "1000", "debit": "5"}, {"account_code": "4000", "credit": "5"},
        ]},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "period_closed_or_missing"


def test_list_filters_by_status(member_client, ledger):
    bu = ledger[0]
    post_entry(bu, datetime.date(2025, 1, 15), cash_sale())
    draft_entry(bu, datetime.date(2025, 1, 16), cash_sale())

    response = member_client.get(reverse("ledger_core:journal-entry-list"), {"status": "draft"})

    results = response.json()["results"]
    assert [r["status"] for r in results] == ["draft"]


def test_delete_journal_entry(member_client, ledger):
    entry = post_entry(ledger[0], datetime.date(2025, 1, 15), cash_sale())
    url = reverse("ledger_core:journal-entry-detail", args=[entry.pk])

    assert member_client.get(url).json()["doc_num"] == "JE-1"
    response = member_client.delete(url)

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert not JournalEntry.objects.exists()


""" Periods """
def test_create_overlapping_period_returns_400(member_client):
    response = post_json(
        member_client,
        reverse("ledger_core:period-list"),
        {"name": "Jan 2025b", "start_date": "2025-01-15", "end_date": "2025-02-15"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "overlapping_period"


def test_create_period(member_client, ledger):
    response = post_json(
        member_client,
        reverse("ledger_core:period-list"),
        {"name": "Feb 2025", "start_date": "2025-02-01", "end_date": "2025-02-28"},
    )
    assert response.status_code == 201
    assert response.json()["status"] == "OPEN"
    assert AccountingPeriod.objects.for_business_unit(ledger[0]).count() == 2


def test_close_period_flow(member_client, ledger):
    bu, period, _ = ledger
    draft = draft_entry(bu, datetime.date(2025, 1, 15), cash_sale())
    url = reverse("ledger_core:period-close", args=[period.pk])

    preview = member_client.get(url).json()
    assert preview["can_close"] is False

    refused = member_client.post(url)
    assert refused.status_code == 400
    assert refused.json()["code"] == "period_not_closeable"

    member_client.delete(reverse("ledger_core:journal-entry-detail", args=[draft.pk]))
    closed = member_client.post(url)
    assert closed.status_code == 200
    assert closed.json()["success"] is True
    period.refresh_from_db()
    assert period.status == PeriodStatus.CLOSED


def test_delete_period_with_entries_returns_400(member_client, ledger):
    bu, period, _ = ledger
    post_entry(bu, datetime.date(2025, 1, 15), cash_sale())
    response = member_client.delete(reverse("ledger_core:period-detail", args=[period.pk]))
    assert response.status_code == 400
    assert response.json()["code"] == "period_has_entries"


""" Reports """
def test_trial_balance(member_client, ledger):
    post_entry(ledger[0], datetime.date(2025, 1, 15), cash_sale("500.00"))
    body = member_client.get(reverse("ledger_core:trial-balance")).json()
    assert body["total_debit"] == body["total_credit"] == "500.00"
