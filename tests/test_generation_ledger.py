from datetime import datetime, timedelta
from unittest import mock

from sqlalchemy.exc import OperationalError

from tutorcenter.models.generation_status import GenerationStatus
from tutorcenter.services import generation_ledger


def test_get_status_absent(db):
    assert generation_ledger.get_status(db, 5, 2025) is None


def test_begin_run_creates_incomplete_row(db, ledger_row):
    token = generation_ledger.begin_run(db, 5, 2025)

    assert token
    row = ledger_row(5, 2025)
    assert row.is_complete is False
    assert row.count == 0
    assert row.generated_by == "system"
    assert row.run_token == token


def test_begin_run_never_creates_a_second_row(db):
    generation_ledger.begin_run(db, 5, 2025)
    generation_ledger.begin_run(db, 5, 2025)

    assert db.query(GenerationStatus).filter_by(month=5, year=2025).count() == 1


def test_begin_run_refused_while_another_run_holds_the_lease(db):
    assert generation_ledger.begin_run(db, 5, 2025) is not None
    assert generation_ledger.begin_run(db, 5, 2025) is None


def test_begin_run_takes_over_an_expired_lease(db, ledger_row):
    first = generation_ledger.begin_run(db, 5, 2025)
    row = ledger_row(5, 2025)
    row.generated_at = datetime.utcnow() - timedelta(hours=2)
    db.commit()

    second = generation_ledger.begin_run(db, 5, 2025, lease_minutes=30)

    assert second is not None
    assert second != first
    assert ledger_row(5, 2025).run_token == second


def test_complete_run_records_count_and_releases(db, ledger_row):
    token = generation_ledger.begin_run(db, 5, 2025)

    assert generation_ledger.complete_run(db, 5, 2025, 12, run_token=token) is True

    row = ledger_row(5, 2025)
    assert row.is_complete is True
    assert row.count == 12
    assert row.run_token is None


def test_complete_run_with_a_lost_lease(db, ledger_row):
    generation_ledger.begin_run(db, 5, 2025)

    assert generation_ledger.complete_run(db, 5, 2025, 3, run_token="someone-else") is False
    assert ledger_row(5, 2025).is_complete is False


def test_complete_period_is_not_claimed_again_unless_forced(db):
    token = generation_ledger.begin_run(db, 5, 2025)
    generation_ledger.complete_run(db, 5, 2025, 4, run_token=token)

    assert generation_ledger.begin_run(db, 5, 2025) is None
    assert generation_ledger.begin_run(db, 5, 2025, force=True) is not None


def test_mark_failed_leaves_period_incomplete(db, ledger_row):
    token = generation_ledger.begin_run(db, 5, 2025)

    generation_ledger.mark_failed(db, 5, 2025, run_token=token)

    row = ledger_row(5, 2025)
    assert row.is_complete is False
    assert row.run_token is None
    # Released, so a new run can claim it right away
    assert generation_ledger.begin_run(db, 5, 2025) is not None


def test_mark_failed_creates_the_row_when_missing(db, ledger_row):
    generation_ledger.mark_failed(db, 7, 2025)

    assert ledger_row(7, 2025).is_complete is False


def test_mark_failed_swallows_database_errors():
    broken_db = mock.MagicMock()
    broken_db.rollback.side_effect = OperationalError("ROLLBACK", {}, Exception("database is gone"))

    # Must not raise
    generation_ledger.mark_failed(broken_db, 5, 2025)


def test_list_statuses_newest_first(db):
    for month, year in [(11, 2024), (1, 2025), (12, 2024)]:
        generation_ledger.begin_run(db, month, year)

    rows = generation_ledger.list_statuses(db)

    assert [(r.month, r.year) for r in rows] == [(1, 2025), (12, 2024), (11, 2024)]


def test_mark_failed_without_a_claim_keeps_the_holders_lease(db, ledger_row):
    holder = generation_ledger.begin_run(db, 5, 2025)

    # A second run failed before it could claim the period
    generation_ledger.mark_failed(db, 5, 2025)

    assert ledger_row(5, 2025).run_token == holder
    assert generation_ledger.begin_run(db, 5, 2025) is None


def test_mark_failed_with_an_expired_token_keeps_the_new_holders_lease(db, ledger_row):
    stale = generation_ledger.begin_run(db, 5, 2025)
    row = ledger_row(5, 2025)
    row.generated_at = datetime.utcnow() - timedelta(hours=2)
    db.commit()
    holder = generation_ledger.begin_run(db, 5, 2025, lease_minutes=30)

    generation_ledger.mark_failed(db, 5, 2025, run_token=stale)

    assert ledger_row(5, 2025).run_token == holder
