"""
Unit of work: commit on clean exit, roll back on error, never pick up
changes left pending on the session.
"""

import pytest

from motoparts.models import Category
from motoparts.services.unit_of_work import UnitOfWork


def test_clean_exit_commits(db_session):
    with UnitOfWork(db_session):
        db_session.add(Category(name="BUSI"))

    db_session.expunge_all()
    assert db_session.query(Category).count() == 1


def test_exception_rolls_back_and_propagates(db_session):
    with pytest.raises(KeyError):
        with UnitOfWork(db_session) as uow:
            db_session.add(Category(name="BUSI"))
            uow.flush()
            raise KeyError("boom")

    assert db_session.query(Category).count() == 0


def test_refuses_to_start_on_session_with_pending_changes(db_session):
    db_session.add(Category(name="OLI"))

    with pytest.raises(RuntimeError):
        UnitOfWork(db_session).begin()

    db_session.rollback()
    assert db_session.query(Category).count() == 0


def test_cannot_begin_twice(db_session):
    uow = UnitOfWork(db_session).begin()
    with pytest.raises(RuntimeError):
        uow.begin()
    uow.rollback()


def test_commit_requires_begin(db_session):
    with pytest.raises(RuntimeError):
        UnitOfWork(db_session).commit()
