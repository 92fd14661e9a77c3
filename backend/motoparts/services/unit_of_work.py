# Overview: Unit of work around a SQLAlchemy session; all-or-nothing writes for the transaction workflow.

from __future__ import annotations

from sqlalchemy.orm import Session


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


class UnitOfWork:
    """
    All-or-nothing group of writes on one session.

    Usage:
        with UnitOfWork(session) as uow:
            uow.session.add(...)

    Leaving the block normally commits; leaving it with an exception rolls
    back and re-raises. Writes made through the session inside the block are
    either all committed or none are.
    """

    def __init__(self, session: Session):
        self.session = session
        self._active = False

    def begin(self) -> "UnitOfWork":
        if self._active:
            raise RuntimeError("unit of work already started")
        # Anything already pending on the session would be committed with the unit
        if self.session.new or self.session.dirty or self.session.deleted:
            raise RuntimeError("session has uncommitted changes")
        # Open the transaction explicitly; a session that autobegan on an
        # earlier read keeps its current transaction.
        if not self.session.in_transaction():
            self.session.begin()
        self._active = True
        return self

    def flush(self) -> None:
        self.session.flush()

    def commit(self) -> None:
        if not self._active:
            raise RuntimeError("unit of work not started")
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._active = False

    def rollback(self) -> None:
        self._active = False
        self.session.rollback()

    def __enter__(self) -> "UnitOfWork":
        return self.begin()

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rollback()
            return False
        self.commit()
        return False
