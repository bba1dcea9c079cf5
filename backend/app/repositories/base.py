from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session

SessionFactory = Callable[[], Session]


class SessionRepository:
    """Reads run on the caller's open transaction when one is passed, otherwise on a short-lived session."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _reader(self, tx: Session | None = None) -> Iterator[Session]:
        if tx is not None:
            yield tx
            return
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()


class SessionTransactionProvider:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    @contextmanager
    def begin(self) -> Iterator[Session]:
        # Commits when the block exits cleanly, rolls back on any exception.
        session = self._session_factory()
        try:
            with session.begin():
                yield session
        finally:
            session.close()
