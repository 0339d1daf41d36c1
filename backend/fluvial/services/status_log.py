from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fluvial.models import StatusLogEntry

logger = logging.getLogger(__name__)


@dataclass
class LogWriteResult:
    ok: bool
    entry: Optional[StatusLogEntry] = None
    error: Optional[Exception] = None


class StatusLogWriter:
    """Append status log entries inside a savepoint of the caller's transaction.

    A failed write rolls back only its savepoint and is returned as a soft failure;
    the caller logs it and carries on with the primary transition.
    """

    def __init__(self, session: Session):
        self.session = session

    def _insert(self, entry: StatusLogEntry) -> StatusLogEntry:
        self.session.add(entry)
        self.session.flush()
        return entry

    def append(self, requisition_id: int, previous_status: Optional[str], new_status: str, user_id: int, note: Optional[str] = None) -> LogWriteResult:
        entry = StatusLogEntry(
            requisition_id=requisition_id,
            previous_status=previous_status,
            new_status=new_status,
            user_id=user_id,
            note=note,
        )
        try:
            with self.session.begin_nested():
                self._insert(entry)
        except SQLAlchemyError as e:
            logger.warning(
                'status log write failed for requisicao %s (%s -> %s)', requisition_id, previous_status, new_status,
                exc_info=e,
            )
            return LogWriteResult(ok=False, error=e)
        return LogWriteResult(ok=True, entry=entry)

__all__ = ['StatusLogWriter', 'LogWriteResult']
