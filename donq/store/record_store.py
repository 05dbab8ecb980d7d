"""DONQ — Record Store.

Keyed table of donation records. Every mutation is a single statement run in
its own transaction, so concurrent ingestion and moderation need no locking:
inserts never conflict (first write wins) and flag updates are independent
last-writer-wins writes.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import delete, func, insert, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from donq.core.errors import NotFoundError, StorageError, TransitionError
from donq.core.logging import get_logger
from donq.models.donation_models import DonationRecord

logger = get_logger("store")


class RecordStore:
    """Persistent donation table with moderation flags."""

    def __init__(self, engine: Engine):
        self.engine = engine

    # ── Inserts ──

    def _insert_ignore(self, values: dict):
        dialect = self.engine.dialect.name
        if dialect == "sqlite":
            return (
                sqlite.insert(DonationRecord)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["id"])
            )
        if dialect == "postgresql":
            return (
                postgresql.insert(DonationRecord)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["id"])
            )
        return None

    def upsert_if_absent(self, record: DonationRecord) -> bool:
        """Insert the record unless its id already exists.

        Returns True when a row was inserted. An existing row is never touched.
        """
        values = record.model_dump()
        stmt = self._insert_ignore(values)
        try:
            with self.engine.begin() as conn:
                if stmt is not None:
                    return conn.execute(stmt).rowcount == 1
                conn.execute(insert(DonationRecord).values(**values))
                return True
        except IntegrityError:
            # Backends without ON CONFLICT support
            return False
        except SQLAlchemyError as e:
            raise StorageError(f"Insert failed for {record.id}: {e}") from e

    # ── Reads ──

    def get(self, donation_id: str) -> DonationRecord:
        try:
            with Session(self.engine) as session:
                record = session.get(DonationRecord, donation_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Read failed for {donation_id}: {e}") from e
        if record is None:
            raise NotFoundError(donation_id)
        return record

    def query_by_flags(
        self,
        approved: Optional[bool] = None,
        denied: Optional[bool] = None,
        shown: Optional[bool] = None,
    ) -> List[DonationRecord]:
        """Return records matching every flag that is not None."""
        query = select(DonationRecord)
        if approved is not None:
            query = query.where(DonationRecord.approved == approved)
        if denied is not None:
            query = query.where(DonationRecord.denied == denied)
        if shown is not None:
            query = query.where(DonationRecord.shown == shown)
        query = query.order_by(DonationRecord.created_at, DonationRecord.id)
        try:
            with Session(self.engine) as session:
                return list(session.exec(query).all())
        except SQLAlchemyError as e:
            raise StorageError(f"Query failed: {e}") from e

    def count_by_state(self) -> Dict[str, int]:
        """Record counts per moderation state."""
        states = {
            "total": [],
            "unapproved": [
                DonationRecord.approved == False,  # noqa: E712
                DonationRecord.denied == False,  # noqa: E712
            ],
            "pending": [
                DonationRecord.approved == True,  # noqa: E712
                DonationRecord.denied == False,  # noqa: E712
                DonationRecord.shown == False,  # noqa: E712
            ],
            "shown": [DonationRecord.shown == True],  # noqa: E712
            "denied": [DonationRecord.denied == True],  # noqa: E712
        }
        counts: Dict[str, int] = {}
        try:
            with Session(self.engine) as session:
                for state, clauses in states.items():
                    query = select(func.count()).select_from(DonationRecord)
                    for clause in clauses:
                        query = query.where(clause)
                    counts[state] = session.exec(query).one()
        except SQLAlchemyError as e:
            raise StorageError(f"Count failed: {e}") from e
        return counts

    # ── Flag mutations ──

    def _update(self, donation_id: str, *conditions, **values) -> int:
        stmt = (
            update(DonationRecord)
            .where(DonationRecord.id == donation_id, *conditions)
            .values(**values)
        )
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount
        except SQLAlchemyError as e:
            raise StorageError(f"Update failed for {donation_id}: {e}") from e

    def set_approved(
        self, donation_id: str, approved_at: Optional[datetime] = None
    ) -> None:
        approved_at = approved_at or datetime.now(timezone.utc)
        if not self._update(
            donation_id, approved=True, denied=False, approved_at=approved_at
        ):
            raise NotFoundError(donation_id)

    def set_denied(self, donation_id: str) -> None:
        if not self._update(donation_id, denied=True, approved=False):
            raise NotFoundError(donation_id)

    def set_shown(self, donation_id: str) -> None:
        """Set ``shown`` only while the row is approved.

        The approval check is part of the UPDATE itself, so a concurrent deny
        can never leave a shown-but-unapproved row behind.
        """
        if self._update(
            donation_id, DonationRecord.approved == True, shown=True  # noqa: E712
        ):
            return
        # Distinguish unknown id from failed precondition
        self.get(donation_id)
        raise TransitionError(
            donation_id, f"Donation {donation_id} must be approved before it is shown"
        )

    # ── Administrative ──

    def clear_all(self) -> int:
        try:
            with self.engine.begin() as conn:
                removed = conn.execute(delete(DonationRecord)).rowcount
        except SQLAlchemyError as e:
            raise StorageError(f"Clear failed: {e}") from e
        logger.warning(
            f"Cleared all donations ({removed} rows)", extra={"count": removed}
        )
        return removed

    def delete_by_id_prefix(self, prefix: str) -> int:
        if not prefix:
            raise ValueError("Refusing to delete with an empty id prefix")
        stmt = delete(DonationRecord).where(
            func.substr(DonationRecord.id, 1, len(prefix)) == prefix
        )
        try:
            with self.engine.begin() as conn:
                removed = conn.execute(stmt).rowcount
        except SQLAlchemyError as e:
            raise StorageError(f"Purge of '{prefix}*' failed: {e}") from e
        logger.info(
            f"Purged {removed} donations with prefix {prefix!r}",
            extra={"count": removed},
        )
        return removed
