"""DONQ — Ingestion Adapter.

Fetches the team's full donation snapshot and merges it into the record store
with insert-if-absent semantics. Safe to call as often as you like: a record's
donor fields are fixed the first time its id is seen.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import ValidationError

from donq.connectors.extralife.client import ExtraLifeClient
from donq.core.errors import UpstreamFetchError
from donq.core.logging import get_logger
from donq.models.donation_models import DonationInput, DonationRecord
from donq.store.record_store import RecordStore

logger = get_logger("ingestion")


@dataclass
class ReconcileReport:
    """Outcome of one fetch-and-reconcile cycle."""

    team_id: str
    fetched: int = 0
    skipped: int = 0
    inserted: List[DonationRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def inserted_count(self) -> int:
        return len(self.inserted)


class IngestionAdapter:
    """Pulls donations from Extra Life into the record store."""

    def __init__(self, client: ExtraLifeClient, store: RecordStore):
        self.client = client
        self.store = store

    async def reconcile(self, team_id: str) -> ReconcileReport:
        report = ReconcileReport(team_id=team_id)
        try:
            items = await self.client.get_team_donations(team_id)
        except UpstreamFetchError as e:
            # Existing records are untouched; next cycle tries again
            logger.error(
                f"Donation fetch failed, skipping reconciliation: {e}",
                extra={"team_id": team_id},
            )
            report.error = str(e)
            return report

        report.fetched = len(items)
        for item in items:
            try:
                donation = DonationInput.model_validate(item)
            except ValidationError as e:
                report.skipped += 1
                logger.warning(
                    f"Skipping malformed donation item: {e.error_count()} error(s)",
                    extra={"team_id": team_id},
                )
                continue

            record = donation.to_record()
            if self.store.upsert_if_absent(record):
                report.inserted.append(record)
                logger.info(
                    f"New donation from {record.name}: {record.amount}",
                    extra={"donation_id": record.id, "team_id": team_id},
                )

        logger.info(
            f"Reconciled {report.fetched} donations "
            f"({report.inserted_count} new, {report.skipped} skipped)",
            extra={"team_id": team_id, "count": report.inserted_count},
        )
        return report

    async def fetch_and_reconcile(self, team_id: str) -> int:
        """Return the number of newly inserted records."""
        report = await self.reconcile(team_id)
        return report.inserted_count
