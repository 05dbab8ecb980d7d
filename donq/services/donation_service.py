"""DONQ — Donation Service.

Coordinates the pipeline: runs ingestion, drives the state machine against
the record store and executes the intents each transition returns
(export, live broadcast, on-air display).

Flag changes and their side effects are not transactional. If the export
fails after an approve, the record stays approved and the caller gets the
``ExportWriteError``.
"""

import asyncio
import uuid
from typing import List, Optional

from donq.core.errors import ExportWriteError
from donq.core.logging import get_logger
from donq.display.base_hook import DisplayHook
from donq.export.config_store import ExportConfigStore, ExportConfiguration
from donq.export.sink import ExportSink
from donq.ingestion.reconciler import IngestionAdapter, ReconcileReport
from donq.live.channel import LiveUpdateChannel
from donq.models.donation_models import (
    DEFAULT_RECIPIENT,
    DonationOut,
    DonationRecord,
    SyntheticDonationRequest,
)
from donq.moderation.state_machine import (
    NEW_DONATION_EVENT,
    Action,
    BroadcastIntent,
    DisplayIntent,
    ExportIntent,
    TransitionPlan,
    plan_approve,
    plan_deny,
    plan_mark_shown,
)
from donq.store.record_store import RecordStore

logger = get_logger("service")


class DonationService:
    """Single entry point for every inbound command."""

    def __init__(
        self,
        store: RecordStore,
        ingestor: IngestionAdapter,
        sink: ExportSink,
        channel: LiveUpdateChannel,
        display: DisplayHook,
        config_store: ExportConfigStore,
        team_id: str,
        test_id_prefix: str = "TEST",
    ):
        self.store = store
        self.ingestor = ingestor
        self.sink = sink
        self.channel = channel
        self.display = display
        self.config_store = config_store
        self.team_id = team_id
        self.test_id_prefix = test_id_prefix

    # ── Ingestion ──

    async def fetch_and_reconcile(
        self, team_id: Optional[str] = None
    ) -> ReconcileReport:
        report = await self.ingestor.reconcile(team_id or self.team_id)
        for record in report.inserted:
            await self._broadcast(NEW_DONATION_EVENT, record)
        return report

    async def create_test_donation(
        self, request: SyntheticDonationRequest
    ) -> DonationRecord:
        """Insert a synthetic donation under the reserved test prefix."""
        record = DonationRecord(
            id=f"{self.test_id_prefix}{uuid.uuid4().hex}",
            name=request.name,
            recipient=request.recipient or DEFAULT_RECIPIENT,
            amount=request.amount,
            message=request.message,
        )
        self.store.upsert_if_absent(record)
        logger.info("Created test donation", extra={"donation_id": record.id})
        await self._broadcast(NEW_DONATION_EVENT, record)
        return record

    # ── Queries ──

    def get(self, donation_id: str) -> DonationRecord:
        return self.store.get(donation_id)

    def list_pending(self) -> List[DonationRecord]:
        """Approved donations waiting to go on air."""
        return self.store.query_by_flags(approved=True, denied=False, shown=False)

    def list_unapproved(self) -> List[DonationRecord]:
        """Donations nobody has moderated yet."""
        return self.store.query_by_flags(approved=False, denied=False)

    # ── Moderation ──

    async def approve(self, donation_id: str) -> DonationRecord:
        plan = plan_approve(self.store.get(donation_id))
        return await self._commit(plan)

    async def deny(self, donation_id: str) -> DonationRecord:
        plan = plan_deny(self.store.get(donation_id))
        return await self._commit(plan)

    async def mark_shown(self, donation_id: str) -> DonationRecord:
        plan = plan_mark_shown(self.store.get(donation_id))
        return await self._commit(plan)

    def _apply(self, plan: TransitionPlan) -> None:
        if plan.action is Action.APPROVE:
            self.store.set_approved(plan.donation_id, plan.changes["approved_at"])
        elif plan.action is Action.DENY:
            self.store.set_denied(plan.donation_id)
        elif plan.action is Action.MARK_SHOWN:
            self.store.set_shown(plan.donation_id)
        else:
            raise ValueError(f"Unknown action: {plan.action}")

    async def _commit(self, plan: TransitionPlan) -> DonationRecord:
        self._apply(plan)
        logger.info(
            f"Donation {plan.action.value} → {plan.target_state.value}",
            extra={"donation_id": plan.donation_id},
        )

        export_error: Optional[ExportWriteError] = None
        for intent in plan.intents:
            if isinstance(intent, ExportIntent):
                try:
                    await asyncio.to_thread(self.sink.append_approved, intent.record)
                except ExportWriteError as e:
                    logger.error(
                        f"Export failed after approval was committed: {e}",
                        extra={"donation_id": plan.donation_id, "path": e.path},
                    )
                    export_error = e
            elif isinstance(intent, BroadcastIntent):
                await self._broadcast(intent.event, intent.record)
            elif isinstance(intent, DisplayIntent):
                await self._show(intent.record)

        if export_error is not None:
            raise export_error
        return plan.record

    async def _broadcast(self, event: str, record: DonationRecord) -> None:
        payload = DonationOut.from_record(record).model_dump(mode="json")
        await self.channel.broadcast(event, payload)

    async def _show(self, record: DonationRecord) -> None:
        try:
            await self.display.show(record)
        except Exception as e:
            # shown is already committed; the titler can be re-triggered by hand
            logger.error(
                f"Display hook failed: {e}", extra={"donation_id": record.id}
            )

    # ── Administrative ──

    def clear_all(self) -> int:
        return self.store.clear_all()

    def purge_test_records(self) -> int:
        return self.store.delete_by_id_prefix(self.test_id_prefix)

    def stats(self) -> dict:
        return self.store.count_by_state()

    # ── Export settings ──

    @property
    def export_config(self) -> ExportConfiguration:
        return self.config_store.current

    def update_export_config(
        self, path: str, name: str, format: str
    ) -> ExportConfiguration:
        return self.config_store.update(path, name, format)

    async def close(self) -> None:
        await self.ingestor.client.close()
        await self.display.close()
