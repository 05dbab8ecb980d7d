"""DONQ — Moderation State Machine.

Pure transition logic: given the current record, decide the flag change and
the side effects it implies. Nothing here touches the database, the export
file or the network; the moderation service applies plans and executes the
intents.

Transitions:
  approve     any state -> Approved (clears denied, exports again)
  deny        any state -> Denied (clears approved, no export)
  mark_shown  Approved -> Shown
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from donq.core.errors import TransitionError
from donq.models.donation_models import DonationRecord

NEW_DONATION_EVENT = "new donation"


class ModerationState(str, Enum):
    """Where a record sits in the workflow."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    SHOWN = "shown"


class Action(str, Enum):
    APPROVE = "approve"
    DENY = "deny"
    MARK_SHOWN = "mark_shown"


def state_of(record: DonationRecord) -> ModerationState:
    if record.denied:
        return ModerationState.DENIED
    if record.approved and record.shown:
        return ModerationState.SHOWN
    if record.approved:
        return ModerationState.APPROVED
    return ModerationState.PENDING


# ─────────────────────────────────────────────
# SIDE-EFFECT INTENTS
# ─────────────────────────────────────────────


@dataclass(frozen=True)
class ExportIntent:
    """Append the record to the export file."""

    record: DonationRecord


@dataclass(frozen=True)
class BroadcastIntent:
    """Push an event to live subscribers."""

    event: str
    record: DonationRecord


@dataclass(frozen=True)
class DisplayIntent:
    """Put the record on air."""

    record: DonationRecord


Intent = Union[ExportIntent, BroadcastIntent, DisplayIntent]


@dataclass
class TransitionPlan:
    """A flag change to persist plus the intents to run once it is committed."""

    donation_id: str
    action: Action
    changes: Dict[str, Any]
    record: DonationRecord
    intents: List[Intent] = field(default_factory=list)

    @property
    def target_state(self) -> ModerationState:
        return state_of(self.record)


def _apply(record: DonationRecord, changes: Dict[str, Any]) -> DonationRecord:
    return DonationRecord(**{**record.model_dump(), **changes})


def plan_approve(
    record: DonationRecord, now: Optional[datetime] = None
) -> TransitionPlan:
    """Approve from any state.

    Re-approving an approved record is allowed and exports it again; exports
    are append-only and never de-duplicated here.
    """
    changes = {
        "approved": True,
        "denied": False,
        "approved_at": now or datetime.now(timezone.utc),
    }
    updated = _apply(record, changes)
    return TransitionPlan(
        donation_id=record.id,
        action=Action.APPROVE,
        changes=changes,
        record=updated,
        intents=[
            ExportIntent(updated),
            BroadcastIntent(NEW_DONATION_EVENT, updated),
        ],
    )


def plan_deny(record: DonationRecord) -> TransitionPlan:
    """Deny from any state. Already-written export lines stay where they are."""
    changes = {"denied": True, "approved": False}
    return TransitionPlan(
        donation_id=record.id,
        action=Action.DENY,
        changes=changes,
        record=_apply(record, changes),
    )


def plan_mark_shown(record: DonationRecord) -> TransitionPlan:
    if not record.approved:
        raise TransitionError(
            record.id,
            f"Donation {record.id} is {state_of(record).value}; "
            "only approved donations can be shown",
        )
    changes = {"shown": True}
    updated = _apply(record, changes)
    return TransitionPlan(
        donation_id=record.id,
        action=Action.MARK_SHOWN,
        changes=changes,
        record=updated,
        intents=[DisplayIntent(updated)],
    )
