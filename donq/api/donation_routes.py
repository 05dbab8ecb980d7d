"""DONQ — Donation Queue & Moderation Routes."""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from donq.api.errors import to_http
from donq.core.errors import DonqError
from donq.core.logging import get_logger
from donq.dependencies import get_donation_service
from donq.models.donation_models import DonationOut, SyntheticDonationRequest
from donq.services.donation_service import DonationService

logger = get_logger("api.donations")

router = APIRouter(prefix="/donations", tags=["Donations"])


# ── Response Models ──


class FetchResponse(BaseModel):
    """Response for POST /donations/fetch."""

    status: str
    team_id: str
    fetched: int
    inserted: int
    skipped: int
    error: str | None = None


class DeleteResponse(BaseModel):
    status: str = "success"
    deleted: int


def _out(records) -> List[DonationOut]:
    return [DonationOut.from_record(r) for r in records]


# ── Queues ──


@router.post("/fetch", response_model=FetchResponse)
async def fetch_donations(service: DonationService = Depends(get_donation_service)):
    """Pull the team's donations from Extra Life and store the new ones.

    An upstream failure is not an HTTP error: the response reports zero new
    donations and carries the error message.
    """
    try:
        report = await service.fetch_and_reconcile()
    except DonqError as e:
        raise to_http(e)
    return FetchResponse(
        status="error" if report.error else "success",
        team_id=report.team_id,
        fetched=report.fetched,
        inserted=report.inserted_count,
        skipped=report.skipped,
        error=report.error,
    )


@router.get("/pending", response_model=List[DonationOut])
async def list_pending(service: DonationService = Depends(get_donation_service)):
    """Approved donations not yet shown on air."""
    try:
        return _out(service.list_pending())
    except DonqError as e:
        raise to_http(e)


@router.get("/unapproved", response_model=List[DonationOut])
async def list_unapproved(service: DonationService = Depends(get_donation_service)):
    """Donations awaiting a moderator decision."""
    try:
        return _out(service.list_unapproved())
    except DonqError as e:
        raise to_http(e)


# ── Test data ──


@router.post("/test", response_model=DonationOut, status_code=201)
async def create_test_donation(
    request: SyntheticDonationRequest | None = None,
    service: DonationService = Depends(get_donation_service),
):
    """Insert a synthetic donation for rehearsing the on-air flow."""
    try:
        record = await service.create_test_donation(
            request or SyntheticDonationRequest()
        )
    except DonqError as e:
        raise to_http(e)
    return DonationOut.from_record(record)


@router.delete("/test", response_model=DeleteResponse)
async def purge_test_donations(
    service: DonationService = Depends(get_donation_service),
):
    """Delete every synthetic donation, leaving real ones alone."""
    try:
        return DeleteResponse(deleted=service.purge_test_records())
    except DonqError as e:
        raise to_http(e)


@router.delete("", response_model=DeleteResponse)
async def clear_donations(service: DonationService = Depends(get_donation_service)):
    """Wipe every stored donation. The next fetch re-ingests them as pending."""
    try:
        return DeleteResponse(deleted=service.clear_all())
    except DonqError as e:
        raise to_http(e)


# ── Single donation ──


@router.get("/{donation_id}", response_model=DonationOut)
async def get_donation(
    donation_id: str, service: DonationService = Depends(get_donation_service)
):
    try:
        return DonationOut.from_record(service.get(donation_id))
    except DonqError as e:
        raise to_http(e)


@router.post("/{donation_id}/approve", response_model=DonationOut)
async def approve_donation(
    donation_id: str, service: DonationService = Depends(get_donation_service)
):
    """Approve a donation, export it and push it to live viewers.

    Calling this twice exports the donation twice.
    """
    try:
        record = await service.approve(donation_id)
    except DonqError as e:
        logger.warning(f"Approve failed: {e}", extra={"donation_id": donation_id})
        raise to_http(e)
    return DonationOut.from_record(record)


@router.post("/{donation_id}/deny", response_model=DonationOut)
async def deny_donation(
    donation_id: str, service: DonationService = Depends(get_donation_service)
):
    try:
        record = await service.deny(donation_id)
    except DonqError as e:
        raise to_http(e)
    return DonationOut.from_record(record)


@router.post("/{donation_id}/shown", response_model=DonationOut)
async def mark_donation_shown(
    donation_id: str, service: DonationService = Depends(get_donation_service)
):
    """Mark an approved donation as shown on air."""
    try:
        record = await service.mark_shown(donation_id)
    except DonqError as e:
        raise to_http(e)
    return DonationOut.from_record(record)
