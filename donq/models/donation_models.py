"""DONQ — Donation Models.

``DonationRecord`` is the persisted row; ``DonationInput`` is one item of the
Extra Life team donations response with every documented default applied at
the boundary.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator
from sqlmodel import SQLModel, Field

DEFAULT_DONOR_NAME = "Anonymous"
DEFAULT_RECIPIENT = "Team"
DEFAULT_AVATAR_URL = (
    "https://static.donordrive.com/clients/extralife/img/avatar-constituent-default.gif"
)

# Export column order, shared by CSV rows and the workbook header.
EXPORT_COLUMNS = ["ID", "Name", "Recipient", "Amount", "Message", "Avatar"]


# ─────────────────────────────────────────────
# DATABASE MODEL
# ─────────────────────────────────────────────


class DonationRecord(SQLModel, table=True):
    """A donation plus its moderation flags.

    Donor-supplied fields are frozen at first insertion; only the flags and
    ``approved_at`` ever change.
    """

    __tablename__ = "donations"

    id: str = Field(primary_key=True, description="Extra Life donationID")
    name: str = Field(default=DEFAULT_DONOR_NAME)
    recipient: str = Field(default=DEFAULT_RECIPIENT)
    amount: float = Field(default=0.0)
    message: str = Field(default="")
    avatar: str = Field(default=DEFAULT_AVATAR_URL)
    approved: bool = Field(default=False, index=True)
    denied: bool = Field(default=False, index=True)
    shown: bool = Field(default=False, index=True)
    approved_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def export_row(self) -> list:
        """Values in ``EXPORT_COLUMNS`` order."""
        return [
            self.id,
            self.name,
            self.recipient,
            self.amount,
            self.message,
            self.avatar,
        ]


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS
# ─────────────────────────────────────────────


class DonationInput(BaseModel):
    """One item from ``GET /teams/{teamID}/donations``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    donation_id: str = PydanticField(alias="donationID", min_length=1)
    display_name: Optional[str] = PydanticField(default=None, alias="displayName")
    recipient_name: Optional[str] = PydanticField(default=None, alias="recipientName")
    amount: Optional[float] = PydanticField(default=None, ge=0)
    message: Optional[str] = None
    avatar_image_url: Optional[str] = PydanticField(
        default=None, alias="avatarImageURL"
    )

    @field_validator("donation_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # DonorDrive ids are hex strings, but tolerate numbers.
        if isinstance(value, int):
            return str(value)
        return value

    def to_record(self) -> DonationRecord:
        """Build a pending record, filling the documented defaults."""
        return DonationRecord(
            id=self.donation_id,
            name=self.display_name or DEFAULT_DONOR_NAME,
            recipient=self.recipient_name or DEFAULT_RECIPIENT,
            amount=self.amount if self.amount is not None else 0.0,
            message=self.message or "",
            avatar=self.avatar_image_url or DEFAULT_AVATAR_URL,
        )


class DonationOut(BaseModel):
    """Public representation of a record (API responses and live events)."""

    id: str
    name: str
    recipient: str
    amount: float
    message: str
    avatar: str
    approved: bool
    denied: bool
    shown: bool
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: DonationRecord) -> "DonationOut":
        return cls.model_validate(record, from_attributes=True)


class SyntheticDonationRequest(BaseModel):
    """Request body for POST /donations/test."""

    name: str = "Test Donor"
    recipient: Optional[str] = None
    amount: float = PydanticField(default=10.0, ge=0)
    message: str = "This is a test donation"
