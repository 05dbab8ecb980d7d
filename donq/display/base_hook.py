"""DONQ — Abstract Display Hook."""

from abc import ABC, abstractmethod

from donq.models.donation_models import DonationRecord


class DisplayHook(ABC):
    """Outbound interface to whatever puts a donation on air.

    Called after a record is marked shown. Failures are reported but never
    roll back the ``shown`` flag.
    """

    @abstractmethod
    async def show(self, record: DonationRecord) -> None:
        """Trigger the on-air title for ``record``."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
