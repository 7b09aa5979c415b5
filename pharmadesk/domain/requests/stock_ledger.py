"""
Stock Ledger

Stock changes made by the request workflow. Only the current stock
integer is kept; there is no movement history.
"""

from typing import Iterable

from loguru import logger

from pharmadesk.core.exceptions import InsufficientStockError
from pharmadesk.domain.medicines.models import Medicine
from pharmadesk.domain.requests.models import MedicineRequestItem


class StockLedger:
    """Applies stock deltas for the request workflow.

    Callers must run these inside the repository transaction that also
    writes the request status, and call ensure_available for the whole
    request before the first decrement.
    """

    def __init__(self, repository):
        self.repo = repository

    def ensure_available(self, items: Iterable[MedicineRequestItem]) -> None:
        """Raise InsufficientStockError for the first item its medicine cannot cover.

        This is the only availability check; decrement relies on it.
        """
        for item in items:
            medicine = item.medicine
            if medicine.stock < item.quantity:
                raise InsufficientStockError(
                    medicine_name=medicine.name,
                    requested=item.quantity,
                    available=medicine.stock,
                )

    async def decrement(self, medicine: Medicine, quantity: int) -> None:
        # availability was checked by ensure_available; stock >= 0 is also a table constraint
        if quantity == 0:
            return
        await self.repo.adjust_stock(medicine.id, -quantity)
        logger.debug(f"Stock of medicine {medicine.id} decremented by {quantity}")

    async def increment(self, medicine: Medicine, quantity: int) -> None:
        # mirrors an earlier decrement of the same quantity, so it cannot underflow
        if quantity == 0:
            return
        await self.repo.adjust_stock(medicine.id, quantity)
        logger.debug(f"Stock of medicine {medicine.id} restored by {quantity}")
