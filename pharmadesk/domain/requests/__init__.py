# Medicine requests domain module
from pharmadesk.domain.requests.models import (
    MedicineRequest,
    MedicineRequestItem,
    RequestStatus,
)

__all__ = [
    "MedicineRequest",
    "MedicineRequestItem",
    "RequestStatus",
]
