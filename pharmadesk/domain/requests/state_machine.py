"""
Medicine request state machine.

    REQUESTED -> APPROVED -> GIVEN
    REQUESTED | APPROVED | GIVEN -> CANCELLED

Re-entering the current status is accepted and has no stock effect.
GIVEN -> CANCELLED reverses the stock taken when the request was given.
CANCELLED accepts nothing but CANCELLED.
"""

from dataclasses import dataclass
import enum
from typing import Dict, Tuple

from pharmadesk.core.exceptions import InvalidStateError
from pharmadesk.domain.requests.models import RequestStatus


class StockEffect(str, enum.Enum):
    """What a transition does to Medicine.stock"""
    NONE = "NONE"
    DECREMENT = "DECREMENT"
    RESTORE = "RESTORE"


@dataclass(frozen=True)
class Transition:
    source: RequestStatus
    target: RequestStatus
    stock_effect: StockEffect = StockEffect.NONE
    stamp_approved_at: bool = False
    stamp_given_at: bool = False
    sets_cancelled_reason: bool = False


def _t(source, target, **effects) -> Tuple[Tuple[RequestStatus, RequestStatus], Transition]:
    return (source, target), Transition(source, target, **effects)


R = RequestStatus

TRANSITIONS: Dict[Tuple[RequestStatus, RequestStatus], Transition] = dict([
    _t(R.REQUESTED, R.REQUESTED),
    _t(R.REQUESTED, R.APPROVED, stamp_approved_at=True),
    _t(R.REQUESTED, R.GIVEN, stock_effect=StockEffect.DECREMENT,
       stamp_approved_at=True, stamp_given_at=True),
    _t(R.REQUESTED, R.CANCELLED, sets_cancelled_reason=True),

    _t(R.APPROVED, R.APPROVED),
    _t(R.APPROVED, R.GIVEN, stock_effect=StockEffect.DECREMENT, stamp_given_at=True),
    _t(R.APPROVED, R.CANCELLED, sets_cancelled_reason=True),

    # GIVEN -> GIVEN must never take stock twice
    _t(R.GIVEN, R.GIVEN),
    _t(R.GIVEN, R.CANCELLED, stock_effect=StockEffect.RESTORE, sets_cancelled_reason=True),

    # prior status is not GIVEN, so nothing is restored again
    _t(R.CANCELLED, R.CANCELLED, sets_cancelled_reason=True),
])


def resolve_transition(current: RequestStatus, target: RequestStatus) -> Transition:
    """Look up the transition or raise InvalidStateError."""
    current = RequestStatus(current)
    target = RequestStatus(target)
    transition = TRANSITIONS.get((current, target))
    if transition is None:
        raise InvalidStateError(
            message=f"Cannot change request status from {current.value} to {target.value}",
            details={"currentStatus": current.value, "requestedStatus": target.value},
        )
    return transition


def allowed_targets(current: RequestStatus) -> frozenset:
    """Statuses reachable from ``current``."""
    current = RequestStatus(current)
    return frozenset(target for (source, target) in TRANSITIONS if source == current)
