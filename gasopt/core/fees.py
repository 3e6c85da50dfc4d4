"""Analysis fee gate."""

from __future__ import annotations

import logging

from gasopt.core.errors import InvalidInput, PaymentRequired

logger = logging.getLogger(__name__)

MAX_FEE = 2**63 - 1


def validate_fee(fee: int) -> int:
    """Return ``fee`` if it is a usable fee amount, else raise InvalidInput."""
    if isinstance(fee, bool) or not isinstance(fee, int) or not 0 <= fee <= MAX_FEE:
        raise InvalidInput("Fee must be a non-negative 64-bit integer", {"fee": fee})
    return fee


class FeeGate:
    """Accepts or rejects a paid analysis request.

    The gate is consulted before anything else about a request is
    examined, so an underpaid request never reaches the report store.
    """

    def __init__(self, fee: int) -> None:
        self.fee = validate_fee(fee)

    def require(self, fee_paid: int) -> int:
        validate_fee(fee_paid)
        if fee_paid < self.fee:
            logger.warning("Rejected analysis: paid %d, fee is %d", fee_paid, self.fee)
            raise PaymentRequired(
                f"Analysis fee is {self.fee} wei, received {fee_paid}",
                {"required": self.fee, "paid": fee_paid},
            )
        return fee_paid
