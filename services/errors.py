class InvalidReference(ValueError):
    """Slot reference or manual record cannot be resolved. Permanent, never retried."""


class CapacityExceeded(Exception):
    def __init__(self, slot, capacity: int, occupied: int):
        super().__init__(f"slot {slot} is full ({occupied}/{capacity})")
        self.slot = slot
        self.capacity = capacity
        self.occupied = occupied


class PaymentGatewayError(Exception):
    def __init__(self, message: str, detail=None):
        super().__init__(message)
        self.detail = detail


class TransactionConflict(Exception):
    """The storage layer kept rejecting a unit of work; safe to retry later."""


class CheckNotFound(LookupError):
    pass


class CheckNotPending(Exception):
    pass
