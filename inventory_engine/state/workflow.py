"""Reservation state machine."""

from inventory_engine.models.inventory import ReservationStatus


class ReservationTransitions:
    """Valid reservation status transitions."""

    TRANSITIONS = {
        ReservationStatus.ACTIVE: [
            ReservationStatus.CONFIRMED,
            ReservationStatus.EXPIRED,
            ReservationStatus.CANCELLED,
        ],
        # Terminal states
        ReservationStatus.CONFIRMED: [],
        ReservationStatus.EXPIRED: [],
        ReservationStatus.CANCELLED: [],
    }

    @classmethod
    def can_transition(cls, from_state: ReservationStatus, to_state: ReservationStatus) -> bool:
        """Check if a state transition is valid."""
        return to_state in cls.TRANSITIONS.get(from_state, [])

    @classmethod
    def release_status(cls, reason: str | None) -> ReservationStatus:
        """Status a released reservation ends in, based on the release reason."""
        if reason and "expire" in reason.lower():
            return ReservationStatus.EXPIRED
        return ReservationStatus.CANCELLED
