from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Iterable

from .booking import DateRange
from .catalog import Crop, Gardener, GardenPlot


class IllegalStateTransition(RuntimeError):
    def __init__(self, current: ReservationStatus, target: ReservationStatus | None) -> None:
        self.current = current
        self.target = target
        target_label = target.value if target is not None else None
        super().__init__(f"Cannot transition from {current.value} to {target_label}.")


class ReservationStatus(str, Enum):
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def description(self) -> str:
        return _STATUS_DESCRIPTIONS[self]

    def can_transition_to(self, new_status: ReservationStatus | None) -> bool:
        if new_status is None or new_status is self:
            return False
        return new_status in _ALLOWED_TRANSITIONS[self]

    @property
    def is_active(self) -> bool:
        return self in (ReservationStatus.REQUESTED, ReservationStatus.CONFIRMED)

    @property
    def is_terminal(self) -> bool:
        return self in (ReservationStatus.CANCELLED, ReservationStatus.COMPLETED)

    @property
    def occupies_plot(self) -> bool:
        # Only a confirmed reservation blocks its plot; pending requests never do.
        return self is ReservationStatus.CONFIRMED


_ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.REQUESTED: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.COMPLETED, ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
}

_STATUS_DESCRIPTIONS: dict[ReservationStatus, str] = {
    ReservationStatus.REQUESTED: "Pending approval",
    ReservationStatus.CONFIRMED: "Active and confirmed",
    ReservationStatus.CANCELLED: "Cancelled",
    ReservationStatus.COMPLETED: "Successfully completed",
}


class Reservation:
    """A gardener's claim on one plot for one date range.

    Built only by ``GardenSystem``. The plot, gardener and date range are fixed
    for the lifetime of the reservation; the status moves forward through
    ``ReservationStatus`` and the planting plan can be edited at any status.
    """

    def __init__(
        self,
        reservation_id: str,
        plot: GardenPlot,
        gardener: Gardener,
        date_range: DateRange,
        crops: Iterable[Crop] | None = None,
    ) -> None:
        if reservation_id is None or not str(reservation_id).strip():
            raise ValueError("Reservation ID cannot be empty.")
        if plot is None:
            raise ValueError("Plot cannot be None.")
        if gardener is None:
            raise ValueError("Gardener cannot be None.")
        if date_range is None:
            raise ValueError("Date range cannot be None.")

        self._reservation_id = str(reservation_id).strip()
        self._plot = plot
        self._gardener = gardener
        self._date_range = date_range
        self._crops: list[Crop] = []
        for crop in crops or ():
            self.add_crop(crop)
        self._status = ReservationStatus.REQUESTED

    @property
    def reservation_id(self) -> str:
        return self._reservation_id

    @property
    def plot(self) -> GardenPlot:
        return self._plot

    @property
    def gardener(self) -> Gardener:
        return self._gardener

    @property
    def date_range(self) -> DateRange:
        return self._date_range

    @property
    def status(self) -> ReservationStatus:
        return self._status

    @property
    def crops(self) -> list[Crop]:
        return list(self._crops)

    def add_crop(self, crop: Crop | None) -> None:
        if crop is not None and crop not in self._crops:
            self._crops.append(crop)

    def remove_crop(self, crop: Crop) -> None:
        if crop in self._crops:
            self._crops.remove(crop)

    def clear_crops(self) -> None:
        self._crops.clear()

    def transition_to(self, new_status: ReservationStatus | None) -> None:
        if not self._status.can_transition_to(new_status):
            raise IllegalStateTransition(self._status, new_status)
        self._status = new_status

    def confirm(self) -> None:
        self.transition_to(ReservationStatus.CONFIRMED)

    def cancel(self) -> None:
        self.transition_to(ReservationStatus.CANCELLED)

    def complete(self) -> None:
        self.transition_to(ReservationStatus.COMPLETED)

    @property
    def is_active(self) -> bool:
        return self._status.is_active

    @property
    def is_confirmed(self) -> bool:
        return self._status is ReservationStatus.CONFIRMED

    @property
    def is_cancelled(self) -> bool:
        return self._status is ReservationStatus.CANCELLED

    @property
    def is_completed(self) -> bool:
        return self._status is ReservationStatus.COMPLETED

    def is_currently_active(self, today: date | None = None) -> bool:
        return self.is_confirmed and self._date_range.is_currently_active(today)

    def is_period_ended(self, today: date | None = None) -> bool:
        return self._date_range.is_in_past(today)

    def conflicts_with(self, other_range: DateRange | None) -> bool:
        return self._status.occupies_plot and self._date_range.overlaps(other_range)

    def crops_allowed_on_plot(self) -> bool:
        return all(self._plot.is_crop_allowed(crop) for crop in self._crops)

    def growing_period_sufficient(self) -> bool:
        return all(crop.can_grow_in(self._date_range) for crop in self._crops)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_id": self._reservation_id,
            "plot_id": self._plot.plot_id,
            "gardener_id": self._gardener.gardener_id,
            "start": self._date_range.start.isoformat(),
            "end": self._date_range.end.isoformat(),
            "status": self._status.value,
            "crops": [crop.name for crop in self._crops],
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Reservation):
            return NotImplemented
        return self._reservation_id == other._reservation_id

    def __hash__(self) -> int:
        return hash(self._reservation_id)

    def __repr__(self) -> str:
        return (
            f"Reservation(reservation_id={self._reservation_id!r}, plot_id={self._plot.plot_id!r}, "
            f"gardener_id={self._gardener.gardener_id!r}, date_range='{self._date_range}', status={self._status.value!r})"
        )
