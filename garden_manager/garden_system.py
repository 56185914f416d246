from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Iterable

from .booking import DateRange
from .catalog import Crop, Gardener, GardenPlot
from .reservation import IllegalStateTransition, Reservation, ReservationStatus

DEFAULT_MAX_ACTIVE_RESERVATIONS = 3


class FailureReason(str, Enum):
    INVALID_REQUEST = "invalid_request"
    PLOT_NOT_FOUND = "plot_not_found"
    GARDENER_NOT_FOUND = "gardener_not_found"
    RESERVATION_NOT_FOUND = "reservation_not_found"
    QUOTA_EXCEEDED = "quota_exceeded"
    PLOT_UNAVAILABLE = "plot_unavailable"
    CROP_NOT_ALLOWED = "crop_not_allowed"
    GROWING_PERIOD_TOO_SHORT = "growing_period_too_short"
    ILLEGAL_TRANSITION = "illegal_transition"


@dataclass(frozen=True)
class BookingResult:
    ok: bool
    reservation: Reservation | None = None
    reason: FailureReason | None = None
    message: str | None = None

    @staticmethod
    def success(reservation: Reservation) -> "BookingResult":
        return BookingResult(ok=True, reservation=reservation)

    @staticmethod
    def failure(reason: FailureReason, message: str, reservation: Reservation | None = None) -> "BookingResult":
        return BookingResult(ok=False, reservation=reservation, reason=reason, message=message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": self.ok}
        if self.reservation is not None:
            payload["reservation"] = self.reservation.to_dict()
        if self.reason is not None:
            payload["reason"] = self.reason.value
            payload["message"] = self.message
        return payload


class GardenSystem:
    """Books garden plots for gardeners.

    Owns the plot, gardener and crop catalogs and the reservation ledger. Every
    rule that spans more than one entity lives here: unique IDs, the per-gardener
    quota, the availability re-check at confirm time and the removal guards.
    Business-rule failures come back as ``BookingResult`` values; only malformed
    constructor arguments raise.

    Not thread-safe. Callers sharing one instance across threads must serialize
    every call, as ``web_app.create_app`` does with a single lock.
    """

    def __init__(
        self,
        max_active_reservations: int = DEFAULT_MAX_ACTIVE_RESERVATIONS,
        clock: Callable[[], datetime] | None = None,
        require_growing_period: bool = False,
    ) -> None:
        if max_active_reservations <= 0:
            raise ValueError("max_active_reservations must be greater than zero")

        self.max_active_reservations = max_active_reservations
        self.require_growing_period = require_growing_period
        self._clock: Callable[[], datetime] = clock or datetime.now
        self._plots: dict[str, GardenPlot] = {}
        self._gardeners: dict[str, Gardener] = {}
        self._crops: dict[str, Crop] = {}
        self._reservations: dict[str, Reservation] = {}
        self._reservation_counter = 0
        self.events: list[dict[str, Any]] = []

    @property
    def plots(self) -> list[GardenPlot]:
        return list(self._plots.values())

    @property
    def gardeners(self) -> list[Gardener]:
        return list(self._gardeners.values())

    @property
    def crops(self) -> list[Crop]:
        return list(self._crops.values())

    @property
    def reservations(self) -> list[Reservation]:
        return list(self._reservations.values())

    def today(self) -> date:
        return self._clock().date()

    def _log_event(self, event_type: str, payload: dict[str, Any]) -> None:
        timestamp = self._clock().isoformat(timespec="seconds")
        self.events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})

    def _reject(
        self,
        reason: FailureReason,
        message: str,
        payload: dict[str, Any],
        reservation: Reservation | None = None,
    ) -> BookingResult:
        self._log_event("RESERVATION_REJECTED", {**payload, "reason": reason.value, "message": message})
        return BookingResult.failure(reason, message, reservation)

    def add_plot(self, plot: GardenPlot | None) -> bool:
        if plot is None or plot.plot_id in self._plots:
            return False

        plot._bind_ledger(self._reservations, self.today)
        self._plots[plot.plot_id] = plot
        self._log_event("PLOT_ADDED", {"plot_id": plot.plot_id, "name": plot.name})
        return True

    def remove_plot(self, plot_id: str) -> bool:
        plot = self.find_plot_by_id(plot_id)
        if plot is None or plot.get_active_reservations():
            return False

        del self._plots[plot.plot_id]
        self._log_event("PLOT_REMOVED", {"plot_id": plot.plot_id})
        return True

    def find_plot_by_id(self, plot_id: str | None) -> GardenPlot | None:
        if plot_id is None:
            return None
        return self._plots.get(plot_id)

    def register_gardener(self, gardener: Gardener | None) -> bool:
        if gardener is None or gardener.gardener_id in self._gardeners:
            return False

        gardener._bind_ledger(self._reservations, self.today)
        self._gardeners[gardener.gardener_id] = gardener
        self._log_event("GARDENER_REGISTERED", {"gardener_id": gardener.gardener_id, "name": gardener.name})
        return True

    def register_new_gardener(
        self,
        name: str,
        email: str | None = None,
        phone_number: str | None = None,
    ) -> Gardener:
        if name is None or not name.strip():
            raise ValueError("name must not be empty")

        sequence = len(self._gardeners) + 1
        while f"G{sequence:03d}" in self._gardeners:
            sequence += 1

        gardener = Gardener(f"G{sequence:03d}", name, email, phone_number)
        self.register_gardener(gardener)
        return gardener

    def remove_gardener(self, gardener_id: str) -> bool:
        gardener = self.find_gardener_by_id(gardener_id)
        if gardener is None or gardener.has_active_reservations():
            return False

        del self._gardeners[gardener.gardener_id]
        self._log_event("GARDENER_REMOVED", {"gardener_id": gardener.gardener_id})
        return True

    def find_gardener_by_id(self, gardener_id: str | None) -> Gardener | None:
        if gardener_id is None:
            return None
        return self._gardeners.get(gardener_id)

    def add_crop(self, crop: Crop | None) -> bool:
        if crop is None or crop.key in self._crops:
            return False

        self._crops[crop.key] = crop
        self._log_event("CROP_ADDED", {"name": crop.name, "min_growing_days": crop.min_growing_days})
        return True

    def find_crop(self, name: str | None) -> Crop | None:
        if name is None:
            return None
        return self._crops.get(name.strip().lower())

    def find_available_plots(self, date_range: DateRange | None, crop: Crop | str | None = None) -> list[GardenPlot]:
        if date_range is None:
            return []
        return [
            plot
            for plot in self._plots.values()
            if plot.is_available(date_range) and (crop is None or plot.is_crop_allowed(crop))
        ]

    def is_plot_available(self, plot_id: str, date_range: DateRange | None) -> bool:
        plot = self.find_plot_by_id(plot_id)
        return plot is not None and plot.is_available(date_range)

    def create_reservation(
        self,
        plot_id: str,
        gardener_id: str,
        date_range: DateRange | None,
        crops: Iterable[Crop] | None = None,
    ) -> BookingResult:
        crop_list = [crop for crop in crops or () if crop is not None]
        request_payload = {
            "plot_id": plot_id,
            "gardener_id": gardener_id,
            "date_range": date_range.to_dict() if date_range is not None else None,
            "crops": [crop.name for crop in crop_list],
        }

        if plot_id is None or gardener_id is None or date_range is None:
            return self._reject(FailureReason.INVALID_REQUEST, "Invalid reservation details.", request_payload)

        plot = self.find_plot_by_id(plot_id)
        if plot is None:
            return self._reject(FailureReason.PLOT_NOT_FOUND, f"Plot not found: {plot_id}", request_payload)

        gardener = self.find_gardener_by_id(gardener_id)
        if gardener is None:
            return self._reject(FailureReason.GARDENER_NOT_FOUND, f"Gardener not found: {gardener_id}", request_payload)

        if gardener.active_reservation_count() >= self.max_active_reservations:
            return self._reject(
                FailureReason.QUOTA_EXCEEDED,
                f"Gardener has reached the maximum of {self.max_active_reservations} active reservations.",
                request_payload,
            )

        if not plot.is_available(date_range):
            return self._reject(
                FailureReason.PLOT_UNAVAILABLE,
                "Plot is not available for the requested dates.",
                request_payload,
            )

        for crop in crop_list:
            if not plot.is_crop_allowed(crop):
                return self._reject(
                    FailureReason.CROP_NOT_ALLOWED,
                    f"Crop '{crop.name}' is not allowed on plot {plot.plot_id}.",
                    request_payload,
                )

        if self.require_growing_period:
            for crop in crop_list:
                if not crop.can_grow_in(date_range):
                    return self._reject(
                        FailureReason.GROWING_PERIOD_TOO_SHORT,
                        f"Crop '{crop.name}' needs at least {crop.min_growing_days} days.",
                        request_payload,
                    )

        reservation = Reservation(self._peek_reservation_id(), plot, gardener, date_range, crop_list)
        self._reservation_counter += 1
        self._reservations[reservation.reservation_id] = reservation
        plot._add_reservation(reservation.reservation_id)
        gardener._add_reservation(reservation.reservation_id)

        self._log_event("RESERVATION_CREATED", reservation.to_dict())
        return BookingResult.success(reservation)

    def confirm_reservation(self, reservation_id: str) -> BookingResult:
        reservation = self.find_reservation_by_id(reservation_id)
        if reservation is None:
            return self._reject(
                FailureReason.RESERVATION_NOT_FOUND,
                f"Reservation not found: {reservation_id}",
                {"reservation_id": reservation_id, "action": "confirm"},
            )

        # Another request for the same dates may have been confirmed since this one was created.
        conflicts = [
            other for other in reservation.plot.get_conflicting_reservations(reservation.date_range) if other != reservation
        ]
        if conflicts:
            return self._reject(
                FailureReason.PLOT_UNAVAILABLE,
                "Plot is no longer available for the requested dates.",
                {"reservation_id": reservation_id, "action": "confirm"},
                reservation,
            )

        result = self._transition(reservation, ReservationStatus.CONFIRMED, "confirm")
        if result.ok:
            reservation.plot.assign(reservation.gardener)
        return result

    def cancel_reservation(self, reservation_id: str) -> BookingResult:
        return self._finish(reservation_id, ReservationStatus.CANCELLED, "cancel")

    def complete_reservation(self, reservation_id: str) -> BookingResult:
        return self._finish(reservation_id, ReservationStatus.COMPLETED, "complete")

    def book_plot(
        self,
        plot_id: str,
        gardener_id: str,
        date_range: DateRange | None,
        crops: Iterable[Crop] | None = None,
    ) -> BookingResult:
        """Create and confirm in one call.

        A failed confirmation leaves the created reservation in REQUESTED; the
        returned failure still carries it so the caller can retry or cancel.
        """
        created = self.create_reservation(plot_id, gardener_id, date_range, crops)
        if not created.ok:
            return created
        return self.confirm_reservation(created.reservation.reservation_id)

    def _finish(self, reservation_id: str, target: ReservationStatus, action: str) -> BookingResult:
        reservation = self.find_reservation_by_id(reservation_id)
        if reservation is None:
            return self._reject(
                FailureReason.RESERVATION_NOT_FOUND,
                f"Reservation not found: {reservation_id}",
                {"reservation_id": reservation_id, "action": action},
            )

        held_plot = reservation.is_confirmed and reservation.plot.current_gardener_id == reservation.gardener.gardener_id
        result = self._transition(reservation, target, action)
        if result.ok and held_plot:
            reservation.plot.release()
        return result

    def _transition(self, reservation: Reservation, target: ReservationStatus, action: str) -> BookingResult:
        try:
            reservation.transition_to(target)
        except IllegalStateTransition as error:
            return self._reject(
                FailureReason.ILLEGAL_TRANSITION,
                str(error),
                {"reservation_id": reservation.reservation_id, "action": action},
                reservation,
            )

        self._log_event(
            f"RESERVATION_{target.value.upper()}",
            {"reservation_id": reservation.reservation_id, "plot_id": reservation.plot.plot_id},
        )
        return BookingResult.success(reservation)

    def _peek_reservation_id(self) -> str:
        return f"R{self._reservation_counter + 1:04d}"

    def find_reservation_by_id(self, reservation_id: str | None) -> Reservation | None:
        if reservation_id is None:
            return None
        return self._reservations.get(reservation_id)

    def get_active_reservations(self) -> list[Reservation]:
        return [reservation for reservation in self._reservations.values() if reservation.is_active]

    def get_reservations_for_gardener(self, gardener_id: str) -> list[Reservation]:
        gardener = self.find_gardener_by_id(gardener_id)
        return gardener.get_reservations() if gardener is not None else []

    def get_reservations_for_plot(self, plot_id: str) -> list[Reservation]:
        plot = self.find_plot_by_id(plot_id)
        return plot.get_reservations() if plot is not None else []

    def recent_closed_reservations(self, limit: int = 5) -> list[Reservation]:
        closed = [reservation for reservation in self._reservations.values() if reservation.status.is_terminal]
        return list(reversed(closed))[:limit]

    def summary(self) -> dict[str, int]:
        return {
            "plots": len(self._plots),
            "gardeners": len(self._gardeners),
            "crops": len(self._crops),
            "reservations": len(self._reservations),
            "active_reservations": len(self.get_active_reservations()),
        }

    def availability_overview(self, today: date | None = None) -> list[dict[str, Any]]:
        effective_today = today or self.today()
        overview: list[dict[str, Any]] = []
        for plot in self._plots.values():
            row = plot.to_dict(effective_today)
            row["reservations"] = [
                {
                    "reservation_id": reservation.reservation_id,
                    "start": reservation.date_range.start.isoformat(),
                    "end": reservation.date_range.end.isoformat(),
                    "status": reservation.status.value,
                }
                for reservation in plot.get_active_reservations()
            ]
            overview.append(row)
        return overview
