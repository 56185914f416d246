from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from .booking import DateRange, can_reserve

if TYPE_CHECKING:
    from .reservation import Reservation


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


@dataclass(frozen=True, eq=False)
class Crop:
    """A plantable crop.

    Identity is the lower-cased name: ``Crop("Basil")`` and ``Crop("basil")``
    are the same crop for equality, hashing and plot allow-lists.
    """

    name: str
    min_growing_days: int = 0
    best_seasons: frozenset[Season] = field(default_factory=frozenset)
    description: str = ""

    def __post_init__(self) -> None:
        if self.name is None or not str(self.name).strip():
            raise ValueError("Crop name cannot be empty.")
        if self.min_growing_days < 0:
            raise ValueError("Minimum growing days cannot be negative.")
        object.__setattr__(self, "name", str(self.name).strip())
        object.__setattr__(self, "best_seasons", frozenset(Season(season) for season in self.best_seasons or ()))
        object.__setattr__(self, "description", (self.description or "").strip())

    @property
    def key(self) -> str:
        return self.name.lower()

    def can_grow_in(self, date_range: DateRange | None) -> bool:
        if date_range is None:
            return False
        return date_range.length_in_days() >= self.min_growing_days

    def is_good_season(self, season: Season) -> bool:
        return season in self.best_seasons

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "min_growing_days": self.min_growing_days,
            "best_seasons": sorted(season.value for season in self.best_seasons),
            "description": self.description,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Crop):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.name


def _normalize_id(value: str | None, label: str) -> str:
    if value is None:
        raise ValueError(f"{label} cannot be None.")

    normalized = str(value).strip()
    if not normalized:
        raise ValueError(f"{label} cannot be empty.")
    return normalized


class _ReservationHolder:
    """Shared bookkeeping for entities that track reservations by ID.

    The reservations themselves live in the ``GardenSystem`` ledger; the holder
    keeps only IDs and resolves them through the ledger bound on registration.
    The system's clock is bound alongside, so date queries called without an
    explicit day use the same "today" as the rest of the system.
    """

    def __init__(self) -> None:
        self._reservation_ids: list[str] = []
        self._ledger: Mapping[str, Reservation] = {}
        self._today_provider: Callable[[], date] = date.today

    def _bind_ledger(self, ledger: Mapping[str, Reservation], today_provider: Callable[[], date] | None = None) -> None:
        self._ledger = ledger
        if today_provider is not None:
            self._today_provider = today_provider

    def _today(self, today: date | None) -> date:
        return today or self._today_provider()

    def _add_reservation(self, reservation_id: str) -> None:
        if reservation_id and reservation_id not in self._reservation_ids:
            self._reservation_ids.append(reservation_id)

    def _remove_reservation(self, reservation_id: str) -> None:
        if reservation_id in self._reservation_ids:
            self._reservation_ids.remove(reservation_id)

    @property
    def reservation_ids(self) -> list[str]:
        return list(self._reservation_ids)

    def get_reservations(self) -> list[Reservation]:
        return [self._ledger[reservation_id] for reservation_id in self._reservation_ids if reservation_id in self._ledger]

    def get_active_reservations(self) -> list[Reservation]:
        return [reservation for reservation in self.get_reservations() if reservation.status.is_active]


class GardenPlot(_ReservationHolder):
    def __init__(
        self,
        plot_id: str,
        name: str | None = None,
        size_sq_meters: float = 0,
        location: str | None = None,
        allowed_crops: Iterable[str] = (),
    ) -> None:
        super().__init__()
        self.plot_id = _normalize_id(plot_id, "Plot ID")
        self._name = (name.strip() if name is not None else "") or self.plot_id
        self._size_sq_meters = max(0.0, float(size_sq_meters))
        self.location = location
        # Empty means every crop is allowed.
        self._allowed_crops: set[str] = set()
        for crop_name in allowed_crops:
            self.add_allowed_crop(crop_name)
        self.current_gardener_id: str | None = None

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str | None) -> None:
        if value is not None and value.strip():
            self._name = value.strip()

    @property
    def size_sq_meters(self) -> float:
        return self._size_sq_meters

    @size_sq_meters.setter
    def size_sq_meters(self, value: float) -> None:
        self._size_sq_meters = max(0.0, float(value))

    @property
    def allowed_crops(self) -> frozenset[str]:
        return frozenset(self._allowed_crops)

    def add_allowed_crop(self, crop_name: str | None) -> None:
        if crop_name is not None and crop_name.strip():
            self._allowed_crops.add(crop_name.strip().lower())

    def remove_allowed_crop(self, crop_name: str | None) -> None:
        if crop_name is not None:
            self._allowed_crops.discard(crop_name.strip().lower())

    def clear_crop_restrictions(self) -> None:
        self._allowed_crops.clear()

    def is_crop_allowed(self, crop: Crop | str | None) -> bool:
        if crop is None:
            return False
        if not self._allowed_crops:
            return True

        crop_name = crop.name if isinstance(crop, Crop) else str(crop)
        return crop_name.strip().lower() in self._allowed_crops

    def is_available(self, date_range: DateRange | None) -> bool:
        if date_range is None:
            return False
        occupied = [reservation.date_range for reservation in self.get_reservations() if reservation.status.occupies_plot]
        return can_reserve(date_range, occupied)

    def get_conflicting_reservations(self, date_range: DateRange | None) -> list[Reservation]:
        if date_range is None:
            return []
        return [reservation for reservation in self.get_reservations() if reservation.conflicts_with(date_range)]

    def is_currently_occupied(self, today: date | None = None) -> bool:
        current_day = self._today(today)
        for reservation in self.get_reservations():
            if reservation.status.occupies_plot and reservation.date_range.is_currently_active(current_day):
                return True
        return False

    def assign(self, gardener: Gardener) -> None:
        """Set the display occupant.

        Only ``GardenSystem`` writes this: on confirm, and cleared again when
        the reservation that set it is cancelled or completed.
        """
        self.current_gardener_id = gardener.gardener_id

    def release(self) -> None:
        self.current_gardener_id = None

    def to_dict(self, today: date | None = None) -> dict[str, Any]:
        return {
            "plot_id": self.plot_id,
            "name": self.name,
            "size_sq_meters": self.size_sq_meters,
            "location": self.location,
            "allowed_crops": sorted(self._allowed_crops),
            "current_gardener_id": self.current_gardener_id,
            "currently_occupied": self.is_currently_occupied(today),
            "active_reservations": len(self.get_active_reservations()),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GardenPlot):
            return NotImplemented
        return self.plot_id == other.plot_id

    def __hash__(self) -> int:
        return hash(self.plot_id)

    def __repr__(self) -> str:
        return f"GardenPlot(plot_id={self.plot_id!r}, name={self.name!r}, size_sq_meters={self.size_sq_meters})"


class Gardener(_ReservationHolder):
    def __init__(
        self,
        gardener_id: str,
        name: str | None = "Unknown",
        email: str | None = None,
        phone_number: str | None = None,
    ) -> None:
        super().__init__()
        self.gardener_id = _normalize_id(gardener_id, "Gardener ID")
        self._name = name.strip() if name is not None else "Unknown"
        self.email = email
        self.phone_number = phone_number

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str | None) -> None:
        if value is not None:
            self._name = value.strip()

    def active_reservation_count(self) -> int:
        return len(self.get_active_reservations())

    def has_active_reservations(self) -> bool:
        return bool(self.get_active_reservations())

    def has_reservation_for_plot(self, plot_id: str) -> bool:
        return any(reservation.plot.plot_id == plot_id for reservation in self.get_active_reservations())

    def to_dict(self) -> dict[str, Any]:
        return {
            "gardener_id": self.gardener_id,
            "name": self.name,
            "email": self.email,
            "phone_number": self.phone_number,
            "active_reservations": self.active_reservation_count(),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Gardener):
            return NotImplemented
        return self.gardener_id == other.gardener_id

    def __hash__(self) -> int:
        return hash(self.gardener_id)

    def __repr__(self) -> str:
        return f"Gardener(gardener_id={self.gardener_id!r}, name={self.name!r})"
