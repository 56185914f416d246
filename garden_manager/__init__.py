from .booking import DateRange, InvalidRangeError, can_reserve, has_date_overlap
from .catalog import Crop, Gardener, GardenPlot, Season
from .garden_system import DEFAULT_MAX_ACTIVE_RESERVATIONS, BookingResult, FailureReason, GardenSystem
from .natural_language import ParsedBookingRequest, can_book_from_text, parse_booking_request, parse_date, parse_date_range
from .reservation import IllegalStateTransition, Reservation, ReservationStatus
from .yaml_store import (
	DEFAULT_SEED,
	GardenStorageError,
	load_catalog,
	seed_system,
	write_event_log,
)

__all__ = [
	"DateRange",
	"InvalidRangeError",
	"can_reserve",
	"has_date_overlap",
	"Crop",
	"Gardener",
	"GardenPlot",
	"Season",
	"DEFAULT_MAX_ACTIVE_RESERVATIONS",
	"BookingResult",
	"FailureReason",
	"GardenSystem",
	"ParsedBookingRequest",
	"can_book_from_text",
	"parse_booking_request",
	"parse_date",
	"parse_date_range",
	"IllegalStateTransition",
	"Reservation",
	"ReservationStatus",
	"DEFAULT_SEED",
	"GardenStorageError",
	"load_catalog",
	"seed_system",
	"write_event_log",
]
