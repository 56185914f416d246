import re
from dataclasses import dataclass
from datetime import date, datetime

from .booking import DateRange, InvalidRangeError
from .catalog import GardenPlot

_DATE_RE = re.compile(r"(?<!\d)(?P<date>\d{4}[/-]\d{1,2}[/-]\d{1,2})(?!\d)")
_RANGE_SEPARATOR_RE = re.compile(r"^\s*(~|to|until|through|-|–)\s*$", re.IGNORECASE)
_PLOT_ID_RE = re.compile(r"\b(?P<plot_id>P\d{3,})\b", re.IGNORECASE)
_FILLER_RE = re.compile(r"\b(book|reserve|plot|for|from|with|plant|planting|crops?|please|and)\b", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedBookingRequest:
    plot_id: str | None
    date_range: DateRange
    crop_names: list[str]
    raw_text: str


def parse_date(date_text: str) -> date:
    """Parse a ``YYYY-MM-DD`` date; ``/`` is accepted as the separator."""
    if date_text is None or not date_text.strip():
        raise ValueError("date must not be empty")

    normalized = date_text.strip().replace("/", "-")
    try:
        return datetime.strptime(normalized, "%Y-%m-%d").date()
    except ValueError as error:
        raise ValueError(f"Invalid date '{date_text}'. Expected format: YYYY-MM-DD") from error


def parse_date_range(text: str) -> DateRange:
    if not text or not text.strip():
        raise ValueError("text must not be empty")

    matches = list(_DATE_RE.finditer(text))
    if len(matches) < 2:
        raise ValueError("Could not find start/end date in text. Expected format: YYYY-MM-DD~YYYY-MM-DD")

    first, second = matches[0], matches[1]
    between = text[first.end() : second.start()]
    if between.strip() and not _RANGE_SEPARATOR_RE.match(between):
        raise ValueError("Start and end dates must be joined by '~', '-' or 'to'.")

    try:
        return DateRange(parse_date(first.group("date")), parse_date(second.group("date")))
    except InvalidRangeError as error:
        raise ValueError(str(error)) from error


def _extract_crop_names(remainder: str) -> list[str]:
    candidate = _FILLER_RE.sub(" ", remainder)
    names: list[str] = []
    for part in re.split(r"[,;]|\s+", candidate):
        name = part.strip(" .:")
        if name and name.lower() not in {existing.lower() for existing in names}:
            names.append(name)
    return names


def parse_booking_request(text: str) -> ParsedBookingRequest:
    """Parse requests like ``"book P003 2026-04-01~2026-06-30 basil, mint"``."""
    if not text or not text.strip():
        raise ValueError("text must not be empty")

    date_range = parse_date_range(text)
    date_matches = list(_DATE_RE.finditer(text))
    remainder = text[: date_matches[0].start()] + " " + text[date_matches[1].end() :]

    plot_match = _PLOT_ID_RE.search(remainder)
    plot_id = plot_match.group("plot_id").upper() if plot_match else None
    if plot_match:
        remainder = remainder.replace(plot_match.group(0), " ", 1)

    return ParsedBookingRequest(
        plot_id=plot_id,
        date_range=date_range,
        crop_names=_extract_crop_names(remainder),
        raw_text=text,
    )


def can_book_from_text(text: str, plot: GardenPlot) -> bool:
    parsed = parse_booking_request(text)
    return plot.is_available(parsed.date_range) and all(plot.is_crop_allowed(name) for name in parsed.crop_names)
