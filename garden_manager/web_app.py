from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request

from .booking import DateRange, InvalidRangeError
from .catalog import Crop
from .garden_system import DEFAULT_MAX_ACTIVE_RESERVATIONS, BookingResult, FailureReason, GardenSystem
from .natural_language import can_book_from_text, parse_booking_request, parse_date
from .yaml_store import load_catalog, seed_system

_NOT_FOUND_REASONS = {
    FailureReason.PLOT_NOT_FOUND,
    FailureReason.GARDENER_NOT_FOUND,
    FailureReason.RESERVATION_NOT_FOUND,
}
_CONFLICT_REASONS = {
    FailureReason.PLOT_UNAVAILABLE,
    FailureReason.ILLEGAL_TRANSITION,
    FailureReason.QUOTA_EXCEEDED,
}


def create_app(
    seed_file: str | Path | None = None,
    now_provider: Callable[[], datetime] | None = None,
    max_active_reservations: int = DEFAULT_MAX_ACTIVE_RESERVATIONS,
    system: GardenSystem | None = None,
) -> Flask:
    app = Flask(__name__)
    clock: Callable[[], datetime] = now_provider or datetime.now
    if system is None:
        system = GardenSystem(max_active_reservations=max_active_reservations, clock=clock)
        seed_system(system, load_catalog(seed_file) if seed_file is not None else None)
    # GardenSystem is single-writer; every route holds this lock for its whole call.
    lock = threading.Lock()
    app.config["GARDEN_SYSTEM"] = system

    def _result_response(result: BookingResult, success_status: int = 200) -> Any:
        if result.ok:
            return jsonify(result.to_dict()), success_status
        return jsonify(result.to_dict()), _status_for(result.reason)

    def _error(message: str, status: int = 400) -> Any:
        return jsonify({"ok": False, "message": message}), status

    def _resolve_crops(names: list[str]) -> tuple[list[Crop], list[str]]:
        resolved: list[Crop] = []
        unknown: list[str] = []
        for name in names:
            crop = system.find_crop(name)
            if crop is None:
                unknown.append(name)
            else:
                resolved.append(crop)
        return resolved, unknown

    def _read_booking_payload() -> tuple[str, str, DateRange, list[Crop]]:
        payload = request.get_json(silent=True) or {}
        plot_id = str(payload.get("plot_id", "")).strip()
        gardener_id = str(payload.get("gardener_id", "")).strip()
        if not plot_id or not gardener_id:
            raise ValueError("plot_id and gardener_id are required.")

        date_range = _parse_range(str(payload.get("start", "")), str(payload.get("end", "")))
        crop_names = [str(value).strip() for value in payload.get("crops", []) if str(value).strip()]
        crops, unknown = _resolve_crops(crop_names)
        if unknown:
            raise ValueError(f"Unknown crops: {', '.join(unknown)}")
        return plot_id, gardener_id, date_range, crops

    @app.get("/api/plots")
    def list_plots() -> Any:
        start_text = request.args.get("start")
        end_text = request.args.get("end")
        crop_name = request.args.get("crop")

        with lock:
            if start_text or end_text:
                try:
                    date_range = _parse_range(str(start_text or ""), str(end_text or ""))
                except ValueError as error:
                    return _error(str(error))
                plots = system.find_available_plots(date_range, crop_name)
                today = system.today()
                return jsonify(
                    {
                        "ok": True,
                        "date_range": date_range.to_dict(),
                        "plots": [plot.to_dict(today) for plot in plots],
                    }
                )

            return jsonify({"ok": True, "plots": system.availability_overview()})

    @app.get("/api/plots/<plot_id>")
    def get_plot(plot_id: str) -> Any:
        with lock:
            plot = system.find_plot_by_id(plot_id)
            if plot is None:
                return _error(f"Plot not found: {plot_id}", 404)

            payload = plot.to_dict(system.today())
            payload["reservations"] = [reservation.to_dict() for reservation in plot.get_reservations()]
            return jsonify({"ok": True, "plot": payload})

    @app.get("/api/crops")
    def list_crops() -> Any:
        with lock:
            return jsonify({"ok": True, "crops": [crop.to_dict() for crop in system.crops]})

    @app.post("/api/gardeners")
    def register_gardener() -> Any:
        payload = request.get_json(silent=True) or {}
        name = str(payload.get("name", "")).strip()
        if not name:
            return _error("name is required.")

        with lock:
            gardener = system.register_new_gardener(
                name,
                email=(str(payload["email"]).strip() or None) if payload.get("email") else None,
                phone_number=(str(payload["phone_number"]).strip() or None) if payload.get("phone_number") else None,
            )
            return jsonify({"ok": True, "gardener": gardener.to_dict()}), 201

    @app.get("/api/gardeners/<gardener_id>/reservations")
    def list_gardener_reservations(gardener_id: str) -> Any:
        with lock:
            gardener = system.find_gardener_by_id(gardener_id)
            if gardener is None:
                return _error(f"Gardener not found: {gardener_id}", 404)
            return jsonify(
                {
                    "ok": True,
                    "gardener": gardener.to_dict(),
                    "reservations": [reservation.to_dict() for reservation in gardener.get_reservations()],
                }
            )

    @app.post("/api/reservations")
    def create_reservation() -> Any:
        with lock:
            try:
                plot_id, gardener_id, date_range, crops = _read_booking_payload()
            except ValueError as error:
                return _error(str(error))
            return _result_response(system.create_reservation(plot_id, gardener_id, date_range, crops), 201)

    @app.post("/api/reservations/book")
    def book_plot() -> Any:
        with lock:
            try:
                plot_id, gardener_id, date_range, crops = _read_booking_payload()
            except ValueError as error:
                return _error(str(error))
            return _result_response(system.book_plot(plot_id, gardener_id, date_range, crops), 201)

    @app.post("/api/reservations/text")
    def create_reservation_from_text() -> Any:
        payload = request.get_json(silent=True) or {}
        text = str(payload.get("text", "")).strip()
        gardener_id = str(payload.get("gardener_id", "")).strip()
        if not text or not gardener_id:
            return _error("text and gardener_id are required.")

        try:
            parsed = parse_booking_request(text)
        except ValueError as error:
            return _error(str(error))
        if not parsed.plot_id:
            return _error("Could not determine plot from request text.")

        with lock:
            crops, unknown = _resolve_crops(parsed.crop_names)
            if unknown:
                return _error(f"Unknown crops: {', '.join(unknown)}")
            return _result_response(system.create_reservation(parsed.plot_id, gardener_id, parsed.date_range, crops), 201)

    @app.post("/api/reservations/text/check")
    def check_text_request() -> Any:
        payload = request.get_json(silent=True) or {}
        text = str(payload.get("text", "")).strip()
        if not text:
            return _error("text is required.")

        try:
            parsed = parse_booking_request(text)
        except ValueError as error:
            return _error(str(error))
        if not parsed.plot_id:
            return _error("Could not determine plot from request text.")

        with lock:
            plot = system.find_plot_by_id(parsed.plot_id)
            if plot is None:
                return _error(f"Plot not found: {parsed.plot_id}", 404)
            return jsonify(
                {
                    "ok": True,
                    "plot_id": plot.plot_id,
                    "date_range": parsed.date_range.to_dict(),
                    "crops": parsed.crop_names,
                    "bookable": can_book_from_text(text, plot),
                }
            )

    @app.get("/api/reservations/<reservation_id>")
    def get_reservation(reservation_id: str) -> Any:
        with lock:
            reservation = system.find_reservation_by_id(reservation_id)
            if reservation is None:
                return _error(f"Reservation not found: {reservation_id}", 404)
            return jsonify({"ok": True, "reservation": reservation.to_dict()})

    @app.post("/api/reservations/<reservation_id>/<action>")
    def change_reservation_status(reservation_id: str, action: str) -> Any:
        handlers = {
            "confirm": system.confirm_reservation,
            "cancel": system.cancel_reservation,
            "complete": system.complete_reservation,
        }
        handler = handlers.get(action)
        if handler is None:
            return _error(f"Unsupported action: {action}", 404)

        with lock:
            return _result_response(handler(reservation_id))

    @app.get("/api/summary")
    def get_summary() -> Any:
        with lock:
            return jsonify(
                {
                    "ok": True,
                    "summary": system.summary(),
                    "recent_closed": [reservation.to_dict() for reservation in system.recent_closed_reservations()],
                }
            )

    @app.get("/api/events")
    def list_events() -> Any:
        with lock:
            return jsonify({"ok": True, "events": list(system.events)})

    return app


def _parse_range(start_text: str, end_text: str) -> DateRange:
    if not start_text.strip() or not end_text.strip():
        raise ValueError("start and end dates are required (YYYY-MM-DD).")

    try:
        return DateRange(parse_date(start_text), parse_date(end_text))
    except InvalidRangeError as error:
        raise ValueError(str(error)) from error


def _status_for(reason: FailureReason | None) -> int:
    if reason in _NOT_FOUND_REASONS:
        return 404
    if reason in _CONFLICT_REASONS:
        return 409
    return 400
