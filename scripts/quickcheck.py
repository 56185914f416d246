from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
import traceback

from garden_manager import DateRange, Gardener, GardenSystem, seed_system, write_event_log


def main() -> int:
    print("[INFO] Garden Plot Reservation Quick Check")
    print("[INFO] Seeding catalog and running a booking round...")

    system = GardenSystem(clock=lambda: datetime(2026, 4, 1, 9, 0))
    counts = seed_system(system)
    print(f"[OK] Catalog seeded: {counts['plots']} plots, {counts['crops']} crops")

    system.register_gardener(Gardener("G001", "Akua Oduro", "akua@example.com"))
    system.register_gardener(Gardener("G002", "Nana Mensah", "nana@example.com"))

    season = DateRange(date(2026, 4, 1), date(2026, 6, 30))
    basil = system.find_crop("basil")

    first = system.book_plot("P003", "G001", season, [basil])
    print(f"[OK] First booking: {first.reservation.reservation_id} -> {first.reservation.status.value}")

    second = system.create_reservation("P003", "G002", season, [basil])
    print(f"[OK] Overlapping request rejected: {second.reason.value if second.reason else 'accepted'}")

    system.cancel_reservation(first.reservation.reservation_id)
    print(f"[OK] P003 available again after cancel: {system.is_plot_available('P003', season)}")

    log_path = write_event_log(system.events, Path("data/garden_events.yaml"))
    print(f"[OK] Event Log YAML: {log_path.resolve()}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
