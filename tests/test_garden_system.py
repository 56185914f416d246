import unittest
from datetime import date, datetime

from garden_manager import (
    BookingResult,
    Crop,
    DateRange,
    FailureReason,
    Gardener,
    GardenPlot,
    GardenSystem,
    ReservationStatus,
)

NOW = datetime(2026, 4, 15, 9, 0)


def _build_system(**kwargs) -> GardenSystem:
    system = GardenSystem(clock=lambda: NOW, **kwargs)
    herb_plot = GardenPlot("P1", "Herb Garden", 15.0, "South Section")
    herb_plot.add_allowed_crop("basil")
    system.add_plot(herb_plot)
    system.add_plot(GardenPlot("P2", "Vegetable Patch", 40.0, "West Section"))
    system.register_gardener(Gardener("G1", "Akua Oduro"))
    system.register_gardener(Gardener("G2", "Nana Mensah"))
    return system


class TestCatalog(unittest.TestCase):
    def test_duplicates_are_rejected(self) -> None:
        system = _build_system()
        self.assertFalse(system.add_plot(GardenPlot("P1", "Another")))
        self.assertFalse(system.add_plot(None))
        self.assertFalse(system.register_gardener(Gardener("G1", "Someone")))
        self.assertFalse(system.register_gardener(None))
        self.assertEqual(len(system.plots), 2)
        self.assertEqual(len(system.gardeners), 2)

    def test_crop_catalog_lookup_is_case_insensitive(self) -> None:
        system = _build_system()
        self.assertTrue(system.add_crop(Crop("Basil", 60)))
        self.assertFalse(system.add_crop(Crop("BASIL")))
        self.assertEqual(system.find_crop(" basil ").min_growing_days, 60)
        self.assertIsNone(system.find_crop("kale"))

    def test_register_new_gardener_allocates_next_free_id(self) -> None:
        system = GardenSystem(clock=lambda: NOW)
        system.register_gardener(Gardener("G002", "Existing"))
        first = system.register_new_gardener("Alice", email="alice@example.com")
        second = system.register_new_gardener("Bob")
        self.assertEqual(first.gardener_id, "G003")
        self.assertEqual(second.gardener_id, "G004")
        self.assertIs(system.find_gardener_by_id("G003"), first)
        with self.assertRaises(ValueError):
            system.register_new_gardener(" ")

    def test_lookups_return_none_for_unknown_ids(self) -> None:
        system = _build_system()
        self.assertIsNone(system.find_plot_by_id("P9"))
        self.assertIsNone(system.find_plot_by_id(None))
        self.assertIsNone(system.find_gardener_by_id(None))
        self.assertIsNone(system.find_reservation_by_id("R9999"))
        self.assertEqual(system.get_reservations_for_plot("P9"), [])
        self.assertEqual(system.get_reservations_for_gardener("G9"), [])

    def test_quota_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            GardenSystem(max_active_reservations=0)


class TestCreateReservation(unittest.TestCase):
    def setUp(self) -> None:
        self.system = _build_system()
        self.season = DateRange(date(2026, 5, 1), date(2026, 5, 31))

    def test_missing_details_are_rejected(self) -> None:
        result = self.system.create_reservation("P2", "G1", None)
        self.assertFalse(result.ok)
        self.assertIs(result.reason, FailureReason.INVALID_REQUEST)
        self.assertIsNone(result.reservation)

    def test_unknown_plot_and_gardener(self) -> None:
        self.assertIs(self.system.create_reservation("P9", "G1", self.season).reason, FailureReason.PLOT_NOT_FOUND)
        self.assertIs(self.system.create_reservation("P2", "G9", self.season).reason, FailureReason.GARDENER_NOT_FOUND)

    def test_success_registers_everywhere(self) -> None:
        result = self.system.create_reservation("P2", "G1", self.season, [Crop("Tomato")])
        self.assertTrue(result.ok)
        reservation = result.reservation
        self.assertEqual(reservation.reservation_id, "R0001")
        self.assertIs(reservation.status, ReservationStatus.REQUESTED)
        self.assertIs(self.system.find_reservation_by_id("R0001"), reservation)
        self.assertEqual(self.system.get_reservations_for_plot("P2"), [reservation])
        self.assertEqual(self.system.get_reservations_for_gardener("G1"), [reservation])
        self.assertTrue(self.system.find_gardener_by_id("G1").has_reservation_for_plot("P2"))

    def test_none_crops_are_dropped(self) -> None:
        result = self.system.create_reservation("P2", "G1", self.season, [None, Crop("Tomato"), None])
        self.assertTrue(result.ok)
        self.assertEqual(result.reservation.crops, [Crop("Tomato")])
        self.assertEqual(self.system.events[-1]["payload"]["crops"], ["Tomato"])

    def test_rejection_registers_nothing(self) -> None:
        result = self.system.create_reservation("P1", "G1", self.season, [Crop("Tomato")])
        self.assertIs(result.reason, FailureReason.CROP_NOT_ALLOWED)
        self.assertEqual(self.system.reservations, [])
        self.assertEqual(self.system.find_plot_by_id("P1").reservation_ids, [])
        self.assertEqual(self.system.find_gardener_by_id("G1").reservation_ids, [])

    def test_ids_are_sequential_and_skip_failures(self) -> None:
        first = self.system.create_reservation("P2", "G1", self.season)
        self.system.create_reservation("P9", "G1", self.season)
        second = self.system.create_reservation("P1", "G2", self.season)
        self.assertEqual(first.reservation.reservation_id, "R0001")
        self.assertEqual(second.reservation.reservation_id, "R0002")

    def test_counters_are_per_instance(self) -> None:
        other = _build_system()
        self.system.create_reservation("P2", "G1", self.season)
        result = other.create_reservation("P2", "G1", self.season)
        self.assertEqual(result.reservation.reservation_id, "R0001")

    def test_pending_reservation_does_not_block_creation(self) -> None:
        first = self.system.create_reservation("P2", "G1", self.season)
        second = self.system.create_reservation("P2", "G2", self.season)
        self.assertTrue(first.ok)
        self.assertTrue(second.ok)
        self.assertEqual(self.system.find_plot_by_id("P2").get_conflicting_reservations(self.season), [])

    def test_quota_counts_only_active_reservations(self) -> None:
        ids = []
        for month in (5, 6, 7):
            result = self.system.create_reservation("P2", "G1", DateRange(date(2026, month, 1), date(2026, month, 10)))
            self.assertTrue(result.ok)
            ids.append(result.reservation.reservation_id)

        rejected = self.system.create_reservation("P2", "G1", DateRange(date(2026, 8, 1), date(2026, 8, 10)))
        self.assertIs(rejected.reason, FailureReason.QUOTA_EXCEEDED)

        self.assertTrue(self.system.cancel_reservation(ids[0]).ok)
        accepted = self.system.create_reservation("P2", "G1", DateRange(date(2026, 8, 1), date(2026, 8, 10)))
        self.assertTrue(accepted.ok)

        self.assertTrue(self.system.confirm_reservation(ids[1]).ok)
        self.assertTrue(self.system.complete_reservation(ids[1]).ok)
        self.assertTrue(self.system.create_reservation("P2", "G1", DateRange(date(2026, 9, 1), date(2026, 9, 10))).ok)

    def test_quota_is_configurable(self) -> None:
        system = _build_system(max_active_reservations=1)
        self.assertTrue(system.create_reservation("P2", "G1", self.season).ok)
        self.assertIs(system.create_reservation("P1", "G1", self.season).reason, FailureReason.QUOTA_EXCEEDED)

    def test_growing_period_check_is_opt_in(self) -> None:
        tomato = Crop("Tomato", 90)
        lenient = self.system.create_reservation("P2", "G1", self.season, [tomato])
        self.assertTrue(lenient.ok)
        self.assertTrue(lenient.reservation.crops_allowed_on_plot())
        self.assertFalse(lenient.reservation.growing_period_sufficient())

        strict = _build_system(require_growing_period=True)
        result = strict.create_reservation("P2", "G1", self.season, [tomato])
        self.assertIs(result.reason, FailureReason.GROWING_PERIOD_TOO_SHORT)


class TestStatusChanges(unittest.TestCase):
    def setUp(self) -> None:
        self.system = _build_system()
        self.season = DateRange(date(2026, 4, 1), date(2026, 6, 30))

    def test_end_to_end_basil_scenario(self) -> None:
        rejected = self.system.create_reservation("P1", "G1", self.season, [Crop("tomato")])
        self.assertFalse(rejected.ok)
        self.assertIs(rejected.reason, FailureReason.CROP_NOT_ALLOWED)

        created = self.system.create_reservation("P1", "G1", self.season, [Crop("basil")])
        self.assertTrue(created.ok)
        self.assertIs(created.reservation.status, ReservationStatus.REQUESTED)

        reservation_id = created.reservation.reservation_id
        self.assertTrue(self.system.confirm_reservation(reservation_id).ok)
        self.assertIs(created.reservation.status, ReservationStatus.CONFIRMED)
        plot = self.system.find_plot_by_id("P1")
        self.assertFalse(plot.is_available(self.season))
        self.assertEqual(plot.get_conflicting_reservations(self.season), [created.reservation])

        overlapping = DateRange(date(2026, 6, 30), date(2026, 7, 31))
        second = self.system.create_reservation("P1", "G2", overlapping, [Crop("Basil")])
        self.assertIs(second.reason, FailureReason.PLOT_UNAVAILABLE)

        self.assertTrue(self.system.cancel_reservation(reservation_id).ok)
        self.assertTrue(plot.is_available(self.season))

    def test_confirm_rechecks_availability(self) -> None:
        first = self.system.create_reservation("P2", "G1", self.season)
        second = self.system.create_reservation("P2", "G2", DateRange(date(2026, 6, 1), date(2026, 8, 31)))
        self.assertTrue(first.ok and second.ok)

        self.assertTrue(self.system.confirm_reservation(first.reservation.reservation_id).ok)
        losing = self.system.confirm_reservation(second.reservation.reservation_id)
        self.assertFalse(losing.ok)
        self.assertIs(losing.reason, FailureReason.PLOT_UNAVAILABLE)
        self.assertIs(second.reservation.status, ReservationStatus.REQUESTED)

    def test_confirm_sets_and_finish_clears_display_occupant(self) -> None:
        created = self.system.create_reservation("P2", "G1", self.season)
        plot = self.system.find_plot_by_id("P2")
        self.assertIsNone(plot.current_gardener_id)

        self.system.confirm_reservation(created.reservation.reservation_id)
        self.assertEqual(plot.current_gardener_id, "G1")
        self.assertTrue(plot.is_currently_occupied(date(2026, 4, 15)))

        self.system.complete_reservation(created.reservation.reservation_id)
        self.assertIsNone(plot.current_gardener_id)
        self.assertFalse(plot.is_currently_occupied(date(2026, 4, 15)))

    def test_registered_plot_uses_system_clock_for_today(self) -> None:
        booked = self.system.book_plot("P1", "G1", self.season)
        self.assertTrue(booked.ok)
        plot = self.system.find_plot_by_id("P1")

        self.assertTrue(plot.is_currently_occupied())
        self.assertTrue(plot.to_dict()["currently_occupied"])
        self.assertFalse(plot.is_currently_occupied(date(2026, 7, 1)))

        later = GardenSystem(clock=lambda: datetime(2026, 9, 1, 9, 0))
        autumn_plot = GardenPlot("P9")
        later.add_plot(autumn_plot)
        later.register_gardener(Gardener("G9", "Esi"))
        self.assertTrue(later.book_plot("P9", "G9", self.season).ok)
        self.assertFalse(autumn_plot.is_currently_occupied())

    def test_cancelling_pending_request_keeps_display_occupant(self) -> None:
        self.assertTrue(self.system.book_plot("P2", "G1", self.season).ok)
        pending = self.system.create_reservation("P2", "G2", DateRange(date(2026, 7, 1), date(2026, 7, 31)))
        self.assertTrue(pending.ok)

        self.assertTrue(self.system.cancel_reservation(pending.reservation.reservation_id).ok)

        row = next(row for row in self.system.availability_overview() if row["plot_id"] == "P2")
        self.assertEqual(row["current_gardener_id"], "G1")
        self.assertTrue(row["currently_occupied"])

    def test_illegal_transitions_become_failure_results(self) -> None:
        created = self.system.create_reservation("P2", "G1", self.season)
        reservation_id = created.reservation.reservation_id

        premature = self.system.complete_reservation(reservation_id)
        self.assertIs(premature.reason, FailureReason.ILLEGAL_TRANSITION)
        self.assertIs(created.reservation.status, ReservationStatus.REQUESTED)

        self.assertTrue(self.system.confirm_reservation(reservation_id).ok)
        again = self.system.confirm_reservation(reservation_id)
        self.assertIs(again.reason, FailureReason.ILLEGAL_TRANSITION)

        self.assertTrue(self.system.cancel_reservation(reservation_id).ok)
        for action in (self.system.confirm_reservation, self.system.cancel_reservation, self.system.complete_reservation):
            result = action(reservation_id)
            self.assertIs(result.reason, FailureReason.ILLEGAL_TRANSITION)
            self.assertIs(created.reservation.status, ReservationStatus.CANCELLED)

    def test_unknown_reservation_is_not_found(self) -> None:
        for action in (self.system.confirm_reservation, self.system.cancel_reservation, self.system.complete_reservation):
            self.assertIs(action("R9999").reason, FailureReason.RESERVATION_NOT_FOUND)

    def test_book_plot_confirms(self) -> None:
        result = self.system.book_plot("P1", "G1", self.season, [Crop("Basil")])
        self.assertTrue(result.ok)
        self.assertIs(result.reservation.status, ReservationStatus.CONFIRMED)

    def test_book_plot_rejected_at_create_when_plot_taken(self) -> None:
        pending = self.system.create_reservation("P2", "G1", self.season)
        booked = self.system.book_plot("P2", "G2", self.season)
        self.assertTrue(booked.ok)

        losing = self.system.book_plot("P2", "G1", self.season)
        self.assertIs(losing.reason, FailureReason.PLOT_UNAVAILABLE)
        self.assertIsNone(losing.reservation)

        late = self.system.confirm_reservation(pending.reservation.reservation_id)
        self.assertIs(late.reason, FailureReason.PLOT_UNAVAILABLE)
        self.assertIs(pending.reservation.status, ReservationStatus.REQUESTED)

    def test_book_plot_keeps_created_reservation_on_confirm_failure(self) -> None:
        system = _build_system()
        real_confirm = system.confirm_reservation

        def failing_confirm(reservation_id: str) -> BookingResult:
            reservation = system.find_reservation_by_id(reservation_id)
            return BookingResult.failure(FailureReason.PLOT_UNAVAILABLE, "taken", reservation)

        system.confirm_reservation = failing_confirm
        result = system.book_plot("P2", "G1", self.season)
        system.confirm_reservation = real_confirm

        self.assertFalse(result.ok)
        self.assertIs(result.reservation.status, ReservationStatus.REQUESTED)
        self.assertEqual(len(system.get_active_reservations()), 1)


class TestQueriesAndRemoval(unittest.TestCase):
    def setUp(self) -> None:
        self.system = _build_system()
        self.season = DateRange(date(2026, 4, 1), date(2026, 6, 30))

    def test_find_available_plots_with_crop_filter(self) -> None:
        self.assertEqual([plot.plot_id for plot in self.system.find_available_plots(self.season)], ["P1", "P2"])
        self.assertEqual([plot.plot_id for plot in self.system.find_available_plots(self.season, Crop("Tomato"))], ["P2"])
        self.assertEqual([plot.plot_id for plot in self.system.find_available_plots(self.season, "BASIL")], ["P1", "P2"])
        self.assertEqual(self.system.find_available_plots(None), [])

        self.system.book_plot("P2", "G1", self.season)
        self.assertEqual([plot.plot_id for plot in self.system.find_available_plots(self.season)], ["P1"])
        self.assertFalse(self.system.is_plot_available("P2", self.season))
        self.assertTrue(self.system.is_plot_available("P2", DateRange(date(2026, 7, 1), date(2026, 7, 31))))
        self.assertFalse(self.system.is_plot_available("P9", self.season))

    def test_removal_blocked_while_active(self) -> None:
        created = self.system.create_reservation("P2", "G1", self.season)
        self.assertFalse(self.system.remove_plot("P2"))
        self.assertFalse(self.system.remove_gardener("G1"))

        self.system.cancel_reservation(created.reservation.reservation_id)
        self.assertTrue(self.system.remove_plot("P2"))
        self.assertTrue(self.system.remove_gardener("G1"))
        self.assertFalse(self.system.remove_plot("P2"))
        self.assertIs(self.system.find_reservation_by_id(created.reservation.reservation_id), created.reservation)

    def test_summary_and_overview(self) -> None:
        booked = self.system.book_plot("P2", "G1", self.season)
        cancelled = self.system.create_reservation("P1", "G2", self.season)
        self.system.cancel_reservation(cancelled.reservation.reservation_id)

        self.assertEqual(
            self.system.summary(),
            {"plots": 2, "gardeners": 2, "crops": 0, "reservations": 2, "active_reservations": 1},
        )
        self.assertEqual(self.system.recent_closed_reservations(), [cancelled.reservation])

        overview = {row["plot_id"]: row for row in self.system.availability_overview()}
        self.assertTrue(overview["P2"]["currently_occupied"])
        self.assertEqual(overview["P2"]["current_gardener_id"], "G1")
        self.assertEqual(overview["P2"]["reservations"][0]["reservation_id"], booked.reservation.reservation_id)
        self.assertFalse(overview["P1"]["currently_occupied"])
        self.assertEqual(overview["P1"]["reservations"], [])

    def test_event_log_records_mutations_and_rejections(self) -> None:
        created = self.system.create_reservation("P2", "G1", self.season)
        self.system.confirm_reservation(created.reservation.reservation_id)
        self.system.create_reservation("P9", "G1", self.season)

        event_types = [event["event_type"] for event in self.system.events]
        self.assertEqual(event_types[:4], ["PLOT_ADDED", "PLOT_ADDED", "GARDENER_REGISTERED", "GARDENER_REGISTERED"])
        self.assertIn("RESERVATION_CREATED", event_types)
        self.assertIn("RESERVATION_CONFIRMED", event_types)
        self.assertEqual(self.system.events[-1]["event_type"], "RESERVATION_REJECTED")
        self.assertEqual(self.system.events[-1]["payload"]["reason"], "plot_not_found")
        self.assertEqual(self.system.events[-1]["event_time"], "2026-04-15T09:00:00")

    def test_result_to_dict(self) -> None:
        failure = self.system.create_reservation("P9", "G1", self.season).to_dict()
        self.assertEqual(failure["ok"], False)
        self.assertEqual(failure["reason"], "plot_not_found")
        self.assertNotIn("reservation", failure)

        success = self.system.create_reservation("P2", "G1", self.season).to_dict()
        self.assertEqual(success["reservation"]["status"], "requested")
        self.assertNotIn("reason", success)


if __name__ == "__main__":
    unittest.main()
