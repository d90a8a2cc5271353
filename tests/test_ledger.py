from datetime import timedelta

import pytest

from src.exceptions import (
    CapacityExhausted, DuplicateTrip, InconsistentRoute, InvalidTrip,
    SegmentNotFound, TripNotFound
)
from src.config import settings
from src.trips.schemas import TripUpdate, SegmentUpdate
from tests.utils import make_trip_spec, segment


@pytest.mark.unit
class TestCreateTrip:
    def test_derived_fields_come_from_the_ledger(self, ledger):
        trip = ledger.create(make_trip_spec(price=6000, total_seats=30))

        assert trip.id is not None
        assert trip.total_price == 6000
        assert trip.remaining_seats == 30
        assert trip.is_active is True
        assert trip.origin_key == "abidjan"

    def test_blank_company_falls_back_to_default(self, ledger):
        trip = ledger.create(make_trip_spec(company="   "))

        assert trip.company == settings.DEFAULT_COMPANY

    def test_segments_keep_their_order(self, trip):
        assert [(s.position, s.origin, s.destination, s.price) for s in trip.segments] == [
            (0, "Abidjan", "Tiassalé", 2000),
            (1, "Tiassalé", "Yamoussoukro", 3000),
        ]

    def test_same_origin_and_destination_is_rejected(self, ledger):
        with pytest.raises(InconsistentRoute):
            ledger.create(make_trip_spec(origin="Bouaké", destination="bouaké"))

    def test_missing_destination_is_rejected(self, ledger):
        with pytest.raises(InconsistentRoute):
            ledger.create(make_trip_spec(destination=None))

    def test_price_below_minimum_is_rejected(self, ledger):
        with pytest.raises(InvalidTrip):
            ledger.create(make_trip_spec(price=settings.MIN_TRIP_PRICE - 1))

    def test_missing_price_is_rejected(self, ledger):
        with pytest.raises(InvalidTrip):
            ledger.create(make_trip_spec(price=None))

    @pytest.mark.parametrize("seats", [settings.MIN_SEATS - 1, settings.MAX_SEATS + 1])
    def test_seat_count_outside_bounds_is_rejected(self, ledger, seats):
        with pytest.raises(InvalidTrip):
            ledger.create(make_trip_spec(total_seats=seats))

    def test_unknown_vehicle_type_is_rejected(self, ledger):
        with pytest.raises(InvalidTrip):
            ledger.create(make_trip_spec(vehicle_type="Train"))

    def test_vehicle_type_is_matched_case_insensitively(self, ledger):
        trip = ledger.create(make_trip_spec(vehicle_type="bus vip"))

        assert trip.vehicle_type == "Bus VIP"

    def test_cheap_segment_is_rejected(self, ledger):
        with pytest.raises(InvalidTrip):
            ledger.create(make_trip_spec(segments=[segment("Abidjan", "Tiassalé", 50)]))

    def test_segment_with_identical_endpoints_is_rejected(self, ledger):
        with pytest.raises(InconsistentRoute):
            ledger.create(make_trip_spec(segments=[segment("Tiassalé", "Tiassalé", 2000)]))


@pytest.mark.unit
class TestDuplicateTrips:
    def test_same_route_same_day_is_rejected(self, ledger, trip):
        # Given: an active trip Abidjan -> Yamoussoukro
        # When: another one is scheduled the same day, with different casing
        with pytest.raises(DuplicateTrip) as exc_info:
            ledger.create(make_trip_spec(origin="ABIDJAN", destination="yamoussoukro", departure_time="15:00"))

        # Then: the message names the route and the day
        assert trip.departure_date.strftime("%d/%m/%Y") in exc_info.value.message

    def test_same_route_next_day_is_accepted(self, ledger, trip):
        other = ledger.create(make_trip_spec(departure_date=trip.departure_date + timedelta(days=1)))

        assert other.id != trip.id

    def test_retired_trip_frees_the_slot(self, ledger, trip):
        ledger.deactivate(trip.id)

        replacement = ledger.create(make_trip_spec())

        assert replacement.is_active is True

    def test_moving_a_trip_onto_a_taken_day_is_rejected(self, ledger, trip):
        other = ledger.create(make_trip_spec(departure_date=trip.departure_date + timedelta(days=1)))

        with pytest.raises(DuplicateTrip):
            ledger.update(other.id, TripUpdate(departure_date=trip.departure_date))


@pytest.mark.unit
class TestUpdateTrip:
    def test_price_change_mirrors_total_price(self, ledger, trip):
        updated = ledger.update(trip.id, TripUpdate(price=7500))

        assert updated.price == 7500
        assert updated.total_price == 7500

    def test_shrinking_capacity_clamps_remaining(self, ledger, trip, allocator, passenger):
        # Given: 10 seats, 1 reserved
        allocator.reserve(trip.id, passenger.id, seat=1)

        # When: capacity is raised then shrunk
        raised = ledger.update(trip.id, TripUpdate(total_seats=20))
        assert raised.remaining_seats == 9

        shrunk = ledger.update(trip.id, TripUpdate(total_seats=10))

        # Then: remaining never exceeds the new total
        assert shrunk.total_seats == 10
        assert shrunk.remaining_seats == 9

    def test_shrinking_below_remaining(self, ledger):
        trip = ledger.create(make_trip_spec(total_seats=40))

        updated = ledger.update(trip.id, TripUpdate(total_seats=12))

        assert updated.remaining_seats == 12

    def test_invalid_patch_leaves_trip_untouched(self, ledger, trip):
        with pytest.raises(InvalidTrip):
            ledger.update(trip.id, TripUpdate(company="Nouvelle", price=10))

        ledger.db.expire_all()
        reloaded = ledger.get(trip.id)
        assert reloaded.company == "Kocrou Transport & Frères"
        assert reloaded.price == 5000

    def test_segments_are_replaced_only_when_given(self, ledger, trip):
        kept = ledger.update(trip.id, TripUpdate(arrival_time="11:00"))
        assert len(kept.segments) == 2

        replaced = ledger.update(trip.id, TripUpdate(segments=[segment("Abidjan", "Toumodi", 2500)]))
        assert [(s.origin, s.destination) for s in replaced.segments] == [("Abidjan", "Toumodi")]

    def test_unknown_trip(self, ledger):
        with pytest.raises(TripNotFound):
            ledger.update(999, TripUpdate(price=6000))


@pytest.mark.unit
class TestListAndFind:
    def test_list_filters_on_endpoints(self, ledger, trip):
        ledger.create(make_trip_spec(origin="Bouaké", destination="Korhogo"))

        assert [t.id for t in ledger.list(origin="abid")] == [trip.id]
        assert len(ledger.list()) == 2

    def test_inactive_trips_are_hidden_by_default(self, ledger, trip):
        ledger.deactivate(trip.id)

        assert ledger.list() == []
        assert [t.id for t in ledger.list(include_inactive=True)] == [trip.id]

    def test_get_active_only(self, ledger, trip):
        ledger.deactivate(trip.id)

        assert ledger.get(trip.id).is_active is False
        with pytest.raises(TripNotFound):
            ledger.get(trip.id, active_only=True)

    def test_find_segment_ignores_case_and_spaces(self, ledger, trip):
        found = ledger.find_segment(trip, " abidjan ", "TIASSALÉ")

        assert found is not None
        assert found.price == 2000

    def test_find_segment_without_match(self, ledger, trip):
        assert ledger.find_segment(trip, "Abidjan", "Bouaké") is None


@pytest.mark.unit
class TestAdjustRemaining:
    def test_decrement_and_increment(self, ledger, trip):
        assert ledger.adjust_remaining(trip.id, -1).remaining_seats == 9
        assert ledger.adjust_remaining(trip.id, 1).remaining_seats == 10

    def test_increment_is_clamped_to_total(self, ledger, trip):
        assert ledger.adjust_remaining(trip.id, 1).remaining_seats == 10

    def test_decrement_never_goes_negative(self, ledger):
        trip = ledger.create(make_trip_spec(total_seats=10))
        for _ in range(10):
            ledger.adjust_remaining(trip.id, -1)
        ledger.db.commit()

        with pytest.raises(CapacityExhausted):
            ledger.adjust_remaining(trip.id, -1)
        assert ledger.get(trip.id).remaining_seats == 0

    def test_unknown_trip(self, ledger):
        with pytest.raises(TripNotFound):
            ledger.adjust_remaining(404, -1)


@pytest.mark.unit
class TestSegments:
    def test_add_segment_appends(self, ledger, trip):
        updated = ledger.add_segment(trip.id, segment("Tiassalé", "Toumodi", 1500))

        assert [s.position for s in updated.segments] == [0, 1, 2]
        assert updated.segments[-1].destination == "Toumodi"

    def test_update_segment(self, ledger, trip):
        target = trip.segments[0]

        updated = ledger.update_segment(trip.id, target.id, SegmentUpdate(price=2500))

        assert updated.segments[0].price == 2500
        assert updated.segments[0].origin == "Abidjan"

    def test_remove_segment(self, ledger, trip):
        updated = ledger.remove_segment(trip.id, trip.segments[0].id)

        assert [s.origin for s in updated.segments] == ["Tiassalé"]

    def test_segment_of_another_trip_is_not_found(self, ledger, trip):
        with pytest.raises(SegmentNotFound):
            ledger.update_segment(trip.id, 999, SegmentUpdate(price=2500))
