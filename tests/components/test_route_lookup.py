"""Tests for the single-aircraft route lookup."""

from unittest.mock import Mock

from conftest import NOW, make_flight

from src.ingestion.components.route_lookup import RouteLookup


def test_prefers_latest_flight_with_known_airport():
    client = Mock()
    client.get_flights_by_aircraft.return_value = [
        make_flight("abc123", NOW - 5000, departure="vabb", arrival="vidp"),
        make_flight("abc123", NOW - 100),
        make_flight("abc123", NOW - 9000, departure="egll"),
    ]

    detail = RouteLookup(client).lookup(" ABC123 ", now=NOW)

    client.get_flights_by_aircraft.assert_called_once_with("abc123", NOW - 86400, NOW)
    assert detail.icao24 == "abc123"
    assert detail.est_departure_airport == "VABB"
    assert detail.est_arrival_airport == "VIDP"
    assert detail.last_seen == NOW - 5000


def test_falls_back_to_latest_flight_without_airports():
    client = Mock()
    client.get_flights_by_aircraft.return_value = [
        make_flight("abc123", NOW - 900),
        make_flight("abc123", NOW - 100, first_seen=NOW - 600),
    ]

    detail = RouteLookup(client).lookup("abc123", now=NOW)

    assert detail.first_seen == NOW - 600
    assert detail.est_departure_airport is None
    assert "estDepartureAirport" not in detail.to_document()


def test_no_flights_returns_none():
    client = Mock()
    client.get_flights_by_aircraft.return_value = []

    assert RouteLookup(client).lookup("abc123", now=NOW) is None


def test_blank_address_makes_no_request():
    client = Mock()

    assert RouteLookup(client).lookup("   ") is None
    client.get_flights_by_aircraft.assert_not_called()
