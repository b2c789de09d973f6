import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from rotapro.models.domain import ResolvedPoint, Stop  # noqa: E402
from rotapro.services.routing.errors import GeocodeFailure, ProviderUnavailable  # noqa: E402

# Points laid out on a small grid; 0.01 degrees is roughly 1 km of "road".
GEOGRAPHY = {
    "Rua A, 100": (0.0, 0.0),
    "Rua B, 200": (0.0, 0.01),
    "Rua C, 300": (0.0, 0.02),
    "Rua D, 400": (0.01, 0.02),
    "Rua E, 500": (0.01, 0.0),
}


def encode_polyline(points, precision: int = 5) -> str:
    factor = 10**precision
    output = []
    prev_lat = prev_lon = 0
    for lat, lon in points:
        ilat, ilon = int(round(lat * factor)), int(round(lon * factor))
        for delta in (ilat - prev_lat, ilon - prev_lon):
            value = ~(delta << 1) if delta < 0 else (delta << 1)
            while value >= 0x20:
                output.append(chr((0x20 | (value & 0x1F)) + 63))
                value >>= 5
            output.append(chr(value + 63))
        prev_lat, prev_lon = ilat, ilon
    return "".join(output)


def grid_distance(a, b) -> int:
    return int(round((abs(a[0] - b[0]) + abs(a[1] - b[1])) * 100_000))


class DummyOSRM:
    """In-memory stand-in for OSRMClient driven by grid distances."""

    def __init__(self, fail_routes=None):
        self.fail_routes = set(fail_routes or ())
        self.table_calls = []
        self.route_calls = []

    async def table(self, coordinates, mode=None, avoid_highways=False, sources=None, destinations=None):
        self.table_calls.append({"coordinates": list(coordinates), "sources": sources, "destinations": destinations})
        sources = range(len(coordinates)) if sources is None else sources
        destinations = range(len(coordinates)) if destinations is None else destinations
        distances = [[grid_distance(coordinates[s], coordinates[d]) for d in destinations] for s in sources]
        durations = [[value // 10 for value in row] for row in distances]
        return {"code": "Ok", "durations": durations, "distances": distances}

    async def route(self, coordinates, mode=None, avoid_highways=False):
        origin, destination = coordinates
        self.route_calls.append((origin, destination))
        if (origin, destination) in self.fail_routes:
            raise ProviderUnavailable("Routing service is unavailable: HTTP 503")
        distance = grid_distance(origin, destination)
        return {
            "distance": float(distance),
            "duration": float(distance // 10),
            "geometry": encode_polyline([origin, destination]),
            "legs": [
                {
                    "steps": [
                        {
                            "distance": float(distance),
                            "name": "Rua Principal",
                            "maneuver": {"type": "depart", "location": [origin[1], origin[0]]},
                        },
                        {
                            "distance": 0.0,
                            "name": "",
                            "maneuver": {"type": "arrive", "location": [destination[1], destination[0]]},
                        },
                    ]
                }
            ],
        }


class DummyGeocoder:
    def __init__(self, geography=None):
        self.geography = dict(GEOGRAPHY if geography is None else geography)
        self.calls = []

    async def resolve_stop(self, stop: Stop) -> ResolvedPoint:
        self.calls.append(stop.address)
        if stop.address not in self.geography:
            raise GeocodeFailure(stop.address, "no match found")
        lat, lon = self.geography[stop.address]
        return ResolvedPoint(stop=stop, latitude=lat, longitude=lon)


class ExplodingProvider:
    """Fails the test if any provider method is reached."""

    def __getattr__(self, name):
        raise AssertionError(f"provider method '{name}' should not be called")


@pytest.fixture
def dummy_osrm() -> DummyOSRM:
    return DummyOSRM()


@pytest.fixture
def dummy_geocoder() -> DummyGeocoder:
    return DummyGeocoder()


@pytest.fixture
def resolved_points():
    def _build(*addresses: str) -> list[ResolvedPoint]:
        return [
            ResolvedPoint(stop=Stop(stop_id=f"p{index}", address=address), latitude=GEOGRAPHY[address][0], longitude=GEOGRAPHY[address][1])
            for index, address in enumerate(addresses)
        ]

    return _build


@pytest.fixture
def optimizer(dummy_geocoder, dummy_osrm):
    from rotapro.services.routing.itinerary import ItineraryAssembler
    from rotapro.services.routing.matrix import MatrixBuilder
    from rotapro.services.routing.service import RouteOptimizer

    return RouteOptimizer(
        geocoder=dummy_geocoder,
        matrix_builder=MatrixBuilder(dummy_osrm, max_coordinates_per_request=4),
        assembler=ItineraryAssembler(dummy_osrm),
    )


@pytest.fixture
def offline_optimizer():
    from rotapro.services.routing.service import RouteOptimizer

    return RouteOptimizer(
        geocoder=ExplodingProvider(),
        matrix_builder=ExplodingProvider(),
        assembler=ExplodingProvider(),
    )
