#!/usr/bin/env python3
"""Script to verify OSRM and Nominatim connectivity with the configured settings."""

import asyncio
import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from rotapro.config import settings
from rotapro.models.domain import TravelMode
from rotapro.services.routing.errors import RouteOptimizationError
from rotapro.services.routing.geocoder import NominatimGeocoder
from rotapro.services.routing.osrm_client import OSRMClient


async def main() -> int:
    print("=" * 60)
    print("Routing Provider Connection Test")
    print("=" * 60)
    print()

    print("1. Checking OSRM health...")
    print(f"   [OK] OSRM Base URL: {settings.osrm_base_url}")
    client = OSRMClient()
    if not await client.check_health():
        print("   [ERROR] OSRM service is not responding")
        return 1
    print("   [OK] OSRM service is healthy and accessible!")
    print()

    print("2. Testing OSRM route request...")
    test_coords = [
        (52.517037, 13.388860),  # Berlin, Germany
        (52.496891, 13.385983),  # Berlin, Germany
    ]
    try:
        route = await client.route(test_coords, mode=TravelMode.DRIVING)
    except RouteOptimizationError as e:
        print(f"   [ERROR] Error during route request: {e.message}")
        return 1
    print(f"   [OK] Route: {route['distance']:.0f} m in {route['duration']:.0f} s")
    print()

    print("3. Testing Nominatim geocoding...")
    print(f"   [OK] Nominatim Base URL: {settings.nominatim_base_url}")
    try:
        coordinate = await NominatimGeocoder().resolve("Brandenburger Tor, Berlin")
    except RouteOptimizationError as e:
        print(f"   [ERROR] Error during geocoding: {e.message}")
        return 1
    print(f"   [OK] Resolved to ({coordinate.latitude:.5f}, {coordinate.longitude:.5f})")
    print()

    print("=" * 60)
    print("[SUCCESS] Routing providers are connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
