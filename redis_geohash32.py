import logging
import random

import redis

from geohash32 import (
    Adjacent,
    BoundingBox,
    calculate_all_adjacent,
    decode,
    encode_with_precision,
)

logger = logging.getLogger(__name__)

r = redis.Redis(host="localhost", port=6379, db=0, decode_responses=True)
REDIS_GEOHASH_LENGTH = 11  # GEOHASH always replies with 11 characters


def _check_precision(precision: int) -> None:
    if not 1 <= precision <= REDIS_GEOHASH_LENGTH:
        raise ValueError(f"Precision must be between 1 and {REDIS_GEOHASH_LENGTH}")


def generate_coordinates(base_lat, base_lon, radius_km=5):
    # Crude approximation: 1 degree lat/lng ~= 111km at equator
    lat_offset = (random.random() - 0.5) * 2 * radius_km / 111
    lon_offset = (random.random() - 0.5) * 2 * radius_km / 111
    return base_lat + lat_offset, base_lon + lon_offset


def add_location(
    key: str,
    member: str,
    lat: float,
    lon: float,
    precision: int = REDIS_GEOHASH_LENGTH,
    client: redis.Redis = r,
) -> str:
    """GEOADD a member and return the geohash of its position."""
    _check_precision(precision)
    client.geoadd(key, (lon, lat, member))
    return encode_with_precision(lat, lon, precision)


def member_geohash(
    key: str,
    member: str,
    precision: int = REDIS_GEOHASH_LENGTH,
    client: redis.Redis = r,
) -> str | None:
    """Geohash of a geo set member as stored by Redis, cut to `precision`.

    Returns None when the member is not in the set.
    """
    _check_precision(precision)
    (geohash,) = client.geohash(key, member)
    if geohash is None:
        logger.debug("member %s not found in %s", member, key)
        return None
    if isinstance(geohash, bytes):
        geohash = geohash.decode()
    logger.debug("member %s in %s has geohash %s", member, key, geohash)
    return geohash[:precision]


def member_cell(
    key: str,
    member: str,
    precision: int = REDIS_GEOHASH_LENGTH,
    client: redis.Redis = r,
) -> BoundingBox | None:
    geohash = member_geohash(key, member, precision, client)
    if geohash is None:
        return None
    return decode(geohash)


def member_adjacent(
    key: str,
    member: str,
    precision: int = REDIS_GEOHASH_LENGTH,
    client: redis.Redis = r,
) -> Adjacent | None:
    """The eight cells around the cell a member falls in."""
    geohash = member_geohash(key, member, precision, client)
    if geohash is None:
        return None
    return calculate_all_adjacent(geohash)


if __name__ == "__main__":
    r.delete("restaurants")
    nyc_lat, nyc_lon = 40.7128, -74.0060
    restaurants = []
    for i in range(10):
        restaurant_id = f"restaurant:{1001 + i}"
        lat, lon = generate_coordinates(nyc_lat, nyc_lon, 7)
        geohash = add_location("restaurants", restaurant_id, lat, lon)
        restaurants.append((restaurant_id, geohash))
    print(f"Added {len(restaurants)} restaurants to Redis...")

    for restaurant_id, geohash in restaurants:
        stored = member_geohash("restaurants", restaurant_id)
        cell = member_cell("restaurants", restaurant_id, precision=6)
        print(f" - {restaurant_id}: encoded {geohash}, stored {stored}")
        print(f"   cell {cell}")

    restaurant_id = restaurants[0][0]
    adjacent = member_adjacent("restaurants", restaurant_id, precision=6)
    print(f"Cells around {restaurant_id}:")
    for direction, geohash in adjacent._asdict().items():
        print(f" - {direction}: {geohash}")

    # Clean up
    r.delete("restaurants")
