import logging
from enum import Enum
from typing import NamedTuple

logger = logging.getLogger(__name__)

BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"  # Standard Base32 characters
DEFAULT_PRECISION = 12


class GeohashError(ValueError):
    """Base class for rejected geohash input."""


class InvalidCharacterError(GeohashError):
    def __init__(self, geohash: str, char: str, position: int):
        super().__init__(
            f"Invalid character {char!r} at position {position} in geohash {geohash!r}"
        )
        self.geohash = geohash
        self.char = char
        self.position = position


class InvalidDirectionError(GeohashError):
    def __init__(self, direction):
        super().__init__(
            f"Invalid direction {direction!r}, expected one of "
            f"{', '.join(d.value for d in Direction)}"
        )
        self.direction = direction


class BoundaryExceededError(GeohashError):
    """Raised when an adjacent cell would lie beyond the poles or the antimeridian."""

    def __init__(self, geohash: str, direction: "Direction"):
        super().__init__(
            f"No {direction.value} neighbor for geohash {geohash!r}: "
            "cell is on the edge of the coordinate system"
        )
        self.geohash = geohash
        self.direction = direction


class LatLng(NamedTuple):
    lat: float
    lng: float


class BoundingBox:
    """Rectangular region covered by a geohash."""

    __slots__ = ("_sw", "_ne", "_center")

    def __init__(self, sw: LatLng, ne: LatLng):
        self._sw = sw
        self._ne = ne
        self._center = LatLng((sw.lat + ne.lat) / 2, (sw.lng + ne.lng) / 2)

    @property
    def sw(self) -> LatLng:
        return self._sw

    @property
    def ne(self) -> LatLng:
        return self._ne

    @property
    def center(self) -> LatLng:
        return self._center

    south_west = sw
    north_east = ne

    @property
    def lat_err(self) -> float:
        """Half the height of the box, in degrees."""
        return (self._ne.lat - self._sw.lat) / 2

    @property
    def lng_err(self) -> float:
        """Half the width of the box, in degrees."""
        return (self._ne.lng - self._sw.lng) / 2

    def contains(self, lat: float, lng: float) -> bool:
        return (
            self._sw.lat <= lat <= self._ne.lat
            and self._sw.lng <= lng <= self._ne.lng
        )

    def __eq__(self, other):
        if not isinstance(other, BoundingBox):
            return NotImplemented
        return self._sw == other._sw and self._ne == other._ne

    def __hash__(self):
        return hash((self._sw, self._ne))

    def __repr__(self):
        return f"BoundingBox(sw={self._sw}, ne={self._ne}, center={self._center})"


class Direction(str, Enum):
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"

    @classmethod
    def parse(cls, value) -> "Direction":
        try:
            return cls(value)
        except ValueError:
            raise InvalidDirectionError(value) from None

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]


_OPPOSITES = {
    Direction.TOP: Direction.BOTTOM,
    Direction.BOTTOM: Direction.TOP,
    Direction.RIGHT: Direction.LEFT,
    Direction.LEFT: Direction.RIGHT,
}

# Indexed by direction, then by geohash length parity (0 = even, 1 = odd).
# The character of the neighboring cell is BASE32 at the position the
# current last character holds in NEIGHBORS.
NEIGHBORS = {
    Direction.TOP: (
        "p0r21436x8zb9dcf5h7kjnmqesgutwvy",
        "bc01fg45238967deuvhjyznpkmstqrwx",
    ),
    Direction.RIGHT: (
        "bc01fg45238967deuvhjyznpkmstqrwx",
        "p0r21436x8zb9dcf5h7kjnmqesgutwvy",
    ),
    Direction.BOTTOM: (
        "14365h7k9dcfesgujnmqp0r2twvyx8zb",
        "238967debc01fg45kmstqrwxuvhjyznp",
    ),
    Direction.LEFT: (
        "238967debc01fg45kmstqrwxuvhjyznp",
        "14365h7k9dcfesgujnmqp0r2twvyx8zb",
    ),
}

# Last characters that sit on the edge of their parent cell in a direction.
BORDERS = {
    Direction.TOP: ("prxz", "bcfguvyz"),
    Direction.RIGHT: ("bcfguvyz", "prxz"),
    Direction.BOTTOM: ("028b", "0145hjnp"),
    Direction.LEFT: ("0145hjnp", "028b"),
}


class Adjacent(NamedTuple):
    """The eight cells around a geohash, in lookup order."""

    top: str
    right: str
    bottom: str
    top_right: str
    top_left: str
    left: str
    bottom_right: str
    bottom_left: str


def _validate_precision(precision: int) -> None:
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise ValueError(f"Precision must be an integer, got {precision!r}")
    if precision < 1:
        raise ValueError(f"Precision must be at least 1, got {precision}")


def _normalize(geohash: str) -> str:
    """Lower-case a geohash and reject characters outside BASE32."""
    geohash = geohash.lower()
    for position, char in enumerate(geohash):
        if char not in BASE32:
            raise InvalidCharacterError(geohash, char, position)
    return geohash


def _encode_bitstream(value: float, lo: float, hi: float, bit_length: int) -> list[int]:
    """Encodes a value into a bitstream using binary subdivision."""
    res = []
    for _ in range(bit_length):
        mid = (lo + hi) / 2
        if value > mid:
            lo = mid
            res.append(1)
        else:
            hi = mid
            res.append(0)
    return res


def _decode_bitstream(
    bitstream: int, bit_count: int, min_val: float, max_val: float
) -> tuple[float, float]:
    """Narrows [min_val, max_val] by the bits of bitstream, MSB first."""
    for i in range(bit_count):
        mid = (min_val + max_val) / 2
        if (bitstream >> (bit_count - 1 - i)) & 1:
            min_val = mid
        else:
            max_val = mid
    return min_val, max_val


def _split_bits(bit_length: int) -> tuple[int, int]:
    # Longitude takes the first bit, so it gets the extra one on odd lengths.
    lat_bits = bit_length // 2
    return lat_bits, bit_length - lat_bits


def encode_with_precision(lat: float, lng: float, precision: int) -> str:
    """Encode a latitude and longitude into a geohash of `precision` characters.

    Coordinates are not range checked; values outside [-90, 90] and
    [-180, 180] saturate at the nearest edge.
    """
    _validate_precision(precision)
    bit_length = precision * 5
    lat_bits, lng_bits = _split_bits(bit_length)

    lat_stream = _encode_bitstream(lat, -90.0, 90.0, lat_bits)
    lng_stream = _encode_bitstream(lng, -180.0, 180.0, lng_bits)

    geohash_bits = []
    for i in range(lng_bits):
        geohash_bits.append(lng_stream[i])
        if i < lat_bits:
            geohash_bits.append(lat_stream[i])

    result = []
    for i in range(0, bit_length, 5):
        chunk = geohash_bits[i : i + 5]
        value = sum(bit << (4 - j) for j, bit in enumerate(chunk))
        result.append(BASE32[value])

    return "".join(result)


def encode(lat: float, lng: float) -> str:
    """Encode a latitude and longitude into a 12 character geohash."""
    return encode_with_precision(lat, lng, DEFAULT_PRECISION)


def decode(geohash: str) -> BoundingBox:
    """Decode a geohash into the bounding box it covers.

    The empty string decodes to the whole globe.
    """
    geohash = _normalize(geohash)

    bit_length = len(geohash) * 5
    lat_bits, lng_bits = _split_bits(bit_length)

    geohash_value = 0
    for char in geohash:
        geohash_value = (geohash_value << 5) | BASE32.index(char)

    # Deinterleave bits
    lat_stream = lng_stream = 0
    for i in range(bit_length):
        bit = (geohash_value >> (bit_length - 1 - i)) & 1
        if i % 2 == 0:
            lng_stream = (lng_stream << 1) | bit
        else:
            lat_stream = (lat_stream << 1) | bit

    lat_lo, lat_hi = _decode_bitstream(lat_stream, lat_bits, -90.0, 90.0)
    lng_lo, lng_hi = _decode_bitstream(lng_stream, lng_bits, -180.0, 180.0)
    return BoundingBox(LatLng(lat_lo, lng_lo), LatLng(lat_hi, lng_hi))


def calculate_adjacent(geohash: str, direction) -> str:
    """Return the geohash of the same length next to `geohash` in `direction`.

    When the last character sits on the border of its parent cell the
    parent is shifted as well, and so on towards the first character.

    Raises:
        InvalidDirectionError: direction is not top, right, bottom or left.
        InvalidCharacterError: geohash contains a character outside BASE32.
        BoundaryExceededError: the neighbor would lie past a pole or the
            antimeridian.
    """
    direction = Direction.parse(direction)
    if not geohash:
        raise GeohashError("Cannot find neighbors of an empty geohash")
    geohash = _normalize(geohash)

    neighbors = NEIGHBORS[direction]
    borders = BORDERS[direction]

    base = geohash
    suffix = []
    while True:
        if not base:
            logger.debug("geohash %s has no %s neighbor", geohash, direction.value)
            raise BoundaryExceededError(geohash, direction)
        last = base[-1]
        parity = len(base) % 2
        base = base[:-1]
        suffix.append(BASE32[neighbors[parity].index(last)])
        if last not in borders[parity]:
            break

    return base + "".join(reversed(suffix))


def calculate_all_adjacent(geohash: str) -> Adjacent:
    """Return the eight cells surrounding `geohash`.

    Diagonals are taken as the right and left neighbors of the top and
    bottom cells.
    """
    top = calculate_adjacent(geohash, Direction.TOP)
    bottom = calculate_adjacent(geohash, Direction.BOTTOM)
    return Adjacent(
        top=top,
        right=calculate_adjacent(geohash, Direction.RIGHT),
        bottom=bottom,
        top_right=calculate_adjacent(top, Direction.RIGHT),
        top_left=calculate_adjacent(top, Direction.LEFT),
        left=calculate_adjacent(geohash, Direction.LEFT),
        bottom_right=calculate_adjacent(bottom, Direction.RIGHT),
        bottom_left=calculate_adjacent(bottom, Direction.LEFT),
    )


class Geohash:
    def __init__(self, precision: int = DEFAULT_PRECISION):
        """Initialize Geohash encoder/decoder with given precision."""
        _validate_precision(precision)
        self.precision = precision

    def encode(self, lat: float, lon: float) -> str:
        """Encode a latitude and longitude into a geohash."""
        return encode_with_precision(lat, lon, self.precision)

    def decode(self, geohash: str) -> BoundingBox:
        return decode(geohash)

    def decode_center(self, geohash: str) -> LatLng:
        """Decode a geohash into the latitude and longitude of its center."""
        return decode(geohash).center

    def cell_size(self, precision: int | None = None) -> tuple[float, float]:
        """Size of a geohash cell for a given precision.

        Args:
            precision (int): precision/length of geohash, defaults to
                the codec's own precision

        Returns:
            (cell height in degrees latitude, cell width in degrees longitude)
        """
        if precision is None:
            precision = self.precision
        _validate_precision(precision)
        lat_bits, lon_bits = _split_bits(precision * 5)

        return 180.0 / (1 << lat_bits), 360.0 / (1 << lon_bits)

    def get_neighbors(self, geohash: str) -> dict[str, str]:
        """
        Compute the 8 neighboring geohashes (N, S, E, W, NE, NW, SE, SW).
        """
        adjacent = calculate_all_adjacent(geohash)
        return {
            "n": adjacent.top,
            "s": adjacent.bottom,
            "e": adjacent.right,
            "w": adjacent.left,
            "ne": adjacent.top_right,
            "se": adjacent.bottom_right,
            "nw": adjacent.top_left,
            "sw": adjacent.bottom_left,
        }


if __name__ == "__main__":
    geo = Geohash(precision=6)
    encoded = geo.encode(41.878738, -87.6359612)  # Willis Tower
    box = geo.decode(encoded)
    neighbors = geo.get_neighbors(encoded)

    print(f"Encoded: {encoded}")
    print(f"Decoded: {box}")
    print(f"Cell size: {geo.cell_size()}")
    print(f"Neighbors: {neighbors}")
