"""Grid helpers shared by the board snapshot and the game simulation."""

from typing import Dict, List, Tuple

Coord = Tuple[int, int]
Neighborhoods = Dict[Coord, Tuple[Coord, ...]]

# Neighborhoods never change for a given board size, so they are shared
# between snapshots: (width, height) -> {(x, y): ((nx, ny), ...), ...}
_NEIGHBORHOODS_CACHE: Dict[Tuple[int, int], Neighborhoods] = {}


def get_neighborhoods(width: int, height: int) -> Neighborhoods:
    """
    Return the 8-connected neighbors of every square of a width x height grid.

    Args:
        width: Grid width (number of columns). Must be positive.
        height: Grid height (number of rows). Must be positive.

    Returns:
        Mapping from each square (x, y) to the tuple of in-bounds neighbors,
        listed row by row.

    Raises:
        ValueError: If width or height is non-positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive.")

    key = (width, height)
    cached = _NEIGHBORHOODS_CACHE.get(key)
    if cached is not None:
        return cached

    neighborhoods: Neighborhoods = {}
    for y in range(height):
        for x in range(width):
            nbrs: List[Coord] = []
            for dy in (-1, 0, 1):
                for dx in (-1, 0, 1):
                    if dx == 0 and dy == 0:
                        continue
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < width and 0 <= ny < height:
                        nbrs.append((nx, ny))
            neighborhoods[(x, y)] = tuple(nbrs)

    _NEIGHBORHOODS_CACHE[key] = neighborhoods
    return neighborhoods


def popcount(value: int) -> int:
    """Number of set bits in a non-negative integer."""
    return bin(value).count("1")
