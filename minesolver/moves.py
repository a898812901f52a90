"""Turn a probability distribution into the next move."""

import logging
import random
from typing import List, NamedTuple, Optional

from .board import BoardView, SquareState
from .combinator import Classification, GlobalDistribution
from .utils import Coord

logger = logging.getLogger(__name__)

OPENINGS = ("center", "corner", "random")


class Move(NamedTuple):
    """
    Squares to probe and squares to flag, plus why they were chosen.

    reason is "certain" (only provably safe probes), "guess" (lowest mine
    probability), "opening", "random", or "none" when nothing is left.
    """

    to_probe: List[Coord]
    to_flag: List[Coord]
    reason: str

    @property
    def is_empty(self) -> bool:
        return not self.to_probe and not self.to_flag


def opening_square(view: BoardView, opening: str, rng: random.Random) -> Coord:
    """First probe on an untouched board."""
    if opening == "center":
        return (view.width // 2, view.height // 2)
    if opening == "corner":
        return (0, 0)
    if opening == "random":
        return rng.choice(view.squares(SquareState.UNKNOWN))
    raise ValueError(f"Unknown opening {opening!r}; choose one of {OPENINGS}.")


def select_move(
    view: BoardView,
    distribution: Optional[GlobalDistribution],
    rng: Optional[random.Random] = None,
    opening: str = "center",
) -> Move:
    """
    Pick the next move.

    1. Probe every SAFE square if there is one, and flag every MINE square.
    2. Otherwise, with constrained squares present, probe the single square
       of lowest mine probability (ties go to the first in row-major order);
       unconstrained squares compete with their shared probability.
    3. With no constrained squares, probe the opening square on an untouched
       board and a random Unknown square otherwise.

    Args:
        view: The view the distribution was computed for.
        distribution: Probabilities of the view's Unknown squares.
        rng: Random source for openings and blind guesses.
        opening: "center", "corner" or "random".

    Returns:
        The Move; empty when no Unknown square is left.
    """
    rng = rng if rng is not None else random.Random()
    unknown = view.squares(SquareState.UNKNOWN)
    if not unknown:
        return Move([], [], "none")

    to_flag: List[Coord] = []
    if distribution is not None:
        to_flag = distribution.certain_mines
        safe = distribution.certain_safe
        if safe:
            return Move(safe, to_flag, "certain")

        if distribution.groups:
            # min() keeps the first of equal keys, unknown is row-major.
            best = min(
                (c for c in unknown if distribution.classification.get(c) == Classification.UNCERTAIN),
                key=distribution.probability,
                default=None,
            )
            if best is not None:
                logger.info(
                    "Guessing %s with mine probability %s",
                    best,
                    distribution.probability(best),
                )
                return Move([best], to_flag, "guess")
            # Only certain mines remain hidden.
            return Move([], to_flag, "certain")

    if len(unknown) == view.width * view.height:
        return Move([opening_square(view, opening, rng)], [], "opening")

    pool = [c for c in unknown if c not in to_flag]
    if not pool:
        return Move([], to_flag, "certain")
    return Move([rng.choice(pool)], to_flag, "random")
