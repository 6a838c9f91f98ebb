"""Level formulas. One is active per deployment (``LEVEL_FORMULA``)."""

import math

from ..config import POINTS_PER_LEVEL


class LinearLevels:
    """level = floor(points / 100) + 1"""

    name = "linear"

    def level_for(self, profile) -> int:
        return profile.points // POINTS_PER_LEVEL + 1

    def points_for_next_level(self, profile) -> int:
        return profile.level * POINTS_PER_LEVEL - profile.points


class SqrtLevels:
    """level = floor(1 + sqrt(experience / 100)), each level costs more."""

    name = "sqrt"

    def level_for(self, profile) -> int:
        return math.floor(1 + math.sqrt(profile.experience / POINTS_PER_LEVEL))

    def points_for_next_level(self, profile) -> int:
        return profile.level ** 2 * POINTS_PER_LEVEL - profile.experience


LEVEL_STRATEGIES = {
    LinearLevels.name: LinearLevels(),
    SqrtLevels.name: SqrtLevels(),
}


def strategy_for(level_formula: str):
    return LEVEL_STRATEGIES[level_formula]
