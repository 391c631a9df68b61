"""Daily goal progress.

Goals come from a backend that may hand back zero or garbage for a goal
field.  Every unusable goal is replaced by a built-in default here, in one
place, so progress rings never sit at 0% because of a broken record.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any

from paceline.analytics.statistics import DailyTotals


DEFAULT_STEPS_GOAL = 10_000
DEFAULT_DISTANCE_GOAL_KM = 8.0
DEFAULT_CALORIES_GOAL = 500


@dataclass(frozen=True)
class ActivityGoal:
    """A stored daily goal together with today's current totals."""

    daily_steps_goal: float = DEFAULT_STEPS_GOAL
    daily_distance_goal_km: float = DEFAULT_DISTANCE_GOAL_KM
    daily_calories_goal: float = DEFAULT_CALORIES_GOAL
    current_steps: int = 0
    current_distance_km: float = 0.0
    current_calories: int = 0

    def with_totals(self, today: DailyTotals) -> ActivityGoal:
        """Copy of this goal with the current fields taken from *today*."""
        return replace(
            self,
            current_steps=today.steps,
            current_distance_km=today.distance_km,
            current_calories=today.calories,
        )


@dataclass
class GoalProgress:
    """Progress ratios (0-1) against the sanitized goal."""

    steps_progress: float
    distance_progress: float
    calories_progress: float
    goal: ActivityGoal  # sanitized

    @property
    def all_met(self) -> bool:
        return min(self.steps_progress, self.distance_progress, self.calories_progress) >= 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps_progress": round(self.steps_progress, 4),
            "distance_progress": round(self.distance_progress, 4),
            "calories_progress": round(self.calories_progress, 4),
            "daily_steps_goal": self.goal.daily_steps_goal,
            "daily_distance_goal_km": self.goal.daily_distance_goal_km,
            "daily_calories_goal": self.goal.daily_calories_goal,
        }

    def __repr__(self) -> str:
        return (
            f"GoalProgress(steps={self.steps_progress:.0%}, "
            f"distance={self.distance_progress:.0%}, "
            f"calories={self.calories_progress:.0%})"
        )


def _usable(value: Any, default: float) -> float:
    """*value* as a positive finite number, else *default*."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(v) or v <= 0:
        return default
    return v


def sanitize_goal(goal: ActivityGoal) -> ActivityGoal:
    """Replace every non-positive (or non-numeric) goal field with its default."""
    return replace(
        goal,
        daily_steps_goal=_usable(goal.daily_steps_goal, DEFAULT_STEPS_GOAL),
        daily_distance_goal_km=_usable(goal.daily_distance_goal_km, DEFAULT_DISTANCE_GOAL_KM),
        daily_calories_goal=_usable(goal.daily_calories_goal, DEFAULT_CALORIES_GOAL),
    )


def _ratio(current: Any, target: float) -> float:
    try:
        value = float(current)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or target <= 0:
        return 0.0
    return min(max(value / target, 0.0), 1.0)


def evaluate_goal(goal: ActivityGoal) -> GoalProgress:
    """Compute clamped progress ratios for steps, distance and calories."""
    clean = sanitize_goal(goal)
    return GoalProgress(
        steps_progress=_ratio(clean.current_steps, clean.daily_steps_goal),
        distance_progress=_ratio(clean.current_distance_km, clean.daily_distance_goal_km),
        calories_progress=_ratio(clean.current_calories, clean.daily_calories_goal),
        goal=clean,
    )
