"""Step/maneuver state machine."""

from dataclasses import dataclass
from typing import Optional, Sequence

from .geo import distance
from .models import Coordinate, RouteStep, TurnSide


@dataclass(frozen=True)
class StepUpdate:
    """What happened to the step sequence on one position update"""
    completed_step: Optional[RouteStep] = None  # step reached on this update
    next_step: Optional[RouteStep] = None
    distance_to_next: float = 0.0
    prepare_to_turn: bool = False
    finished: bool = False


class StepTracker:
    """Tracks the current step of a route.

    current_index runs from 0 to len(steps); len(steps) means arrived. A step
    completes at most once, when the position comes within proximity_threshold
    of its trigger point. Independently, the step after the current one is
    watched for a "prepare to turn" window between proximity_threshold and
    turn_warning_distance.
    """

    def __init__(self, steps: Sequence[RouteStep], proximity_threshold: float = 30,
                 turn_warning_distance: float = 100):
        self.steps = list(steps)
        self.proximity_threshold = proximity_threshold
        self.turn_warning_distance = turn_warning_distance
        self.current_index = 0
        self.completed: set[int] = set()

    def reset(self, steps: Optional[Sequence[RouteStep]] = None):
        if steps is not None:
            self.steps = list(steps)
        self.current_index = 0
        self.completed.clear()

    @property
    def is_finished(self) -> bool:
        return self.current_index >= len(self.steps)

    @property
    def current_step(self) -> Optional[RouteStep]:
        if self.is_finished:
            return None
        return self.steps[self.current_index]

    def update(self, position: Coordinate) -> StepUpdate:
        """Advance past the current step if its trigger is reached, then look ahead"""
        if self.is_finished:
            return StepUpdate(finished=True)

        index = self.current_index
        step = self.steps[index]
        completed_step = None

        dist_to_trigger = distance(position, step.trigger_at)
        if dist_to_trigger <= self.proximity_threshold and index not in self.completed:
            self.completed.add(index)
            self.current_index += 1
            completed_step = step

        # Lookahead is measured from the step that was current when this update began
        next_step = None
        dist_to_next = 0.0
        prepare = False
        if index + 1 < len(self.steps):
            next_step = self.steps[index + 1]
            dist_to_next = distance(position, next_step.trigger_at)
            prepare = (self.proximity_threshold < dist_to_next <= self.turn_warning_distance
                       and next_step.side != TurnSide.STRAIGHT)

        return StepUpdate(
            completed_step=completed_step,
            next_step=next_step,
            distance_to_next=dist_to_next,
            prepare_to_turn=prepare,
            finished=self.is_finished,
        )
