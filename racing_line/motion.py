"""
Motion Simulation for Racing Line Telemetry

This module models the simulated car that runs along the racing line: a
target-speed seeking kinematic model with separate acceleration and braking
rates, driven by discrete accelerate/brake impulses.

State transitions are pure functions on an immutable MotionState; the
MotionSimulator class is the single owner of the current state and the car's
fractional position along the trajectory.
"""

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, NamedTuple

from . import constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MotionState:
    speed: float = 0.0
    target_speed: float = 0.0
    max_speed: float = constants.DEFAULT_MAX_SPEED
    accel_rate: float = constants.DEFAULT_ACCEL_RATE
    brake_rate: float = constants.DEFAULT_BRAKE_RATE


class Control(Enum):
    ACCELERATE = "accelerate"
    BRAKE = "brake"


class ControlInput(NamedTuple):
    control: Control
    amount: float


def _check_amount(amount: float) -> None:
    if not math.isfinite(amount) or amount < 0:
        raise ValueError(f"Control amount must be a non-negative number, got {amount!r}")


def accelerate(state: MotionState, amount: float = constants.ACCELERATE_STEP) -> MotionState:
    """Raise the target speed by amount, capped at max_speed."""
    _check_amount(amount)
    return replace(state, target_speed=min(state.target_speed + amount, state.max_speed))


def brake(state: MotionState, amount: float = constants.BRAKE_STEP) -> MotionState:
    """Lower the target speed by amount, floored at zero."""
    _check_amount(amount)
    return replace(state, target_speed=max(state.target_speed - amount, 0.0))


def update(state: MotionState, delta_time: float) -> MotionState:
    """
    Move speed toward the target speed.

    The configured rates are per nominal frame, so the step is scaled by
    delta_time * NOMINAL_FPS and stays correct under variable frame intervals.
    The step never overshoots the target.

    Args:
        state: Current motion state.
        delta_time: Elapsed real time in seconds.

    Returns:
        New MotionState with the updated speed.

    Raises:
        ValueError: If delta_time is negative or not finite.
    """
    if not math.isfinite(delta_time) or delta_time < 0:
        raise ValueError(f"delta_time must be a non-negative number, got {delta_time!r}")

    diff = state.target_speed - state.speed
    if diff == 0:
        return state
    rate = state.accel_rate if diff > 0 else state.brake_rate
    max_step = rate * delta_time * constants.NOMINAL_FPS
    if abs(diff) <= max_step:
        # land exactly on the target so float error cannot leave [0, max_speed]
        return replace(state, speed=state.target_speed)
    return replace(state, speed=state.speed + math.copysign(max_step, diff))


def apply_input(state: MotionState, control_input: ControlInput) -> MotionState:
    if control_input.control is Control.ACCELERATE:
        return accelerate(state, control_input.amount)
    if control_input.control is Control.BRAKE:
        return brake(state, control_input.amount)
    raise ValueError(f"Unknown control: {control_input.control!r}")


def step(state: MotionState, delta_time: float,
         inputs: Iterable[ControlInput] = ()) -> MotionState:
    """Apply control impulses in order, then advance the speed by delta_time."""
    for control_input in inputs:
        state = apply_input(state, control_input)
    return update(state, delta_time)


def advance_position(position: float, speed: float, trajectory_length: int,
                     scale: float = constants.POSITION_SCALE) -> float:
    """
    Advance a fractional index along a closed-loop trajectory.

    Args:
        position: Current fractional index.
        speed: Current speed.
        trajectory_length: Number of points in the trajectory.
        scale: Index advanced per unit of speed. Default POSITION_SCALE.

    Returns:
        New position in [0, trajectory_length), or the unchanged position
        when the trajectory is empty.
    """
    if trajectory_length <= 0:
        return position
    return (position + speed * scale) % trajectory_length


class MotionSimulator:
    """
    Owner of the simulated car's motion state and fractional position.

    accelerate() and brake() change the target speed at once; tick() moves the
    speed toward the target and advances the position.
    """

    def __init__(self, initial_state: MotionState = MotionState(),
                 position_scale: float = constants.POSITION_SCALE):
        self.initial_state = initial_state
        self.position_scale = position_scale
        self.state = initial_state
        self.position = 0.0

    @property
    def speed(self) -> float:
        return self.state.speed

    def accelerate(self, amount: float = constants.ACCELERATE_STEP) -> None:
        self.state = apply_input(self.state, ControlInput(Control.ACCELERATE, amount))

    def brake(self, amount: float = constants.BRAKE_STEP) -> None:
        self.state = apply_input(self.state, ControlInput(Control.BRAKE, amount))

    def tick(self, delta_time: float, trajectory_length: int) -> float:
        """
        Advance one frame.

        Nothing changes on an empty trajectory.

        Args:
            delta_time: Elapsed real time in seconds.
            trajectory_length: Number of points in the current trajectory.

        Returns:
            The new fractional position.
        """
        if trajectory_length <= 0:
            return self.position

        self.state = update(self.state, delta_time)
        self.position = advance_position(self.position, self.state.speed,
                                         trajectory_length, self.position_scale)
        return self.position

    def reset(self) -> None:
        self.state = self.initial_state
        self.position = 0.0
        logger.debug("Motion state reset")
