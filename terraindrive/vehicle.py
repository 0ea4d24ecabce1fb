"""Arcade vehicle kinematics and the chase camera.

Both run once per frame.  The vehicle accelerates, brakes, coasts, and
steers from a simple key state; after moving it is clamped onto the
terrain through the height query.  States are immutable and every step
returns a new one.
"""

import logging
import math
from dataclasses import dataclass, replace

import numpy as np

from .constants import (
    VEHICLE_START, CAMERA_OFFSET, CAMERA_LERP, CAMERA_LOOK_HEIGHT, CAMERA_START,
)
from .models import VehicleConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriveInput:
    """Key state for one frame."""
    forward: bool = False
    backward: bool = False
    left: bool = False
    right: bool = False


@dataclass(frozen=True)
class VehicleState:
    position: tuple = VEHICLE_START
    yaw: float = 0.0
    speed: float = 0.0

    @property
    def forward_vector(self) -> tuple:
        """Unit heading in world space; yaw 0 faces -Z."""
        return (-math.sin(self.yaw), 0.0, -math.cos(self.yaw))

    def local_to_world(self, offset) -> tuple:
        """Transform a vehicle-local offset by yaw and position."""
        ox, oy, oz = offset
        c, s = math.cos(self.yaw), math.sin(self.yaw)
        px, py, pz = self.position
        return (px + ox * c + oz * s, py + oy, pz - ox * s + oz * c)


def _update_speed(speed, controls: DriveInput, delta, config: VehicleConfig):
    if controls.forward:
        return min(config.max_speed, speed + config.acceleration * delta)
    if controls.backward:
        # Reverse is capped at half the forward speed
        return max(-config.max_speed * 0.5, speed - config.acceleration * delta)
    # Coast towards zero without overshooting
    if speed > 0:
        return max(0.0, speed - config.deceleration * delta)
    if speed < 0:
        return min(0.0, speed + config.deceleration * delta)
    return speed


def step_vehicle(state: VehicleState, controls: DriveInput, delta, height_fn,
                 config: VehicleConfig = VehicleConfig()) -> VehicleState:
    """Advance the vehicle by *delta* seconds and clamp it to the ground."""
    speed = _update_speed(state.speed, controls, delta, config)

    yaw = state.yaw
    if abs(speed) > config.speed_epsilon:
        # Steering flips when reversing
        direction = 1.0 if speed > 0 else -1.0
        if controls.left:
            yaw += config.steering_speed * delta * direction
        if controls.right:
            yaw -= config.steering_speed * delta * direction

    moved = replace(state, yaw=yaw, speed=speed)
    fx, _, fz = moved.forward_vector
    distance = speed * delta * config.frame_rate_scale
    x = state.position[0] + fx * distance
    z = state.position[2] + fz * distance
    y = height_fn(x, z) + config.ride_height

    return replace(moved, position=(x, y, z))


@dataclass(frozen=True)
class ChaseCamera:
    """Camera that trails the vehicle, easing towards a fixed local offset."""
    position: tuple = CAMERA_START
    target: tuple = (0.0, 0.0, 0.0)
    offset: tuple = CAMERA_OFFSET
    lerp: float = CAMERA_LERP
    look_height: float = CAMERA_LOOK_HEIGHT

    def update(self, vehicle: VehicleState) -> "ChaseCamera":
        desired = np.asarray(vehicle.local_to_world(self.offset))
        current = np.asarray(self.position)
        position = current + (desired - current) * self.lerp
        vx, vy, vz = vehicle.position
        return replace(self,
                       position=tuple(float(v) for v in position),
                       target=(vx, vy + self.look_height, vz))


def simulate(height_fn, frames, controls: DriveInput, delta=1 / 60,
             state: VehicleState = None, camera: ChaseCamera = None,
             config: VehicleConfig = VehicleConfig()):
    """Run *frames* fixed-delta steps with constant controls.

    Returns the final ``(VehicleState, ChaseCamera)``.
    """
    state = state or VehicleState()
    camera = camera or ChaseCamera()
    for _ in range(frames):
        state = step_vehicle(state, controls, delta, height_fn, config)
        camera = camera.update(state)
    logger.debug(f"Simulated {frames} frames: position={state.position}, "
                 f"speed={state.speed:.4f}")
    return state, camera
