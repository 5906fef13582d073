"""
In-memory collaborator backends.

Used for dry runs from the command line and as test doubles. The simulated
scene keeps the same bookkeeping a planning scene would: world collision
objects, objects attached to the gripper, static obstacles and markers.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from .config import GraspConfig, ObstacleConfig
from .geometry import Pose, Vector3
from .task_types import GraspCandidate, PlaceCandidate
from .utils.logging_utils import get_structured_logger


@dataclass
class CollisionObject:
    object_id: str
    pose: Pose
    size: Vector3


class SimulatedActuator:
    """Enable/disable toggle with a scripted enable result."""

    def __init__(self, enable_succeeds: bool = True):
        self.enable_succeeds = enable_succeeds
        self.enabled = False
        self.enable_calls = 0
        self.disable_calls = 0

    def enable(self) -> bool:
        self.enable_calls += 1
        self.enabled = self.enable_succeeds
        return self.enabled

    def disable(self) -> None:
        self.disable_calls += 1
        self.enabled = False


@dataclass
class SimulatedScene:
    """Planning scene bookkeeping keyed by object id."""

    collision_objects: Dict[str, CollisionObject] = field(default_factory=dict)
    attached_objects: Dict[str, CollisionObject] = field(default_factory=dict)
    static_obstacles: Dict[str, ObstacleConfig] = field(default_factory=dict)
    markers: List[Tuple[Pose, float, bool]] = field(default_factory=list)
    static_publish_count: int = 0

    def publish_static_scene(self, obstacles: Sequence[ObstacleConfig]) -> None:
        self.static_publish_count += 1
        for obstacle in obstacles:
            self.static_obstacles[obstacle.name] = obstacle

    def publish_collision_representation(self, object_id: str, pose: Pose, size: Vector3) -> None:
        self.collision_objects[object_id] = CollisionObject(object_id, pose, tuple(size))

    def remove_collision_representation(self, object_id: str) -> None:
        self.collision_objects.pop(object_id, None)

    def remove_attached_representation(self, object_id: str) -> None:
        self.attached_objects.pop(object_id, None)

    def publish_marker(self, pose: Pose, size: float, is_goal: bool) -> None:
        self.markers.append((pose, size, is_goal))

    # Motion-side bookkeeping
    def attach(self, object_id: str) -> None:
        obj = self.collision_objects.pop(object_id, None)
        if obj is not None:
            self.attached_objects[object_id] = obj

    def detach(self, object_id: str, pose: Pose) -> None:
        obj = self.attached_objects.pop(object_id, None)
        if obj is not None:
            self.collision_objects[object_id] = CollisionObject(object_id, pose, obj.size)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "collision": {k: (v.pose, v.size) for k, v in self.collision_objects.items()},
            "attached": {k: (v.pose, v.size) for k, v in self.attached_objects.items()},
        }


class SimulatedGraspGenerator:
    """
    Top-down grasps sampled around the block's vertical axis.

    Grasp poses sit on the block center with the gripper pointing down and
    headings spaced evenly over a half turn (a cube is symmetric).
    """

    def __init__(self, num_grasps: int = 8):
        if num_grasps < 0:
            raise ValueError("num_grasps must be >= 0")
        self.num_grasps = num_grasps

    def generate_grasps(self, pose: Pose, grasp_config: Optional[GraspConfig]) -> List[Pose]:
        del grasp_config
        grasps = []
        for yaw in np.linspace(0.0, math.pi, self.num_grasps, endpoint=False):
            # Pitch the gripper z axis down onto the block, then spin about world Z
            rotation = pose.rotation() * _top_down_rotation(float(yaw))
            quat = rotation.as_quat()
            grasps.append(Pose(position=pose.position, orientation=tuple(quat)))
        return grasps


def _top_down_rotation(yaw: float) -> Rotation:
    return Rotation.from_euler("z", yaw) * Rotation.from_euler("y", math.pi)


class SimulatedMotionService:
    """
    Pick/place that succeeds or fails according to a script or a seeded rate.

    Args:
        scene: Scene updated on success (attach on pick, detach on place)
        failure_rate: Probability in [0, 1] of a random failure
        seed: Seed for the failure draws
        pick_script: Optional per-call outcomes for pick, consumed in order
        place_script: Optional per-call outcomes for place, consumed in order
    """

    def __init__(
        self,
        scene: Optional[SimulatedScene] = None,
        failure_rate: float = 0.0,
        seed: Optional[int] = None,
        pick_script: Optional[Sequence[bool]] = None,
        place_script: Optional[Sequence[bool]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError(f"failure_rate must be within [0, 1], got {failure_rate}")
        self.scene = scene
        self.failure_rate = failure_rate
        self._rng = np.random.default_rng(seed)
        self._pick_script = list(pick_script or [])
        self._place_script = list(place_script or [])
        self.logger = logger or get_structured_logger("SimulatedMotionService")

        self.support_surface: Optional[str] = None
        self.planner_id: Optional[str] = None
        self.planning_time: Optional[float] = None
        self.pick_calls: List[Tuple[str, List[GraspCandidate]]] = []
        self.place_calls: List[Tuple[str, List[PlaceCandidate]]] = []

    def set_support_surface(self, name: str) -> None:
        self.support_surface = name

    def set_planner_id(self, planner_id: str) -> None:
        self.planner_id = planner_id

    def set_planning_time(self, seconds: float) -> None:
        self.planning_time = seconds

    def _outcome(self, script: List[bool]) -> bool:
        if script:
            return bool(script.pop(0))
        return bool(self._rng.random() >= self.failure_rate)

    def pick(self, object_id: str, grasps: Sequence[GraspCandidate]) -> bool:
        self.pick_calls.append((object_id, list(grasps)))
        success = bool(grasps) and self._outcome(self._pick_script)
        if success and self.scene is not None:
            self.scene.attach(object_id)
        self.logger.debug("pick('%s', %d grasps) -> %s", object_id, len(grasps), success)
        return success

    def place(self, object_id: str, locations: Sequence[PlaceCandidate]) -> bool:
        self.place_calls.append((object_id, list(locations)))
        success = bool(locations) and self._outcome(self._place_script)
        if success and self.scene is not None:
            self.scene.detach(object_id, locations[0].place_pose)
        self.logger.debug("place('%s', %d locations) -> %s", object_id, len(locations), success)
        return success
