"""
Collaborator contracts consumed by the orchestrator.

Backends are duck-typed; these protocols document the calls the orchestrator
makes. Optional motion-service tuning hooks (set_support_surface,
set_planner_id, set_planning_time) are looked up with getattr and skipped
when absent.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from .config import ObstacleConfig
from .geometry import Pose, Vector3
from .task_types import GraspCandidate, PlaceCandidate


class ActuatorInterface(Protocol):
    """Coarse power/safety toggle for the arm."""

    def enable(self) -> bool:
        ...

    def disable(self) -> None:
        ...


class ScenePublisher(Protocol):
    """Planning scene bookkeeping and visualization. Side effects only."""

    def publish_static_scene(self, obstacles: Sequence[ObstacleConfig]) -> None:
        ...

    def publish_collision_representation(self, object_id: str, pose: Pose, size: Vector3) -> None:
        ...

    def remove_collision_representation(self, object_id: str) -> None:
        ...

    def remove_attached_representation(self, object_id: str) -> None:
        ...

    def publish_marker(self, pose: Pose, size: float, is_goal: bool) -> None:
        ...


class GraspGenerator(Protocol):
    """Synthesizes raw grasp poses for an object pose."""

    def generate_grasps(self, pose: Pose, grasp_config: Any) -> Sequence[Pose]:
        ...


class MotionService(Protocol):
    """Plans and executes a pick or place for a named object."""

    def pick(self, object_id: str, grasps: Sequence[GraspCandidate]) -> bool:
        ...

    def place(self, object_id: str, locations: Sequence[PlaceCandidate]) -> bool:
        ...
