"""
Task Types

Data structures exchanged between the orchestrator and its collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

import numpy as np

from .geometry import Pose, Vector3


class OrchestratorState(Enum):
    """Run states of the pick-and-place orchestrator."""
    INIT = "init"
    SCENE_READY = "scene_ready"  # Static scene up, work items reset for this cycle
    PICK_ATTEMPT = "pick_attempt"
    PLACE_ATTEMPT = "place_attempt"
    COMPLETED = "completed"  # All work items placed in this cycle
    ABORTED = "aborted"
    STOPPED = "stopped"  # Finished normally after the last cycle


@dataclass(frozen=True)
class WorkItem:
    """One object to relocate from start_pose to goal_pose."""

    id: str
    start_pose: Pose
    goal_pose: Pose

    @classmethod
    def from_start(cls, object_id: str, start_pose: Pose, goal_offset: Vector3) -> "WorkItem":
        """Derive the goal by translating the start pose by a fixed offset."""
        return cls(id=object_id, start_pose=start_pose, goal_pose=start_pose.translated(*goal_offset))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start_pose": self.start_pose.to_dict(),
            "goal_pose": self.goal_pose.to_dict(),
        }


@dataclass(frozen=True)
class MotionHint:
    """
    Straight-line gripper translation used before/after a grasp or place.

    direction is a unit vector expressed in frame_id.
    """

    direction: Vector3
    desired_distance: float
    min_distance: float
    frame_id: str = "base"

    def __post_init__(self):
        vec = np.asarray(self.direction, dtype=float)
        norm = float(np.linalg.norm(vec))
        if vec.shape != (3,) or norm < 1e-9:
            raise ValueError(f"direction must be a non-zero 3-vector, got {self.direction}")
        if not 0.0 <= self.min_distance <= self.desired_distance:
            raise ValueError(
                f"expected 0 <= min_distance <= desired_distance, "
                f"got min={self.min_distance} desired={self.desired_distance}"
            )
        object.__setattr__(self, "direction", tuple(float(v) for v in vec / norm))


@dataclass(frozen=True)
class GraspCandidate:
    """A gripper pose proposed for picking one object."""

    pose: Pose
    gripper_config: Any = None
    allowed_touch_ids: FrozenSet[str] = frozenset()
    approach: Optional[MotionHint] = None
    retreat: Optional[MotionHint] = None


@dataclass(frozen=True)
class PlaceCandidate:
    """A release pose plus approach/retreat translations."""

    place_pose: Pose
    approach: MotionHint
    retreat: MotionHint
    post_place_posture: Any = None
    frame_id: str = "base"


@dataclass
class RunState:
    """Mutable run state, owned by exactly one orchestrator."""

    work_items: List[WorkItem]
    auto_retry: bool = True
    auto_retry_delay_seconds: int = 4

    def object_ids(self) -> List[str]:
        return [item.id for item in self.work_items]


@dataclass
class RunReport:
    """Outcome of one orchestrator run."""

    final_state: OrchestratorState = OrchestratorState.INIT
    abort_reason: Optional[str] = None
    cycles_completed: int = 0
    items_completed: int = 0  # Across all cycles
    pick_attempts: Dict[str, int] = field(default_factory=dict)
    place_attempts: Dict[str, int] = field(default_factory=dict)
    resets: Dict[str, int] = field(default_factory=dict)

    @property
    def exit_code(self) -> int:
        return 1 if self.final_state == OrchestratorState.ABORTED else 0

    def count(self, counter: Dict[str, int], object_id: str) -> None:
        counter[object_id] = counter.get(object_id, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final_state": self.final_state.value,
            "abort_reason": self.abort_reason,
            "cycles_completed": self.cycles_completed,
            "items_completed": self.items_completed,
            "pick_attempts": dict(self.pick_attempts),
            "place_attempts": dict(self.place_attempts),
            "resets": dict(self.resets),
            "exit_code": self.exit_code,
        }
