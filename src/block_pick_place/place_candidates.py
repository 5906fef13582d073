"""
Place candidate generation.

Every goal pose is offered to the motion service at four headings about the
world Z axis. Position is never changed; only the orientation is replaced.
"""

import math
from typing import List, Optional, Tuple

from .config import GraspConfig
from .errors import ConfigurationError
from .geometry import Pose, yaw_quaternion
from .task_types import MotionHint, PlaceCandidate

PLACE_YAW_ANGLES: Tuple[float, ...] = (0.0, math.pi / 2, math.pi, 3 * math.pi / 2)

APPROACH_DIRECTION = (0.0, 0.0, -1.0)
RETREAT_DIRECTION = (0.0, 0.0, 1.0)


class PlaceCandidateGenerator:
    """Pure function of the goal pose and the grasp configuration."""

    def __init__(self, grasp_config: Optional[GraspConfig] = None):
        grasp_config = grasp_config or GraspConfig()
        desired = grasp_config.approach_retreat_desired_dist
        minimum = grasp_config.approach_retreat_min_dist
        if minimum < 0 or desired < minimum:
            raise ConfigurationError(
                f"invalid approach/retreat distances: desired={desired}, min={minimum}"
            )
        self.grasp_config = grasp_config
        self.frame_id = grasp_config.base_link
        self.approach = MotionHint(APPROACH_DIRECTION, desired, minimum, frame_id=self.frame_id)
        self.retreat = MotionHint(RETREAT_DIRECTION, desired, minimum, frame_id=self.frame_id)

    def generate(self, goal_pose: Pose) -> List[PlaceCandidate]:
        """Return the four place candidates in preference order (0, 90, 180, 270 degrees)."""
        return [
            PlaceCandidate(
                place_pose=goal_pose.with_orientation(yaw_quaternion(angle)),
                approach=self.approach,
                retreat=self.retreat,
                # Release with the open gripper command
                post_place_posture=self.grasp_config.pre_grasp_posture,
                frame_id=self.frame_id,
            )
            for angle in PLACE_YAW_ANGLES
        ]
