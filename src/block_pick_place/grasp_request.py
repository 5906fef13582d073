"""
Grasp request building.

Wraps the external grasp generator and marks every returned grasp with the
ids of all work items, since neighbouring blocks sit close enough on the
table that the gripper may nudge them while picking.
"""

import logging
from typing import Iterable, List, Optional

from .config import GraspConfig
from .errors import NoGraspsFound
from .geometry import Pose
from .interfaces import GraspGenerator
from .place_candidates import APPROACH_DIRECTION, RETREAT_DIRECTION
from .task_types import GraspCandidate, MotionHint
from .utils.logging_utils import get_structured_logger


class GraspRequestBuilder:
    """Turns raw grasp poses into GraspCandidates for one pick attempt."""

    def __init__(
        self,
        grasp_generator: GraspGenerator,
        grasp_config: GraspConfig,
        touch_ids: Iterable[str],
        logger: Optional[logging.Logger] = None,
    ):
        self.grasp_generator = grasp_generator
        self.grasp_config = grasp_config
        self.allowed_touch_ids = frozenset(touch_ids)
        self.logger = logger or get_structured_logger("GraspRequestBuilder")
        desired = grasp_config.approach_retreat_desired_dist
        minimum = grasp_config.approach_retreat_min_dist
        self.approach = MotionHint(APPROACH_DIRECTION, desired, minimum, frame_id=grasp_config.base_link)
        self.retreat = MotionHint(RETREAT_DIRECTION, desired, minimum, frame_id=grasp_config.base_link)

    def build(self, start_pose: Pose, grasp_config: Optional[GraspConfig] = None, object_id: str = "") -> List[GraspCandidate]:
        """
        Generate grasps for the object at start_pose.

        Raises:
            NoGraspsFound: the generator returned nothing
        """
        grasp_config = grasp_config or self.grasp_config
        raw_grasps = list(self.grasp_generator.generate_grasps(start_pose, grasp_config))
        if not raw_grasps:
            raise NoGraspsFound(object_id, f"no grasps generated for '{object_id or start_pose.position}'")

        self.logger.debug("Generated %d grasps for '%s'", len(raw_grasps), object_id)
        gripper_config = {
            "pre_grasp_posture": grasp_config.pre_grasp_posture,
            "grasp_posture": grasp_config.grasp_posture,
        }
        return [
            GraspCandidate(
                pose=pose,
                gripper_config=gripper_config,
                allowed_touch_ids=self.allowed_touch_ids,
                approach=self.approach,
                retreat=self.retreat,
            )
            for pose in raw_grasps
        ]
