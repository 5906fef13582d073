"""
Task Orchestrator

Drives the robot through repeated pick-and-place cycles over a fixed work
list. The run is an explicit state machine:

    INIT -> SCENE_READY -> PICK_ATTEMPT <-> PLACE_ATTEMPT -> COMPLETED
                 ^                                              |
                 +---------------- repeat all ------------------+

Any state may end in ABORTED (actuator enable failure, operator declining a
retry, shutdown signal). COMPLETED ends in STOPPED when the repeat question
is declined. The actuator is disabled whenever the run ends.
"""

import logging
from typing import Callable, Dict, List, Optional

from .config import PickPlaceConfig
from .errors import (
    ActuatorEnableFailed,
    ManipulationFailure,
    OperatorAbort,
    PickFailed,
    PlaceFailed,
    RunTerminated,
    ShutdownRequested,
)
from .grasp_request import GraspRequestBuilder
from .interfaces import ActuatorInterface, GraspGenerator, MotionService, ScenePublisher
from .place_candidates import PlaceCandidateGenerator
from .retry_policy import RetryPolicy, make_retry_policy
from .scene import SceneSetup
from .shutdown import ShutdownSignal
from .task_types import OrchestratorState, RunReport, RunState, WorkItem
from .utils.logging_utils import get_structured_logger

TERMINAL_STATES = (OrchestratorState.ABORTED, OrchestratorState.STOPPED)


class TaskOrchestrator:
    """
    Sequential pick-and-place state machine. One object is in flight at a time.

    Example:
        >>> orchestrator = TaskOrchestrator(
        ...     config,
        ...     actuator=actuator,
        ...     scene_publisher=scene,
        ...     grasp_generator=grasps,
        ...     motion_service=motion,
        ... )
        >>> report = orchestrator.run()
        >>> report.exit_code
        0
    """

    def __init__(
        self,
        config: PickPlaceConfig,
        actuator: ActuatorInterface,
        scene_publisher: ScenePublisher,
        grasp_generator: GraspGenerator,
        motion_service: MotionService,
        retry_policy: Optional[RetryPolicy] = None,
        shutdown: Optional[ShutdownSignal] = None,
        on_state_change: Optional[Callable[[OrchestratorState, OrchestratorState], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Validated run configuration
            actuator: Robot enable/disable utility
            scene_publisher: Planning scene and visualization publisher
            grasp_generator: External grasp synthesis
            motion_service: Pick/place planning and execution
            retry_policy: Retry strategy (selected from the run state's auto_retry if None)
            shutdown: Cancellation signal shared with the retry policy
            on_state_change: Called with (old, new) on every transition
            logger: Optional logger

        Raises:
            ConfigurationError: invalid configuration
        """
        config.validate()
        self.config = config
        self.logger = logger or get_structured_logger("TaskOrchestrator")
        self.shutdown = shutdown or getattr(retry_policy, "shutdown", None) or ShutdownSignal()
        self.on_state_change = on_state_change

        self.actuator = actuator
        self.scene_publisher = scene_publisher
        self.motion_service = motion_service

        self.scene = SceneSetup(config, scene_publisher, logger=self.logger.getChild("SceneSetup"))
        self.run_state = RunState(
            work_items=self.scene.create_work_items(),
            auto_retry=config.auto_retry,
            auto_retry_delay_seconds=config.auto_retry_delay_seconds,
        )
        self.retry_policy = retry_policy or make_retry_policy(self.run_state, self.shutdown)
        self.place_generator = PlaceCandidateGenerator(config.grasp)
        self.grasp_builder = GraspRequestBuilder(
            grasp_generator,
            config.grasp,
            touch_ids=self.run_state.object_ids() + list(config.extra_touch_ids),
            logger=self.logger.getChild("GraspRequestBuilder"),
        )

        self._state = OrchestratorState.INIT
        self._item_index = 0
        self.report = RunReport()
        self._handlers: Dict[OrchestratorState, Callable[[], OrchestratorState]] = {
            OrchestratorState.INIT: self._on_init,
            OrchestratorState.SCENE_READY: self._on_scene_ready,
            OrchestratorState.PICK_ATTEMPT: self._on_pick_attempt,
            OrchestratorState.PLACE_ATTEMPT: self._on_place_attempt,
            OrchestratorState.COMPLETED: self._on_completed,
        }

    # ========================================================================
    # Public API
    # ========================================================================

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def work_items(self) -> List[WorkItem]:
        return self.run_state.work_items

    @property
    def current_item(self) -> Optional[WorkItem]:
        if 0 <= self._item_index < len(self.work_items):
            return self.work_items[self._item_index]
        return None

    def run(self) -> RunReport:
        """
        Run the state machine until it stops or aborts.

        Returns:
            RunReport describing the outcome

        Raises:
            Exception: unexpected collaborator errors, after the actuator is disabled
        """
        if self._state != OrchestratorState.INIT:
            raise RuntimeError(f"Orchestrator already ran (state: {self._state.value})")

        try:
            while self._state not in TERMINAL_STATES:
                try:
                    next_state = self._handlers[self._state]()
                except RunTerminated as e:
                    self.report.abort_reason = e.reason
                    if isinstance(e, ShutdownRequested):
                        self.logger.warning("Stopping: %s", e)
                    else:
                        self.logger.warning("Stopping at operator request: %s", e)
                    next_state = OrchestratorState.ABORTED
                self._transition(next_state)
        except Exception as e:
            self.logger.error("Unrecoverable error in state %s: %s", self._state.value, e)
            self.report.abort_reason = f"error: {e}"
            self._transition(OrchestratorState.ABORTED)
            raise
        finally:
            self.report.final_state = self._state
            self._disable_actuator()

        self.logger.info(
            "Run finished (%s): %d cycle(s), %d object(s) placed",
            self._state.value,
            self.report.cycles_completed,
            self.report.items_completed,
        )
        return self.report

    # ========================================================================
    # State handlers
    # ========================================================================

    def _on_init(self) -> OrchestratorState:
        self.logger.info("Enabling robot (planning group '%s')...", self.config.planning_group)
        try:
            enabled = self.actuator.enable()
        except ActuatorEnableFailed as e:
            self.logger.error("Failed to enable robot: %s", e)
            enabled = False
        if not enabled:
            self.logger.error("Robot could not be enabled; aborting run")
            self.report.abort_reason = "actuator_enable_failed"
            return OrchestratorState.ABORTED
        self._apply_motion_settings("set_planning_time", self.config.planning_time)
        return OrchestratorState.SCENE_READY

    def _on_scene_ready(self) -> OrchestratorState:
        self._check_running()
        self.scene.publish_static_scene()
        for item in self.work_items:
            self._reset_item(item)
        self._item_index = 0
        return OrchestratorState.PICK_ATTEMPT

    def _on_pick_attempt(self) -> OrchestratorState:
        self._check_running()
        item = self.current_item
        self.logger.info("Picking '%s'", item.id)
        self.report.count(self.report.pick_attempts, item.id)
        self.scene_publisher.publish_marker(item.start_pose, self.config.grasp.block_size, False)

        try:
            grasps = self.grasp_builder.build(item.start_pose, object_id=item.id)
            self._apply_motion_settings("set_support_surface", self.config.scene.support_surface_name)
            if not self.motion_service.pick(item.id, grasps):
                raise PickFailed(item.id, f"pick of '{item.id}' failed")
        except ManipulationFailure as e:
            self.logger.warning("Pick failed: %s", e)
            self._confirm_retry()
            self._reset_item(item)
            return OrchestratorState.PICK_ATTEMPT

        self.logger.info("Done with pick of '%s'", item.id)
        return OrchestratorState.PLACE_ATTEMPT

    def _on_place_attempt(self) -> OrchestratorState:
        self._check_running()
        item = self.current_item
        self.logger.info("Placing '%s'", item.id)
        self.report.count(self.report.place_attempts, item.id)

        candidates = self.place_generator.generate(item.goal_pose)
        for candidate in candidates:
            self.scene_publisher.publish_marker(candidate.place_pose, self.config.grasp.block_size, True)

        try:
            self._apply_motion_settings("set_support_surface", self.config.scene.support_surface_name)
            self._apply_motion_settings("set_planner_id", self.config.planner_id)
            if not self.motion_service.place(item.id, candidates):
                raise PlaceFailed(item.id, f"place of '{item.id}' failed")
        except ManipulationFailure as e:
            # No reset here: the object may still be attached to the gripper.
            self.logger.warning("Place failed: %s", e)
            self._confirm_retry()
            return OrchestratorState.PLACE_ATTEMPT

        self.logger.info("Done with place of '%s'", item.id)
        self.report.items_completed += 1
        self._item_index += 1
        if self._item_index < len(self.work_items):
            return OrchestratorState.PICK_ATTEMPT
        return OrchestratorState.COMPLETED

    def _on_completed(self) -> OrchestratorState:
        self.report.cycles_completed += 1
        self.logger.info("Finished picking and placing %d blocks!", len(self.work_items))
        if self.retry_policy.should_repeat_all():
            return OrchestratorState.SCENE_READY
        return OrchestratorState.STOPPED

    # ========================================================================
    # Helpers
    # ========================================================================

    def _transition(self, new_state: OrchestratorState) -> None:
        old_state = self._state
        self._state = new_state
        if old_state != new_state:
            self.logger.debug("State: %s -> %s", old_state.value, new_state.value)
        if self.on_state_change:
            self.on_state_change(old_state, new_state)

    def _check_running(self) -> None:
        if self.shutdown.is_set():
            raise ShutdownRequested(self.shutdown.reason or "shutdown requested")

    def _confirm_retry(self) -> None:
        """Ask the retry policy; raise to end the run when it declines."""
        if self.retry_policy.should_retry():
            return
        if self.shutdown.is_set():
            raise ShutdownRequested(self.shutdown.reason or "shutdown requested")
        raise OperatorAbort("operator declined retry")

    def _reset_item(self, item: WorkItem) -> None:
        self.scene.reset_work_item(item)
        self.report.count(self.report.resets, item.id)

    def _apply_motion_settings(self, method_name: str, value) -> None:
        """Call an optional motion-service tuning hook if the backend provides it."""
        method = getattr(self.motion_service, method_name, None)
        if callable(method):
            method(value)

    def _disable_actuator(self) -> None:
        self.logger.info("Disabling robot")
        self.actuator.disable()
