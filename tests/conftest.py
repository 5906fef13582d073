"""
Shared test configuration and fixtures.
"""

import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest

# Allow running the suite from a checkout without installing the package
SRC_DIR = Path(__file__).parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from block_pick_place.config import ObjectSpec, PickPlaceConfig  # noqa: E402
from block_pick_place.orchestrator import TaskOrchestrator  # noqa: E402
from block_pick_place.retry_policy import InteractiveRetryPolicy, RetryPolicy  # noqa: E402
from block_pick_place.shutdown import ShutdownSignal  # noqa: E402
from block_pick_place.simulation import (  # noqa: E402
    SimulatedActuator,
    SimulatedGraspGenerator,
    SimulatedMotionService,
    SimulatedScene,
)


class ScriptedInput:
    """Stand-in for input(): replays answers and records the questions asked."""

    def __init__(self, answers: Sequence[str], default: Optional[str] = None):
        self.answers = list(answers)
        self.default = default
        self.questions: List[str] = []

    def __call__(self, question: str) -> str:
        self.questions.append(question)
        if self.answers:
            return self.answers.pop(0)
        if self.default is None:
            raise AssertionError(f"unexpected prompt: {question!r}")
        return self.default


@pytest.fixture
def config() -> PickPlaceConfig:
    """Interactive config with the three default blocks."""
    cfg = PickPlaceConfig(auto_retry=False, auto_retry_delay_seconds=0)
    cfg.validate()
    return cfg


@pytest.fixture
def single_item_config() -> PickPlaceConfig:
    return PickPlaceConfig(
        auto_retry=False,
        auto_retry_delay_seconds=0,
        objects=[ObjectSpec("W1", 0.55, -0.4)],
    )


@pytest.fixture
def scene() -> SimulatedScene:
    return SimulatedScene()


@pytest.fixture
def actuator() -> SimulatedActuator:
    return SimulatedActuator()


@pytest.fixture
def shutdown() -> ShutdownSignal:
    return ShutdownSignal()


@pytest.fixture
def make_orchestrator(scene, actuator, shutdown) -> Callable[..., TaskOrchestrator]:
    """
    Factory building an orchestrator over simulated backends.

    Keyword args: config, answers (operator replies), motion, grasp_generator,
    retry_policy, on_state_change, logger.
    """

    def _make(
        config: PickPlaceConfig,
        answers: Sequence[str] = (),
        motion: Optional[SimulatedMotionService] = None,
        grasp_generator=None,
        retry_policy: Optional[RetryPolicy] = None,
        **kwargs,
    ) -> TaskOrchestrator:
        prompt = ScriptedInput(answers)
        if retry_policy is None:
            retry_policy = InteractiveRetryPolicy(input_fn=prompt, shutdown=shutdown)
        orchestrator = TaskOrchestrator(
            config,
            actuator=actuator,
            scene_publisher=scene,
            grasp_generator=grasp_generator or SimulatedGraspGenerator(num_grasps=4),
            motion_service=motion or SimulatedMotionService(scene=scene),
            retry_policy=retry_policy,
            shutdown=shutdown,
            **kwargs,
        )
        orchestrator.prompt = prompt
        return orchestrator

    return _make
