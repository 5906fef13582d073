"""Block pick-and-place task orchestration"""

from pathlib import Path

from dotenv import load_dotenv

__version__ = "0.1.0"

# Load environment overrides from a .env file in the project root
project_root = Path(__file__).resolve().parents[2]
dotenv_path = project_root / ".env"
if dotenv_path.exists():
    load_dotenv(dotenv_path)

from .config import GraspConfig, PickPlaceConfig, SceneConfig, load_config  # noqa: E402
from .errors import (  # noqa: E402
    ActuatorEnableFailed,
    ConfigurationError,
    NoGraspsFound,
    OperatorAbort,
    PickFailed,
    PickPlaceError,
    PlaceFailed,
    ShutdownRequested,
)
from .geometry import Pose  # noqa: E402
from .grasp_request import GraspRequestBuilder  # noqa: E402
from .orchestrator import TaskOrchestrator  # noqa: E402
from .place_candidates import PlaceCandidateGenerator  # noqa: E402
from .retry_policy import AutoRetryPolicy, InteractiveRetryPolicy, RetryPolicy, make_retry_policy  # noqa: E402
from .scene import SceneSetup  # noqa: E402
from .shutdown import ShutdownSignal  # noqa: E402
from .task_types import (  # noqa: E402
    GraspCandidate,
    MotionHint,
    OrchestratorState,
    PlaceCandidate,
    RunReport,
    RunState,
    WorkItem,
)

__all__ = [
    # Configuration
    "PickPlaceConfig",
    "GraspConfig",
    "SceneConfig",
    "load_config",

    # Errors
    "PickPlaceError",
    "ConfigurationError",
    "ActuatorEnableFailed",
    "NoGraspsFound",
    "PickFailed",
    "PlaceFailed",
    "OperatorAbort",
    "ShutdownRequested",

    # Data model
    "Pose",
    "WorkItem",
    "MotionHint",
    "GraspCandidate",
    "PlaceCandidate",
    "RunState",
    "RunReport",
    "OrchestratorState",

    # Components
    "SceneSetup",
    "PlaceCandidateGenerator",
    "GraspRequestBuilder",
    "RetryPolicy",
    "AutoRetryPolicy",
    "InteractiveRetryPolicy",
    "make_retry_policy",
    "ShutdownSignal",
    "TaskOrchestrator",
]
