"""
Error taxonomy for the pick-and-place run.

Manipulation failures (NoGraspsFound, PickFailed, PlaceFailed) are resolved
by the retry policy at the attempt boundary. OperatorAbort and
ShutdownRequested end the run through the aborted path. ConfigurationError
and ActuatorEnableFailed are fatal before any motion happens.
"""

from typing import Optional


class PickPlaceError(Exception):
    """Base class for all pick-and-place errors."""


class ConfigurationError(PickPlaceError):
    """Invalid startup configuration."""


class ActuatorEnableFailed(PickPlaceError):
    """The robot could not be enabled; the run never starts."""


class ManipulationFailure(PickPlaceError):
    """A single pick or place attempt did not succeed."""

    def __init__(self, object_id: str, message: Optional[str] = None):
        self.object_id = object_id
        super().__init__(message or f"{type(self).__name__} for '{object_id}'")


class NoGraspsFound(ManipulationFailure):
    """The grasp generator returned no candidates for an object."""


class PickFailed(ManipulationFailure):
    pass


class PlaceFailed(ManipulationFailure):
    pass


class RunTerminated(PickPlaceError):
    """The run is ending without completing its work list."""

    reason = "terminated"


class OperatorAbort(RunTerminated):
    """The operator declined to retry."""

    reason = "operator_abort"


class ShutdownRequested(RunTerminated):
    """The process-wide shutdown signal was raised."""

    reason = "shutdown_requested"
