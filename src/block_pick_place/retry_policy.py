"""
Retry policies.

Both variants answer the same two questions, after first checking the
shutdown signal:
- should_retry(): try the failed pick/place again?
- should_repeat_all(): run the whole work list again after a full cycle?

A shutdown requested while the answer is pending always wins over the answer.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

from .config import PickPlaceConfig
from .errors import ShutdownRequested
from .shutdown import ShutdownSignal
from .task_types import RunState
from .utils.logging_utils import get_structured_logger


class RetryPolicy(ABC):
    """Base class; subclasses implement `_decide`."""

    def __init__(self, shutdown: Optional[ShutdownSignal] = None, logger: Optional[logging.Logger] = None):
        self.shutdown = shutdown or ShutdownSignal()
        self.logger = logger or get_structured_logger("RetryPolicy")

    def should_retry(self) -> bool:
        return self._ask("Retry? (y/n) ")

    def should_repeat_all(self) -> bool:
        return self._ask("Repeat all pick and place operations? (y/n) ")

    def _ask(self, question: str) -> bool:
        if self.shutdown.is_set():
            return False
        decision = self._decide(question)
        return decision and not self.shutdown.is_set()

    @abstractmethod
    def _decide(self, question: str) -> bool:
        ...


class AutoRetryPolicy(RetryPolicy):
    """Always says yes after a fixed delay; never asks the operator."""

    def __init__(
        self,
        delay_seconds: float = 4,
        shutdown: Optional[ShutdownSignal] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(shutdown, logger)
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")
        self.delay_seconds = delay_seconds

    def _decide(self, question: str) -> bool:
        del question
        self.logger.info("Auto-retrying in %s seconds", self.delay_seconds)
        interrupted = self.shutdown.wait(self.delay_seconds)
        return not interrupted


class InteractiveRetryPolicy(RetryPolicy):
    """Blocks on a single-character operator answer; only 'n' means no."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        shutdown: Optional[ShutdownSignal] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(shutdown, logger)
        self.input_fn = input_fn

    def _decide(self, question: str) -> bool:
        try:
            with self.shutdown.interruptible():
                answer = self.input_fn(question)
        except EOFError:
            self.logger.warning("No operator input available; treating as 'n'")
            return False
        except ShutdownRequested:
            self.logger.warning("Prompt interrupted by shutdown")
            return False
        answer = (answer or "").strip()
        return not answer or answer[0] != "n"


def make_retry_policy(
    settings: Union[RunState, PickPlaceConfig],
    shutdown: Optional[ShutdownSignal] = None,
    input_fn: Callable[[str], str] = input,
) -> RetryPolicy:
    """Select the policy variant from the auto_retry flag of a run state or config."""
    if settings.auto_retry:
        return AutoRetryPolicy(settings.auto_retry_delay_seconds, shutdown=shutdown)
    return InteractiveRetryPolicy(input_fn=input_fn, shutdown=shutdown)
