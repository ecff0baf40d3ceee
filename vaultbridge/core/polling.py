"""Caller-side polling loop for retrieval jobs."""
import logging
import threading
import time
from typing import Callable, Optional

import tenacity
from tenacity import RetryCallState, RetryError, Retrying, before_sleep_log, retry_if_result, stop_never
from tenacity.stop import stop_base
from tenacity.wait import wait_base

from vaultbridge.errors import InvalidArgumentError, RetrievalCancelledError, RetrievalTimeoutError
from vaultbridge.models import JobStatus
from .cold_store import ColdStore

logger = logging.getLogger(__name__)


class _StopAtDeadline(stop_base):
    """Stop polling once clock() reaches the deadline."""

    def __init__(self, deadline: float, clock: Callable[[], float]):
        self.deadline = deadline
        self.clock = clock

    def __call__(self, retry_state: RetryCallState) -> bool:
        return self.clock() >= self.deadline


class _WaitUntilDeadline(wait_base):
    """Backoff wait that never sleeps past the deadline."""

    def __init__(self, backoff: wait_base, deadline: float, clock: Callable[[], float]):
        self.backoff = backoff
        self.deadline = deadline
        self.clock = clock

    def __call__(self, retry_state: RetryCallState) -> float:
        return max(0.0, min(self.backoff(retry_state), self.deadline - self.clock()))


def _still_running(status: JobStatus) -> bool:
    return not status.is_terminal


def wait_for_retrieval(
    cold_store: ColdStore,
    job_id: str,
    *,
    initial_delay: float = 60.0,
    max_delay: float = 900.0,
    multiplier: float = 2.0,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
) -> JobStatus:
    """
    Poll a retrieval job until the store reports a terminal status.

    Sleeps between polls with exponential backoff: initial_delay, then
    initial_delay * multiplier, ... capped at max_delay. Sleeping waits on
    cancel_event, so setting it from another thread stops the loop promptly.
    The output is not fetched.

    Args:
        cold_store: Client that initiated (or resumed) the job
        job_id: Job to poll
        initial_delay: Seconds before the second poll
        max_delay: Upper bound on the delay between polls
        multiplier: Growth factor of the delay
        timeout: Give up after this many seconds; None waits indefinitely
        cancel_event: Event that cancels the wait when set
        clock: Monotonic time source in seconds, used for the timeout

    Returns:
        JobStatus.SUCCEEDED or JobStatus.FAILED

    Raises:
        RetrievalCancelledError: If cancel_event was set
        RetrievalTimeoutError: If timeout elapsed first
    """
    if initial_delay < 0 or max_delay < 0 or multiplier < 1:
        raise InvalidArgumentError("delays must be non-negative and multiplier at least 1")

    cancel_event = cancel_event or threading.Event()

    def poll() -> JobStatus:
        if cancel_event.is_set():
            raise RetrievalCancelledError(job_id)
        return cold_store.poll_status(job_id)

    def sleep(delay: float) -> None:
        if cancel_event.wait(delay):
            raise RetrievalCancelledError(job_id)

    wait = tenacity.wait_exponential(multiplier=initial_delay, exp_base=multiplier, max=max_delay)
    stop = stop_never
    if timeout is not None:
        deadline = clock() + timeout
        wait = _WaitUntilDeadline(wait, deadline, clock)
        stop = _StopAtDeadline(deadline, clock)

    retrying = Retrying(
        retry=retry_if_result(_still_running),
        wait=wait,
        stop=stop,
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.DEBUG),
    )

    try:
        status = retrying(poll)
    except RetryError as e:
        raise RetrievalTimeoutError(job_id, timeout, last_status=e.last_attempt.result()) from e

    logger.info(f"Job {job_id} finished with status {status.value}")
    return status
