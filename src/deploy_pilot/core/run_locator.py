"""Find the run a workflow dispatch just produced.

``gh workflow run`` returns as soon as GitHub accepts the dispatch, but
the run does not show up in ``gh run list`` until some seconds later.
:class:`RunLocator` bridges that gap with a fixed number of attempts at a
fixed interval — no backoff, no jitter.

Absence after the last attempt is **not** an error: :meth:`RunLocator.locate`
returns ``None`` and the caller reports it as a soft failure.
"""

from __future__ import annotations

import logging

from deploy_pilot.core.models import WorkflowRun
from deploy_pilot.core.protocols import CIProvider
from deploy_pilot.core.waiting import CancelToken
from deploy_pilot.exceptions import CIError

logger = logging.getLogger(__name__)


class RunLocator:
    """Bounded search for the most recent run of a workflow.

    Parameters
    ----------
    provider:
        Any object satisfying the :class:`CIProvider` protocol.
    max_attempts:
        Hard ceiling on the number of listing queries (``>= 1``).
    interval:
        Seconds to wait between two attempts.
    token:
        Cancellation token every wait goes through.
    """

    def __init__(
        self,
        provider: CIProvider,
        *,
        max_attempts: int,
        interval: float,
        token: CancelToken,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._provider = provider
        self._max_attempts = max_attempts
        self._interval = interval
        self._token = token

    def locate(self, workflow: str) -> WorkflowRun | None:
        """Return the latest run of *workflow*, or ``None`` if none appears.

        A freshly queued run is accepted as-is; waiting for it to finish
        is the watcher's job.  Listing errors count as absence for that
        attempt.

        Raises
        ------
        OperationCancelledError
            If the token is cancelled between attempts.
        """
        for attempt in range(1, self._max_attempts + 1):
            run = self._query(workflow, attempt)
            if run is not None:
                logger.debug(
                    "Found run #%s of %s on attempt %d", run.id, workflow, attempt,
                )
                return run
            if attempt < self._max_attempts:
                self._token.sleep(self._interval)

        logger.info(
            "No run of %s visible after %d attempts", workflow, self._max_attempts,
        )
        return None

    def _query(self, workflow: str, attempt: int) -> WorkflowRun | None:
        try:
            runs = self._provider.list_runs(workflow, limit=1)
        except CIError as exc:
            logger.debug("Attempt %d listing %s failed: %s", attempt, workflow, exc)
            return None
        return runs[0] if runs else None
