"""Core watch loop — poll a run until it reaches a terminal status.

Guarantees
----------
* The progress callback sees every poll, first and terminal included,
  in arrival order.
* No sleep happens when the first poll is already terminal.
* A failed fetch aborts the watch; there is no internal retry.
* Only :class:`~deploy_pilot.exceptions.DeployPilotError` subclasses escape.
"""

from __future__ import annotations

import logging

from deploy_pilot.core.models import WorkflowRun
from deploy_pilot.core.protocols import CIProvider, ProgressCallback
from deploy_pilot.core.waiting import CancelToken
from deploy_pilot.exceptions import CIError, DeployPilotError, RunWatchError

logger = logging.getLogger(__name__)


class WorkflowWatcher:
    """Blocking poller for a single workflow run.

    Parameters
    ----------
    provider:
        Any object satisfying the :class:`CIProvider` protocol.
    interval:
        Seconds between two polls of a non-terminal run.
    token:
        Cancellation token every wait goes through.
    """

    def __init__(
        self,
        provider: CIProvider,
        *,
        interval: float,
        token: CancelToken,
    ) -> None:
        self._provider = provider
        self._interval = interval
        self._token = token

    def watch(
        self,
        run_id: int,
        progress_callback: ProgressCallback | None = None,
    ) -> WorkflowRun:
        """Block until run *run_id* completes and return its final record.

        Raises
        ------
        RunWatchError
            When a poll fails to fetch the run record.
        RunStateRegressionError
            When the CI system reports a completed run as in flight again.
        OperationCancelledError
            If the token is cancelled or its deadline passes.
        """
        previous: WorkflowRun | None = None
        polls = 0
        while True:
            current = self._fetch(run_id)
            polls += 1
            if previous is not None:
                current = previous.advanced_to(current)
            previous = current

            if progress_callback is not None:
                progress_callback(current.status)

            if current.is_terminal:
                logger.debug(
                    "Run #%s finished after %d poll(s): %s",
                    run_id, polls, current.conclusion or "<none>",
                )
                return current

            self._token.sleep(self._interval)

    def _fetch(self, run_id: int) -> WorkflowRun:
        """Call the provider and ensure only our exceptions escape."""
        try:
            return self._provider.get_run(run_id)
        except RunWatchError:
            raise
        except CIError as exc:
            raise RunWatchError(
                f"Failed to watch workflow run #{run_id}: {exc}",
                hint=exc.hint,
            ) from exc
        except DeployPilotError:
            raise
        except Exception as exc:
            raise RunWatchError(
                f"Failed to get status of workflow run #{run_id}: {exc}",
            ) from exc
