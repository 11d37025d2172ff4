"""Deployment pull-request lifecycle: find, inspect, confirm, merge.

The ``deploy/`` head-branch prefix is the only correlation key between a
pull request and a deployment.  When several deployment PRs are open,
candidates are ordered by creation time (newest first) rather than
trusting the remote's default listing order, and the ambiguity is logged.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from deploy_pilot.core.models import PR_STATE_OPEN, PullRequest
from deploy_pilot.core.protocols import CIProvider, Prompter
from deploy_pilot.exceptions import (
    DeployPilotError,
    MergeFailedError,
    PullRequestStateError,
)

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class PRLifecycleManager:
    """Correlates deployments to pull requests and performs the merge.

    Parameters
    ----------
    provider:
        Any object satisfying the :class:`CIProvider` protocol.
    auto_approve:
        Skip the interactive confirmation and treat it as "yes".  Must be
        ``True`` when no *prompter* is supplied.
    prompter:
        Interactive confirmation surface, used when *auto_approve* is off.
    """

    def __init__(
        self,
        provider: CIProvider,
        *,
        auto_approve: bool,
        prompter: Prompter | None = None,
    ) -> None:
        if not auto_approve and prompter is None:
            raise ValueError("a prompter is required unless auto_approve is set")
        self._provider = provider
        self._auto_approve = auto_approve
        self._prompter = prompter

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def deployment_prs(self) -> list[PullRequest]:
        """Return open deployment PRs, newest first.

        The sort is stable: entries without a creation timestamp keep the
        remote's relative order, after any timestamped entries.
        """
        prs = self._provider.list_prs(PR_STATE_OPEN)
        candidates = [pr for pr in prs if pr.is_deployment]
        return sorted(candidates, key=_created_key, reverse=True)

    @property
    def auto_approve(self) -> bool:
        return self._auto_approve

    def find_latest_deployment_pr(
        self,
        candidates: Sequence[PullRequest] | None = None,
    ) -> PullRequest | None:
        """Return the newest open deployment PR, or ``None``.

        *candidates* is an already sorted :meth:`deployment_prs` listing;
        a fresh one is fetched when omitted.
        """
        if candidates is None:
            candidates = self.deployment_prs()
        if not candidates:
            return None
        latest = candidates[0]
        if len(candidates) > 1:
            logger.warning(
                "%d open deployment PRs found; selecting the newest, #%d (%s)",
                len(candidates), latest.number, latest.head_ref_name,
            )
        return latest

    def get(self, number: int) -> PullRequest:
        return self._provider.get_pr(number)

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    @staticmethod
    def ensure_open(pr: PullRequest) -> None:
        """Raise :class:`PullRequestStateError` unless *pr* is open."""
        if not pr.is_open:
            raise PullRequestStateError(pr.number, pr.state)

    def confirm(self, pr: PullRequest) -> bool:
        """Return whether the merge of *pr* may proceed."""
        if self._auto_approve:
            return True
        if self._prompter is None:
            raise ValueError("no prompter configured")
        return self._prompter.confirm_merge(pr)

    def merge(
        self,
        pr: PullRequest,
        *,
        method: str = "squash",
        delete_branch: bool = True,
    ) -> None:
        """Merge *pr*, refusing when it is not open.

        Raises
        ------
        PullRequestStateError
            If *pr* is merged or closed; no merge request is issued.
        MergeFailedError
            If the CI system rejects the merge.
        """
        self.ensure_open(pr)
        try:
            self._provider.merge_pr(pr.number, method, delete_branch)
        except MergeFailedError:
            raise
        except DeployPilotError as exc:
            raise MergeFailedError(
                f"Failed to merge PR #{pr.number}: {exc}",
                hint=exc.hint,
            ) from exc
        logger.debug("Merged PR #%d with method=%s", pr.number, method)


def _created_key(pr: PullRequest) -> datetime:
    if pr.created_at is None:
        return _OLDEST
    if pr.created_at.tzinfo is None:
        return pr.created_at.replace(tzinfo=timezone.utc)
    return pr.created_at
