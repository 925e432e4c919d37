"""Run task orchestration: plan -> comment -> callback."""

from __future__ import annotations

from . import log
from .config import ServiceConfig
from .ghapp import client_from_config
from .github import GitHubClient
from .giturl import parse_pull_request_url
from .lifecycle import CommentLifecycle
from .render import render_plan_comment
from .tfe import RunTaskRequest, TFEClient

SKIPPED_MESSAGE = "Skipped pushing the plan result to VCS"
SUCCEEDED_MESSAGE = "Succeeded pushing the plan result to VCS"


class RunTaskService:
    """Handles one run task request at a time; holds no per-request state."""

    def __init__(
        self,
        config: ServiceConfig,
        *,
        github: GitHubClient | None = None,
        tfe: TFEClient | None = None,
    ) -> None:
        self._config = config
        self._github = github or client_from_config(config)
        self._tfe = tfe or TFEClient(timeout_seconds=config.timeout_seconds)

    def handle(self, req: RunTaskRequest) -> str | None:
        """Process a run task request and return the callback message sent.

        Returns None for the verification request TFC sends on registration.
        Any RunTaskError aborts the remaining steps.
        """
        if req.is_verification:
            log.info("Succeeded initializing run tasks")
            return None

        if not req.vcs_pull_request_url:
            log.info(f"Skip this run because this might not be the event based on PR: {req.run_id}")
            self._tfe.send_callback(req.task_result_callback_url, req.access_token, SKIPPED_MESSAGE)
            return SKIPPED_MESSAGE

        plan = self._tfe.fetch_plan(req.plan_json_api_url, req.access_token)
        pr = parse_pull_request_url(req.vcs_pull_request_url)

        lifecycle = CommentLifecycle(
            client=self._github,
            pr=pr,
            history_limit=self._config.comment_history_limit,
            classifier=self._config.minimize_classifier,
        )
        prior = lifecycle.find_latest()
        body = render_plan_comment(plan, req.run_app_url, req.vcs_commit_url)
        lifecycle.create(body)
        if lifecycle.supersede(prior):
            log.info(f"Minimized previous plan comment {prior.id} on {pr.repo_slug}#{pr.number}")

        self._tfe.send_callback(req.task_result_callback_url, req.access_token, SUCCEEDED_MESSAGE)
        log.info(f"Posted plan for run {req.run_id} to {pr.repo_slug}#{pr.number}")
        return SUCCEEDED_MESSAGE
