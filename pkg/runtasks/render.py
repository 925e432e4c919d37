"""Render a Terraform plan as a run task PR comment body."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .actions import Action, classify_actions
from .diff import structural_diff
from .errors import PlanValidationError
from .markdown import badge_link, code_block, details_block
from .masking import mask_sensitive_values
from .plan import Change, OutputChange, Plan, ResourceChange, parse_plan
from .summary import ChangeSummary

COMMENT_MARKER = "<!-- runtasks-pr-comment -->"

RUN_TASKS_DOCS_URL = "https://developer.hashicorp.com/terraform/cloud-docs/workspaces/settings/run-tasks"
TITLE = "### Terraform Cloud/Enterprise Plan Output"
NO_CHANGES = code_block("No changes. Your infrastructure matches the configuration.")
RESULTS_TOO_LONG = code_block("The results are too long, so please directly check them on TFC/E.")

# GitHub rejects comment bodies above 65,536 characters; keep headroom for
# the header and summary around the diffs.
MAX_DIFF_SIZE = 65536 - 1000


def render_header(run_url: str, commit_url: str) -> str:
    """Marker tag, badges, trigger line and title."""
    tasks_badge = badge_link("RUN_TASKS", "TFE", "Run_Tasks", RUN_TASKS_DOCS_URL, color="success")
    run_badge = badge_link("RUNS", "TFE", "Run", run_url)
    return (
        f"{COMMENT_MARKER}\n{tasks_badge} {run_badge}\n\n"
        f"This run task was triggered by {commit_url}.\n\n"
        f"{TITLE}\n"
    )


def render_resource_change(action: Action, resource: ResourceChange, change: Change) -> str:
    diff = structural_diff(
        mask_sensitive_values(change.before, change.before_sensitive),
        mask_sensitive_values(change.after, change.after_sensitive),
    )
    summary = f"{action.symbol} {resource.address}"
    detail = f'{action.symbol} resource "{resource.type}" "{resource.name}" {diff}'
    return details_block(detail, summary=summary)


def render_output_change(action: Action, name: str, output: OutputChange) -> str:
    diff = structural_diff(
        mask_sensitive_values(output.before, output.before_sensitive),
        mask_sensitive_values(output.after, output.after_sensitive),
    )
    return f"{action.symbol} {name}: {diff}\n"


def render_plan_comment(plan: Plan, run_url: str, commit_url: str) -> str:
    """Render the full comment body for ``plan``.

    The body always starts with COMMENT_MARKER so later runs can find it.
    """
    header = render_header(run_url, commit_url)
    if not plan.resource_changes:
        return header + NO_CHANGES

    summary = ChangeSummary()
    sections: list[str] = []
    for resource in plan.resource_changes:
        change = resource.change
        if change is None:
            return header + NO_CHANGES
        if change.is_import:
            summary.record_import()
            continue

        action = classify_actions(change.actions)
        if action is Action.NO_OP:
            continue
        summary.record(change.actions)
        sections.append(render_resource_change(action, resource, change) + "\n\n")

    output_lines: list[str] = []
    for name in sorted(plan.output_changes):
        output = plan.output_changes[name]
        action = classify_actions(output.actions)
        if action is Action.NO_OP:
            continue
        output_lines.append(render_output_change(action, name, output))

    resource_text = "".join(sections)
    output_text = "".join(output_lines)

    parts = [header, code_block(str(summary)), "\n\n"]
    # len() counts code points, matching GitHub's character limit.
    if len(resource_text) + len(output_text) > MAX_DIFF_SIZE:
        parts.append(RESULTS_TOO_LONG)
        return "".join(parts)

    parts.append(resource_text)
    if output_lines:
        parts.append(details_block(output_text, summary=f"Outputs {len(output_lines)} planned to change"))
    return "".join(parts)


def fail(message: str, code: int = 2) -> int:
    """Fail."""
    print(f"render-plan-comment: {message}", file=sys.stderr)
    return code


def read_plan(path: Path) -> Plan:
    """Read and validate a JSON plan file."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise IOError(f"unable to read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON in {path}: {exc}") from exc
    try:
        return parse_plan(raw)
    except PlanValidationError as exc:
        raise ValueError(f"invalid plan in {path}: {exc}") from exc


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a Terraform JSON plan as a PR comment.")
    parser.add_argument("--plan-json", required=True, help="Path to `terraform show -json` plan output")
    parser.add_argument("--run-url", default="", help="Run URL for the badge link")
    parser.add_argument("--commit-url", default="", help="Commit URL that triggered the run")
    parser.add_argument("--output", default="-", help="Output markdown path (default: stdout)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main."""
    args = parse_args(argv)
    try:
        plan = read_plan(Path(args.plan_json))
    except (OSError, ValueError) as exc:
        return fail(str(exc))

    markdown = render_plan_comment(plan, args.run_url, args.commit_url)
    if args.output == "-":
        sys.stdout.write(markdown + "\n")
        return 0
    try:
        Path(args.output).write_text(markdown, encoding="utf-8")
    except OSError as exc:
        return fail(f"unable to write {args.output}: {exc}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
