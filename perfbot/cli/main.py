"""perfbot command-line interface."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from textwrap import dedent
from typing import Any, Callable, Sequence

from rich.console import Console
from rich.table import Table

from perfbot.actions import ActionDispatcher, RunAction, parse_event
from perfbot.cli._constants import (
    COMMAND,
    COMPARE_COMMAND,
    DEFAULT_CONFIG_PATH,
    DEFAULT_LOG_LEVEL,
    GET_RUN_COMMAND,
    HANDLE_EVENT_COMMAND,
    JOBS_COMMAND,
)
from perfbot.config import BotConfigSchema, ProjectConfigSchema, load_bot_config
from perfbot.datastore import LATEST_RUN, DatastoreService, render_label_values
from perfbot.dispatch import JenkinsJobDispatcher, JobDispatcher
from perfbot.errors import ConfigFormatError, PerfBotError
from perfbot.github import GitHubClient
from perfbot.utils import ensure_root_logging

logger = logging.getLogger(__name__)
HELP_FLAGS = {"-h", "--help"}


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the bot configuration YAML file (default: {DEFAULT_CONFIG_PATH}).",
    )
    parser.add_argument(
        "--log-level",
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: %(default)s).",
    )


def build_handle_event_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=f"{COMMAND} {HANDLE_EVENT_COMMAND}",
        description="Handle a recorded webhook delivery (e.g. a pull-request comment).",
    )
    _add_common_arguments(parser)
    parser.add_argument("--event", required=True, help="Webhook event name (X-GitHub-Event header), e.g. issue_comment.")
    parser.add_argument("--payload", required=True, type=Path, help="Path to the JSON webhook payload.")
    parser.add_argument(
        "--post-status",
        action="store_true",
        help="Post the resulting status as a comment on the triggering thread.",
    )
    return parser


def _build_run_query_parser(command: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=f"{COMMAND} {command}", description=description)
    _add_common_arguments(parser)
    parser.add_argument("repo", help="Repository full name (owner/name).")
    parser.add_argument("run_id", help=f"Horreum run id or '{LATEST_RUN}'.")
    return parser


def build_get_run_parser() -> argparse.ArgumentParser:
    parser = _build_run_query_parser(GET_RUN_COMMAND, "Print the label values of a Horreum run.")
    parser.add_argument("--format", choices=["json", "yaml"], default="json", help="Output format (default: json).")
    return parser


def build_compare_parser() -> argparse.ArgumentParser:
    return _build_run_query_parser(COMPARE_COMMAND, "Compare a Horreum run against its configured baseline.")


def build_jobs_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=f"{COMMAND} {JOBS_COMMAND}",
        description="List the jobs a repository can trigger from comments.",
    )
    _add_common_arguments(parser)
    parser.add_argument("repo", help="Repository full name (owner/name).")
    return parser


def build_action_dispatcher(
    config: BotConfigSchema,
    *,
    github: GitHubClient | None = None,
    job_dispatcher: JobDispatcher | None = None,
) -> ActionDispatcher:
    """Wire the registered actions with their collaborators."""
    github = github or GitHubClient(config.github)
    if job_dispatcher is None:
        if config.jenkins is None:
            raise ConfigFormatError("Configuration must define a 'jenkins' section to handle events.")
        job_dispatcher = JenkinsJobDispatcher(config.jenkins)
    actions = [RunAction(job_dispatcher, fetch_head_sha=github.fetch_pull_request_head_sha)]
    return ActionDispatcher(config, actions, github=github)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    args_list = list(argv) if argv is not None else sys.argv[1:]

    if not args_list or args_list[0] in HELP_FLAGS:
        _print_general_help()
        return 0

    modes: dict[str, Callable[[Sequence[str]], int]] = {
        HANDLE_EVENT_COMMAND: _run_handle_event_mode,
        GET_RUN_COMMAND: _run_get_run_mode,
        COMPARE_COMMAND: _run_compare_mode,
        JOBS_COMMAND: _run_jobs_mode,
    }
    mode = modes.get(args_list[0])
    if mode is None:
        _print_general_help()
        return 2
    return mode(args_list[1:])


def _run_guarded(
    parser: argparse.ArgumentParser,
    handler: Callable[[argparse.Namespace], int],
    argv: Sequence[str],
) -> int:
    args = parser.parse_args(argv)
    ensure_root_logging(args.log_level)
    try:
        return handler(args)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        return 1
    except ConfigFormatError as exc:
        parser.error(str(exc))
    except PerfBotError as exc:
        logger.error("%s", exc)
        return 1
    except SystemExit:  # pragma: no cover - argparse already handled messaging
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled error: %s", exc)
        return 1
    return 1


def _run_handle_event_mode(argv: Sequence[str]) -> int:
    return _run_guarded(build_handle_event_parser(), _handle_event, argv)


def _run_get_run_mode(argv: Sequence[str]) -> int:
    return _run_guarded(build_get_run_parser(), _get_run, argv)


def _run_compare_mode(argv: Sequence[str]) -> int:
    return _run_guarded(build_compare_parser(), _compare, argv)


def _run_jobs_mode(argv: Sequence[str]) -> int:
    return _run_guarded(build_jobs_parser(), _list_jobs, argv)


def _handle_event(args: argparse.Namespace) -> int:
    config = load_bot_config(args.config)
    payload = _load_payload(args.payload)
    event = parse_event(args.event, payload)
    dispatcher = build_action_dispatcher(config)
    ctx = dispatcher.handle(event, report=args.post_status)
    if ctx is None:
        print("Comment not addressed to the bot; nothing to do.")
        return 0
    status = ctx.status.value if ctx.status is not None else "UNKNOWN"
    print(f"{status}: {ctx.message}")
    if ctx.error is not None:
        print(f"error: {ctx.error}", file=sys.stderr)
    return 0 if ctx.succeeded else 1


def _load_payload(path: Path) -> dict[str, Any]:
    resolved = path.expanduser()
    try:
        payload = json.loads(resolved.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigFormatError(f"Cannot read webhook payload '{resolved}': {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigFormatError(f"Webhook payload '{resolved}' must be a JSON object.")
    return payload


def _get_run(args: argparse.Namespace) -> int:
    config = load_bot_config(args.config)
    resolved = DatastoreService(config).resolve_run(args.repo, args.run_id)
    logger.info("Run %d (dataset %d) of %s", resolved.run_id, resolved.dataset_id, args.repo)
    print(render_label_values(resolved.label_values, args.format))
    return 0


def _compare(args: argparse.Namespace) -> int:
    config = load_bot_config(args.config)
    report = DatastoreService(config).compare(args.repo, args.run_id)
    if report:
        print(report)
    else:
        logger.info("Comparison produced no experiment results.")
    return 0


def _list_jobs(args: argparse.Namespace) -> int:
    config = load_bot_config(args.config)
    project = config.get_project(args.repo)
    _print_jobs_table(project, prompt=config.prompt)
    return 0


def _print_jobs_table(project: ProjectConfigSchema, *, prompt: str) -> None:
    console = Console()
    caption = f"Trigger with: {prompt} run <job> key=value,..."
    table = Table(title=f"Jobs for {project.repo_full_name}", caption=caption, expand=True)
    table.add_column("Job", style="bold cyan", overflow="fold")
    table.add_column("Configurable", style="white", overflow="fold")
    table.add_column("PR number", style="magenta")
    table.add_column("Repository", style="magenta")
    table.add_column("Head commit", style="magenta")

    for name, job in sorted(project.jobs.items()):
        table.add_row(
            name,
            ", ".join(job.configurable_params) or "-",
            job.pull_request_number_param or "-",
            job.repo_full_name_param or "-",
            job.repo_commit_param or "-",
        )

    console.print(table)


def _print_general_help() -> None:
    message = dedent(
        f"""\
        Usage:
          {COMMAND} {HANDLE_EVENT_COMMAND} --event issue_comment --payload PAYLOAD.json [--post-status]
          {COMMAND} {GET_RUN_COMMAND} OWNER/REPO RUN_ID|{LATEST_RUN} [--format json|yaml]
          {COMMAND} {COMPARE_COMMAND} OWNER/REPO RUN_ID|{LATEST_RUN}
          {COMMAND} {JOBS_COMMAND} OWNER/REPO

        Every command accepts -c/--config (default: {DEFAULT_CONFIG_PATH}) and --log-level."""
    )
    print(message)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
