from __future__ import annotations

import logging
import platform
import sys
import time
from importlib import metadata
from pathlib import Path
from typing import Callable, Mapping, NoReturn, Optional

import typer

from node_setup_check import APP_NAME, __version__
from node_setup_check.config import RuntimeSettings, load_settings, normalize_log_level
from node_setup_check.engine import CheckRequest, HomeInspector, run_checks
from node_setup_check.exceptions import CheckAborted
from node_setup_check.policy import RolePolicy, policy_for
from node_setup_check.records import ExitStatus, ReportAggregator, format_report
from node_setup_check.release import ReleaseCheck, ReleaseFetcher, fetch_latest_tag
from node_setup_check.roles import NodeRole, node_role_from_name, role_names

app = typer.Typer(add_completion=False, help="Check node setup against best practice.")
logger = logging.getLogger(__name__)

FLAG_TYPE = "--type"
FLAG_SERVICE_FILE = "--service-file"
RUNTIME_DEPENDENCIES: tuple[str, ...] = ("typer", "pydantic", "PyYAML")


def _context_obj(ctx: typer.Context) -> Mapping[str, object]:
    obj = ctx.obj
    if isinstance(obj, Mapping):
        return obj
    return {}


def _context_settings(ctx: typer.Context) -> RuntimeSettings:
    candidate = _context_obj(ctx).get("settings")
    if isinstance(candidate, RuntimeSettings):
        return candidate
    return load_settings()


def _context_release_fetcher(ctx: typer.Context, settings: RuntimeSettings) -> ReleaseFetcher:
    candidate = _context_obj(ctx).get("release_fetcher")
    if callable(candidate):
        return candidate

    def _fetch() -> str:
        return fetch_latest_tag(settings.release_url, timeout=settings.release_timeout_seconds)

    return _fetch


def _context_inspector(ctx: typer.Context) -> HomeInspector | None:
    return _context_obj(ctx).get("inspector")  # type: ignore[return-value]


def _context_sleep(ctx: typer.Context) -> Callable[[float], None]:
    candidate = _context_obj(ctx).get("sleep_fn")
    if callable(candidate):
        return candidate
    return time.sleep


def _context_is_linux(ctx: typer.Context) -> bool:
    candidate = _context_obj(ctx).get("is_linux")
    if isinstance(candidate, bool):
        return candidate
    return sys.platform.startswith("linux")


def _emit_report(report: ReportAggregator) -> None:
    for line in format_report(report.render()):
        typer.echo(line, err=True)


def _abort(report: ReportAggregator, message: str) -> NoReturn:
    _emit_report(report)
    typer.echo("", err=True)
    typer.echo(message, err=True)
    raise typer.Exit(code=int(ExitStatus.FAILURE))


def _emit_notices(policy: RolePolicy) -> None:
    typer.echo("NOTICE: some tasks need to be checked manually:")
    for index, notice in enumerate(policy.notices(), start=1):
        typer.echo(f"{index}. {notice.message}")
        if notice.suggestion:
            typer.echo(f"> {notice.suggestion}")
    typer.echo(
        "WARN: after checked and fixed all issues, re-check again using this tool "
        "before running node, otherwise you probably miss something"
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default from NODE_SETUP_CHECK_LOG_LEVEL)."
    ),
) -> None:
    settings = _context_settings(ctx)
    level = normalize_log_level(log_level) if log_level else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command()
def check(
    ctx: typer.Context,
    home: Path = typer.Argument(..., help="Home directory of the node."),
    node_type: str = typer.Option(
        "", FLAG_TYPE, help=f"type of node to check, can be: {'/'.join(role_names())}"
    ),
    service_file: Optional[Path] = typer.Option(
        None,
        FLAG_SERVICE_FILE,
        help="path to the service file to check, required for validator node on Linux",
    ),
    skip_release_check: bool = typer.Option(
        False, "--skip-release-check", help="Do not look up the latest published release."
    ),
) -> None:
    """Check node setup."""
    settings = _context_settings(ctx)
    typer.echo(f"App version {__version__}")
    typer.echo("NOTICE: always update to latest version for accurate check")
    report = ReportAggregator()

    role = node_role_from_name(node_type)
    if role is NodeRole.UNSPECIFIED:
        _abort(report, f"ERR: Invalid node type, can be either {'/'.join(role_names())}")
    requires_unit = role is NodeRole.VALIDATOR and _context_is_linux(ctx)
    if requires_unit and service_file is None:
        _abort(report, f"ERR: {FLAG_SERVICE_FILE} is required on Linux to check validator setting")
    if role is not NodeRole.VALIDATOR and service_file is not None:
        _abort(
            report,
            f'ERR: remove flag "{FLAG_SERVICE_FILE}", only be used for validator on Linux',
        )
    policy = policy_for(role)

    release: ReleaseCheck | None = None
    if not (skip_release_check or settings.skip_release_check):
        release = ReleaseCheck(
            report,
            current_version=__version__,
            fetch_fn=_context_release_fetcher(ctx, settings),
        ).start()
        _context_sleep(ctx)(settings.release_grace_seconds)

    request = CheckRequest(
        home=home,
        role=role,
        service_file=service_file.absolute() if requires_unit and service_file else None,
    )
    try:
        run_checks(request, report, inspector=_context_inspector(ctx), policy=policy)
    except CheckAborted as exc:
        logger.debug("check aborted: %s", exc.message)
        _abort(report, exc.message)

    if release is not None:
        release.join()
    _emit_notices(policy)

    status = report.decide()
    if status is ExitStatus.SUCCESS:
        typer.echo("All checks passed")
    else:
        _emit_report(report)
    raise typer.Exit(code=int(status))


@app.command()
def version(
    long: bool = typer.Option(False, "--long", help="print extra version information"),
) -> None:
    """Show binary version."""
    typer.echo(APP_NAME)
    if long:
        typer.echo("Build dependencies:")
        for dist in RUNTIME_DEPENDENCIES:
            try:
                dist_version = metadata.version(dist)
            except metadata.PackageNotFoundError:
                dist_version = "unknown"
            typer.echo(f"- {dist}@{dist_version}")
    typer.echo(f"{'Version:':<11} {__version__}")
    if long:
        typer.echo(
            f"{'Python:':<11} {platform.python_implementation()} "
            f"{platform.python_version()} {sys.platform}/{platform.machine()}"
        )


def main() -> None:
    app()
