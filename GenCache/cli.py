"""Command line entry point.

Sub-commands:
- `integrations`: regenerate the integration-test build configuration and index
- `bootstrap`: clone the pinned kafka checkout and regenerate every test project
- `status`: report which jobs are stale without running anything
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional, Sequence

from .core.errors import ConfigurationError, GenerationError
from .core.utils import setup_logging
from .execution.commands import HostOS, detect_host_os
from .execution.runner import ExternalInvoker
from .integrations.bootstrap import KAFKA, plan_bootstrap, run_bootstrap
from .integrations.community import integrations_job, prepare_integrations_job
from .pipeline.models import GenerationJob, RunReport
from .pipeline.orchestrator import GenerationOrchestrator
from .staging.resolver import StagingConfig, StagingLayout, resolve_staging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIGURATION = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gencache",
        description="Regenerate build configuration for external toolchains when their inputs change.",
    )
    parser.add_argument("--base-dir", type=str, default=None, help="Checkout to operate on (default: $GENCACHE_BASE_DIR)")
    parser.add_argument("--global-base", type=str, default=None)
    parser.add_argument("--staging-dir", type=str, default=None)
    parser.add_argument("--schema-version", type=str, default=None)
    parser.add_argument("--log-dir", type=str, default=None, help="Also append log output to <log-dir>/generation_logs.log")
    parser.add_argument("--verbose", "-v", action="store_true", default=False)
    host = parser.add_mutually_exclusive_group()
    host.add_argument("--windows", dest="host", action="store_const", const=HostOS.WINDOWS, default=None)
    host.add_argument("--posix", dest="host", action="store_const", const=HostOS.POSIX)

    sub = parser.add_subparsers(dest="command", required=True)

    integrations = sub.add_parser("integrations", help="Generate integration-test configuration and index")
    integrations.add_argument("--verify-outputs", action="store_true", default=False)

    bootstrap = sub.add_parser("bootstrap", help="Clone test repositories and generate per-project configuration")
    bootstrap.add_argument("--fail-fast", action="store_true", default=False)
    bootstrap.add_argument("--skip-clone", action="store_true", default=False)
    bootstrap.add_argument("--verify-outputs", action="store_true", default=False)

    status = sub.add_parser("status", help="Report stale jobs without running them")
    status.add_argument("--json", action="store_true", default=False)
    return parser


def _layout_from_args(args: argparse.Namespace) -> StagingLayout:
    config = StagingConfig.from_env(
        base_dir=args.base_dir,
        global_base=args.global_base,
        staging_dir=args.staging_dir,
        schema_version=args.schema_version,
    )
    return resolve_staging(config)


def _log_report(logger: logging.Logger, report: RunReport) -> None:
    for result in report.results:
        logger.info(f"{result.job_name}: {result.status.value}")
    for failure in report.failures:
        logger.error(f"{failure.job_name} failed [{failure.error_kind}]: {failure.error}")


def _status(orchestrator: GenerationOrchestrator, jobs: Sequence[GenerationJob], as_json: bool) -> int:
    rows: List[dict] = []
    for job in jobs:
        try:
            check = orchestrator.check(job)
        except GenerationError as exc:
            rows.append({"job": job.name, "stale": None, "error": str(exc)})
            continue
        rows.append(
            {
                "job": job.name,
                "stale": check.stale,
                "fingerprint": check.fingerprint,
                "previous": check.previous,
                "changed_inputs": check.changed_inputs,
            }
        )
    if as_json:
        print(json.dumps(rows, indent=2, sort_keys=True))
    else:
        for row in rows:
            state = "error" if row["stale"] is None else ("stale" if row["stale"] else "up-to-date")
            print(f"{row['job']}: {state}")
    return EXIT_OK if all(row["stale"] is not None for row in rows) else EXIT_FAILED


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(
        "generation",
        args.command,
        log_dir=args.log_dir,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        layout = _layout_from_args(args)
    except ConfigurationError as exc:
        logger.error(str(exc))
        return EXIT_CONFIGURATION

    host = args.host or detect_host_os()
    verify = bool(getattr(args, "verify_outputs", False))
    orchestrator = GenerationOrchestrator(invoker=ExternalInvoker(logger=logger), verify_outputs=verify, logger=logger)
    logger.debug(f"Resolved layout: {layout.to_json_dict()} (host={host.value})")

    try:
        if args.command == "integrations":
            report = orchestrator.run_all([prepare_integrations_job(layout, host)])
        elif args.command == "bootstrap":
            outcome = run_bootstrap(
                layout,
                orchestrator,
                host,
                repository=None if args.skip_clone else KAFKA,
                fail_fast=bool(args.fail_fast),
            )
            report = outcome.report
            logger.debug(f"Bootstrap context: {outcome.context.to_json_dict()}")
        else:
            plan = plan_bootstrap(layout, host)
            return _status(orchestrator, [integrations_job(layout, host), *plan.jobs], bool(args.json))
    except GenerationError as exc:
        logger.error(f"[{exc.kind}] {exc}")
        return EXIT_FAILED

    _log_report(logger, report)
    return EXIT_OK if report.ok else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
