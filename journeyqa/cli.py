"""Console entry point for journeyqa."""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Sequence

from dotenv import load_dotenv

from journeyqa.src.engine.executor import JourneyExecutor
from journeyqa.src.engine.suite_runner import SuiteRunner
from journeyqa.src.loader.journey_loader import load_journey
from journeyqa.src.loader.suite_loader import load_suite
from journeyqa.src.recorder.recorder import record_journey
from journeyqa.src.report.html_report import generate_report, generate_suite_report, write_json_result
from journeyqa.src.utils.config import AppConfig, RunOptions, load_config
from journeyqa.src.utils.console import RunLogger
from journeyqa.src.utils.models import JourneyDefinition, JourneyResult, JourneyStep, RunStatus


COMMANDS = ("run", "validate", "suite", "record", "interactive", "ui")
DEFAULT_UI_PORT = 3000


def _parse_var(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"Expected key=value, got {raw!r}")
    return key.strip(), value


def _build_common_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("--headed", action="store_true", default=None, help="Show the browser window")
    parser.add_argument("--model", help="Model used to interpret steps")
    parser.add_argument("--fallback-model", help="Model to try when the primary model keeps failing")
    parser.add_argument("--delay", type=float, help="Seconds to wait between steps")
    parser.add_argument("--output", help="Report output directory")
    parser.add_argument("--timeout", type=int, help="Default action timeout in ms")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--base-url", help="Override the journey start URL")
    parser.add_argument("--retries", type=int, help="Attempts per step")
    parser.add_argument(
        "--var",
        dest="vars",
        action="append",
        type=_parse_var,
        default=[],
        metavar="KEY=VALUE",
        help="Set a journey variable (repeatable)",
    )
    parser.add_argument("--json", action="store_true", help="Also write the result as JSON")
    parser.add_argument("--config", help="Path to .journeytester.yaml")
    return parser


def _options(args: argparse.Namespace, config: AppConfig) -> RunOptions:
    variables: Dict[str, str] = dict(args.vars)
    return RunOptions.from_config(
        config,
        headed=args.headed,
        model=args.model,
        fallback_model=args.fallback_model,
        delay=args.delay,
        output=args.output,
        timeout=args.timeout,
        verbose=args.verbose,
        base_url=args.base_url,
        retries=args.retries,
        variables=variables,
    )


def _print_journey_summary(result: JourneyResult) -> None:
    summary = result.summary
    print("\n--- Summary ---")
    print(f"Status: {result.status.value.upper()}")
    print(f"Steps: {summary.passed} passed, {summary.failed} failed, {summary.warnings} warnings")
    print(f"UX Score: {summary.overall_ux_score:g}/10 ({summary.ux_issues_found} issues found)")
    print(f"Duration: {result.total_duration_ms / 1000:.1f}s")


def _execute_and_report(journey: JourneyDefinition, options: RunOptions, json_output: bool = False) -> int:
    result = asyncio.run(JourneyExecutor(options).execute(journey))
    _print_journey_summary(result)
    report = generate_report(result, options.output)
    print(f"\nReport: {report}")
    if json_output:
        print(f"JSON: {write_json_result(result, options.output)}")
    return 1 if result.status == RunStatus.FAILED else 0


def run_journey(argv: Sequence[str] | None = None) -> int:
    parser = _build_common_parser("journeyqa run", "Run a journey file.")
    parser.add_argument("journey", help="Path to a journey YAML file")
    args = parser.parse_args(list(argv or []))
    options = _options(args, load_config(args.config))

    try:
        print(f"\nLoading journey: {args.journey}")
        journey = load_journey(args.journey, options.base_url, options.variables)
        print(f"Journey: {journey.name} ({len(journey.steps)} steps)")
        print(f"Target: {journey.url}\n")
        return _execute_and_report(journey, options, args.json)
    except Exception as exc:
        print(f"\nError: {exc}", file=sys.stderr)
        return 1


def run_validate(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="journeyqa validate", description="Validate a journey file.")
    parser.add_argument("journey")
    parser.add_argument("--var", dest="vars", action="append", type=_parse_var, default=[])
    args = parser.parse_args(list(argv or []))
    try:
        journey = load_journey(args.journey, variables=dict(args.vars))
    except ValueError as exc:
        print(f"Invalid journey: {exc}", file=sys.stderr)
        return 1
    print(f'Valid journey: "{journey.name}"')
    print(f"  URL: {journey.url}")
    print(f"  Steps: {len(journey.steps)}")
    for index, step in enumerate(journey.steps, start=1):
        print(f"    {index}. {step.action}")
    return 0


def run_suite(argv: Sequence[str] | None = None) -> int:
    parser = _build_common_parser("journeyqa suite", "Run a suite of journeys.")
    parser.add_argument("suite", help="Path to a suite YAML file")
    args = parser.parse_args(list(argv or []))
    options = _options(args, load_config(args.config))

    try:
        suite = load_suite(args.suite)
        print(f"\nSuite: {suite.name} ({len(suite.journeys)} journeys)")
        result = asyncio.run(SuiteRunner(options).execute(suite))
    except Exception as exc:
        print(f"\nError: {exc}", file=sys.stderr)
        return 1

    summary = result.summary
    print("\n=== Suite Summary ===")
    print(f"Status: {result.status.value.upper()}")
    print(f"Journeys: {summary.passed} passed, {summary.failed} failed, {summary.warnings} warnings")
    print(f"Steps: {summary.total_steps}")
    print(f"UX Score: {summary.overall_ux_score:g}/10")
    print(f"Duration: {result.total_duration_ms / 1000:.1f}s")
    print(f"\nReport: {generate_suite_report(result, options.output)}")
    if args.json:
        print(f"JSON: {write_json_result(result, options.output)}")
    return 1 if result.status == RunStatus.FAILED else 0


def run_record(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="journeyqa record", description="Record a journey by hand.")
    parser.add_argument("url")
    parser.add_argument("--name", default="Recorded Journey")
    parser.add_argument("--output", default="journeys/recorded.yaml")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(list(argv or []))

    try:
        asyncio.run(record_journey(args.url, args.name, args.output, RunLogger(args.verbose)))
    except Exception as exc:
        print(f"\nError: {exc}", file=sys.stderr)
        return 1
    return 0


def _prompt(question: str) -> str:
    try:
        return input(question).strip()
    except EOFError:
        return ""


def run_interactive(argv: Sequence[str] | None = None) -> int:
    parser = _build_common_parser("journeyqa interactive", "Build and run a journey interactively.")
    args = parser.parse_args(list(argv or []))
    options = _options(args, load_config(args.config))

    print("\n--- Interactive Journey Builder ---\n")
    url = _prompt("Enter URL to test: ")
    if not url:
        print("URL is required.", file=sys.stderr)
        return 1
    name = _prompt('Journey name (default: "Interactive Journey"): ') or "Interactive Journey"

    steps: List[str] = []
    print('\nEnter journey steps one at a time. Type "done" or press Enter on an empty line to finish.\n')
    while True:
        step = _prompt(f"  Step {len(steps) + 1}: ")
        if not step or step.lower() == "done":
            break
        steps.append(step)
    if not steps:
        print("\nAt least one step is required.", file=sys.stderr)
        return 1

    print("\n--- Journey Summary ---")
    print(f"Name: {name}")
    print(f"URL:  {url}")
    print(f"Steps ({len(steps)}):")
    for index, step in enumerate(steps, start=1):
        print(f"  {index}. {step}")
    if _prompt("\nProceed? (Y/n): ").lower() == "n":
        print("Cancelled.")
        return 0

    journey = JourneyDefinition(name=name, url=url, steps=[JourneyStep(action=step) for step in steps])
    try:
        print(f"\nExecuting journey: {name} ({len(steps)} steps)")
        print(f"Target: {url}\n")
        return _execute_and_report(journey, options, args.json)
    except Exception as exc:
        print(f"\nError: {exc}", file=sys.stderr)
        return 1


def run_ui(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="journeyqa ui", description="Serve the authoring API.")
    parser.add_argument("--port", type=int, default=DEFAULT_UI_PORT)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--config", help="Path to .journeytester.yaml")
    args = parser.parse_args(list(argv or []))

    from journeyqa.src.server.app import serve

    serve(load_config(args.config), host=args.host, port=args.port)
    return 0


def _build_main_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="journeyqa",
        description="AI-driven end-to-end web journey tester.",
        epilog="Commands: " + ", ".join(COMMANDS),
    )
    parser.add_argument("command", choices=COMMANDS)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    load_dotenv(Path.cwd() / ".env")
    try:
        if not args or args[0] in {"-h", "--help", "help"}:
            _build_main_parser().print_help()
            return 0
        handlers = {
            "run": run_journey,
            "validate": run_validate,
            "suite": run_suite,
            "record": run_record,
            "interactive": run_interactive,
            "ui": run_ui,
        }
        handler = handlers.get(args[0])
        if handler is None:
            _build_main_parser().print_help()
            print(f"Unknown command: {args[0]}", file=sys.stderr)
            return 1
        return handler(args[1:])
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
