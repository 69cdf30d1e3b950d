import argparse
import importlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import colorlog
import yaml

from orgchart_consistency import __version__ as _PACKAGE_VERSION
from orgchart_consistency.core.enums import LEVEL_VALUES


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = (
        "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
    )
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    stream_handler = colorlog.StreamHandler()
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def load_page_data(path: Path) -> Dict[str, Any]:
    """Read page data (page key -> list of positions) from a JSON or YAML file.

    The file holds the mapping itself or a mapping with a ``pages`` key.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be parsed or is not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Page data file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to read page data file {path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("pages"), dict):
        data = data["pages"]
    if not isinstance(data, dict):
        raise ValueError(f"Page data in {path} must be a mapping of page keys to positions")
    return data


def _report_path(option: Any, default_dir: Path, filename: str) -> Path:
    """Resolve a ``--report``-style option: True means ``default_dir``."""
    report_dir = default_dir if option is True else Path(option)
    report_dir.mkdir(parents=True, exist_ok=True)
    return report_dir / filename


def _write_text(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def cmd_classify(args: argparse.Namespace) -> int:
    """Classify a single position and print the deciding rule."""
    from orgchart_consistency.classification.engine import ClassificationEngine

    engine = ClassificationEngine()
    rule = engine.explain(args.department, args.level, args.process_type, args.subtitle)
    if args.level.upper() not in LEVEL_VALUES:
        logging.warning("Unknown level '%s'; falling back to rule '%s'", args.level, rule.name)
    print(rule.classification.value)
    if args.explain:
        print(f"rule: {rule.name}")
        print(f"reason: {rule.reason}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate page data read from a JSON or YAML file.

    Returns:
        0 if the data is healthy (or only has warnings without --strict)
        1 if the input could not be read
        2 if critical issues were found (or any issue with --strict)
    """
    consistency = importlib.import_module("orgchart_consistency.validation.consistency")
    registry = importlib.import_module("orgchart_consistency.validation.registry")

    input_path = Path(args.input).resolve()
    try:
        page_data = load_page_data(input_path)
    except FileNotFoundError as e:
        logging.error("%s", e)
        return 1
    except ValueError as e:
        logging.error("Invalid page data: %s", e)
        return 1

    logging.info("Validating %d pages from %s...", len(page_data), input_path.name)
    validator = consistency.DataConsistencyValidator()
    report = validator.validate_application_consistency(page_data)

    registry.print_report(report)

    if args.report:
        report_path = _report_path(
            args.report, input_path.parent, f"{input_path.stem}_consistency.md"
        )
        _write_text(report_path, report.to_markdown())
        logging.info("Markdown report saved: %s", report_path)

    if args.report_json:
        report_path = _report_path(
            args.report_json, input_path.parent, f"{input_path.stem}_consistency.json"
        )
        _write_text(report_path, report.to_json())
        logging.info("JSON report saved: %s", report_path)

    if report.summary.total_positions == 0 and page_data:
        logging.warning("No positions found in %s", input_path.name)

    if report.has_errors(strict=args.strict):
        logging.error(
            "Validation found %d critical issues and %d warnings.",
            report.summary.critical_issue_count,
            report.summary.warning_count,
        )
        return 2

    return 0


def cmd_scenarios(args: argparse.Namespace) -> int:
    """Run automated validation scenarios.

    Returns:
        0 if every scenario passed (warnings allowed without --strict)
        1 if the scenarios file could not be loaded or holds no scenarios
        2 if any scenario failed (or warned with --strict)
    """
    consistency = importlib.import_module("orgchart_consistency.validation.consistency")
    scenarios_mod = importlib.import_module("orgchart_consistency.validation.scenarios")

    if args.scenarios:
        try:
            scenario_registry = scenarios_mod.ScenarioRegistry.from_yaml(Path(args.scenarios))
        except FileNotFoundError as e:
            logging.error("%s", e)
            return 1
        except (ValueError, yaml.YAMLError) as e:
            logging.error("Invalid scenarios file: %s", e)
            return 1
    else:
        scenario_registry = scenarios_mod.ScenarioRegistry()

    if args.only:
        selected = []
        for name in args.only.split(","):
            try:
                selected.append(scenario_registry.get(name.strip()))
            except KeyError as e:
                logging.error("%s", e.args[0])
                return 1
    else:
        selected = scenario_registry.all()

    if not selected:
        logging.error("No scenarios to run.")
        return 1

    validator = consistency.DataConsistencyValidator()
    run = validator.run_automated_validation_tests(selected, show_progress=args.progress)
    print(run.to_console_summary())

    if args.summary_report:
        summary = validator.generate_validation_summary_report(run.results)
        report_path = _report_path(args.summary_report, Path.cwd(), "validation_summary.md")
        _write_text(report_path, summary.to_markdown())
        logging.info("Summary report saved: %s", report_path)

    if args.report_json:
        report_path = _report_path(args.report_json, Path.cwd(), "validation_scenarios.json")
        _write_text(report_path, run.to_json())
        logging.info("JSON report saved: %s", report_path)

    status = run.summary.overall_status
    if status == "fail" or (args.strict and status == "warning"):
        logging.error(
            "Scenario validation %s: %d failed, %d with warnings.",
            status,
            run.summary.failed_scenarios,
            run.summary.warning_scenarios,
        )
        return 2

    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="orgchart-consistency",
        description=f"Org Chart Classification Consistency Tools (v{_PACKAGE_VERSION})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_classify = sub.add_parser("classify", help="Classify a single position")
    p_classify.add_argument("--department", required=True, help="Department name")
    p_classify.add_argument(
        "--level",
        required=True,
        help=f"Level ({', '.join(LEVEL_VALUES)}); other values hit the fallback rule",
    )
    p_classify.add_argument("--subtitle", default=None, help="Sub-role, e.g. Mixing or Shipping")
    p_classify.add_argument(
        "--process-type", default=None, help="Separated process, e.g. No-sew or HF Welding"
    )
    p_classify.add_argument(
        "--explain", action="store_true", help="Also print the deciding rule and its reason"
    )
    p_classify.set_defaults(func=cmd_classify)

    p_validate = sub.add_parser("validate", help="Validate page data from a JSON or YAML file")
    p_validate.add_argument(
        "--input",
        required=True,
        help="JSON/YAML file mapping page keys (page1, page4Direct, ...) to position lists",
    )
    p_validate.add_argument(
        "--strict",
        action="store_true",
        help="Treat warnings as errors (exit code 2)",
    )
    p_validate.add_argument(
        "--report",
        nargs="?",
        const=True,
        default=False,
        help="Generate detailed Markdown report (next to the input file). Optionally specify custom directory path.",
    )
    p_validate.add_argument(
        "--report-json",
        nargs="?",
        const=True,
        default=False,
        help="Generate detailed JSON report (next to the input file). Optionally specify custom directory path.",
    )
    p_validate.set_defaults(func=cmd_validate)

    p_scenarios = sub.add_parser("scenarios", help="Run automated validation scenarios")
    p_scenarios.add_argument(
        "--scenarios",
        default=None,
        help="YAML file with scenario definitions (defaults to the built-in scenarios)",
    )
    p_scenarios.add_argument(
        "--only",
        default=None,
        help="Comma-separated scenario names to run",
    )
    p_scenarios.add_argument("--progress", action="store_true", help="Show a progress bar")
    p_scenarios.add_argument(
        "--strict",
        action="store_true",
        help="Treat scenarios with warnings as failures (exit code 2)",
    )
    p_scenarios.add_argument(
        "--summary-report",
        nargs="?",
        const=True,
        default=False,
        help="Generate Markdown summary across scenarios (current directory). Optionally specify custom directory path.",
    )
    p_scenarios.add_argument(
        "--report-json",
        nargs="?",
        const=True,
        default=False,
        help="Generate JSON with every scenario report (current directory). Optionally specify custom directory path.",
    )
    p_scenarios.set_defaults(func=cmd_scenarios)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
