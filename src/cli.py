import argparse
import json
import sys
from pathlib import Path

from src.cli_utils import VerboseLogger, meets_fail_threshold, parse_patterns, progress_printer
from src.config import CONFIG_FILE_NAME, default_config, load_settings
from src.detection.core.models import FileResult, Severity
from src.detection.engine import analyze_many
from src.detector_registry import DETECTOR_CATEGORIES
from src.file_filters import collect_component_files
from src.report import REPORT_FORMATS, generate_report


# CLI flag -> threshold config name
THRESHOLD_FLAGS = {
    "threshold_template_expression_length": "templateExpressionLength",
    "threshold_template_depth": "templateDepth",
    "threshold_component_script_length": "componentScriptLength",
    "threshold_component_method_count": "componentMethodCount",
}


def _build_parser():
    parser = argparse.ArgumentParser(description="Detect anti-patterns in Vue single-file components")
    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Optional path to .env file for configuration overrides",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging and refactoring suggestions",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze Vue components for anti-patterns")
    analyze_parser.add_argument(
        "patterns",
        nargs="+",
        help="Files, directories or glob patterns (comma separated values are accepted)",
    )
    analyze_parser.add_argument(
        "--format",
        "-f",
        choices=list(REPORT_FORMATS),
        help="Report format (default: console, or the configured format)",
    )
    analyze_parser.add_argument("--output", "-o", help="Write the report to this file")
    analyze_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        dest="analyze_verbose",
        help="Show refactoring suggestions and debug output",
    )
    analyze_parser.add_argument("--config", "-c", help=f"Path to a {CONFIG_FILE_NAME} style config file")
    analyze_parser.add_argument("--exclude", "-e", help="Comma separated glob patterns to exclude")
    analyze_parser.add_argument(
        "--category",
        action="append",
        choices=sorted(DETECTOR_CATEGORIES.keys()),
        help="Only run detectors of this category (repeatable)",
    )
    analyze_parser.add_argument("--workers", type=int, help="Maximum number of parallel workers")
    analyze_parser.add_argument(
        "--fail-on",
        choices=[severity.value for severity in Severity],
        type=str.upper,
        help="Exit with status 2 when an issue of this severity or higher is found",
    )
    analyze_parser.add_argument(
        "--threshold-template-expression-length",
        type=int,
        help="Maximum template expression length",
    )
    analyze_parser.add_argument("--threshold-template-depth", type=int, help="Maximum template nesting depth")
    analyze_parser.add_argument(
        "--threshold-component-script-length",
        type=int,
        help="Maximum component script length in lines",
    )
    analyze_parser.add_argument(
        "--threshold-component-method-count",
        type=int,
        help="Maximum number of component methods",
    )

    # Init command
    init_parser = subparsers.add_parser("init", help=f"Create a {CONFIG_FILE_NAME} config file")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing config file")

    # List patterns command
    subparsers.add_parser("list-patterns", help="Show the detectable anti-patterns by category")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the analysis API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable autoreload (dev only)")

    return parser


def _threshold_overrides(args, configured: dict) -> dict:
    overrides = dict(configured)
    for flag, name in THRESHOLD_FLAGS.items():
        value = getattr(args, flag, None)
        if value is not None:
            overrides[name] = value
    return overrides


def _read_files(paths, logger: VerboseLogger):
    files = []
    unreadable = []
    for path in paths:
        try:
            files.append({"path": path, "content": Path(path).read_text(encoding="utf-8")})
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {path}: {e}")
            unreadable.append(FileResult(path, [], [f"Could not read file: {e}"]))
    return files, unreadable


def _run_analyze(args, logger: VerboseLogger) -> int:
    try:
        settings = load_settings(env_file=args.env_file, config_file=args.config)
    except RuntimeError as e:
        logger.error(str(e))
        return 1

    verbose = args.verbose or args.analyze_verbose or settings.verbose
    logger.verbose = verbose
    fmt = args.format or settings.output_format
    if fmt != "console" and not args.output:
        # The report owns stdout; diagnostics go to stderr
        logger.stream = sys.stderr

    exclude = list(settings.exclude)
    if args.exclude:
        exclude.extend(part.strip() for part in args.exclude.split(",") if part.strip())
    thresholds = _threshold_overrides(args, settings.thresholds)

    patterns = parse_patterns(args.patterns)
    logger.debug(f"Patterns: {patterns}; exclude: {exclude}")
    paths = collect_component_files(patterns, exclude)
    if not paths:
        logger.warning("No files found matching the specified patterns.")
        return 0

    logger.info(f"Analyzing {len(paths)} Vue.js file(s)...")
    files, unreadable = _read_files(paths, logger)
    try:
        results = analyze_many(
            files,
            thresholds=thresholds,
            max_workers=args.workers or settings.max_workers,
            categories=args.category,
            timeout_per_file=settings.timeout_per_file,
            progress_callback=progress_printer(logger),
        )
    except ValueError as e:
        logger.error(f"Invalid analysis options: {e}")
        return 1
    results.extend(unreadable)
    results.sort(key=lambda result: result.file_path)

    report = generate_report(results, fmt, verbose)
    if args.output:
        Path(args.output).write_text(report, encoding="utf-8")
        logger.info(f"Report saved to: {args.output}")
    else:
        print(report)

    if meets_fail_threshold(results, args.fail_on):
        logger.debug(f"Found issues at or above {args.fail_on}")
        return 2
    return 0


def _run_init(args, logger: VerboseLogger) -> int:
    target = Path(CONFIG_FILE_NAME)
    if target.exists() and not args.force:
        logger.warning("Configuration file already exists. Use --force to overwrite.")
        return 1
    target.write_text(json.dumps(default_config(), indent=2) + "\n", encoding="utf-8")
    logger.info(f"Configuration file created: {CONFIG_FILE_NAME}")
    return 0


def _print_patterns():
    print("\n" + "=" * 60)
    print("DETECTABLE ANTI-PATTERNS")
    print("=" * 60)
    for category, pattern_ids in DETECTOR_CATEGORIES.items():
        print(f"\n{category.upper()}:")
        for pattern_id in pattern_ids:
            print(f"  {pattern_id}")
    print("\n" + "=" * 60 + "\n")


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)

    logger = VerboseLogger(verbose=args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "list-patterns":
        _print_patterns()
        return

    if args.command == "init":
        sys.exit(_run_init(args, logger))

    # Serve command (defer to uvicorn)
    if args.command == "serve":
        from uvicorn import run
        from src.server import create_app

        try:
            settings = load_settings(env_file=args.env_file)
        except RuntimeError as e:
            logger.error(str(e))
            sys.exit(1)
        app = create_app(settings)
        run(app=app, host=args.host, port=args.port, reload=args.reload)
        return

    if args.command == "analyze":
        sys.exit(_run_analyze(args, logger))


if __name__ == "__main__":
    main()
