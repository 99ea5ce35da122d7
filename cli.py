#!/usr/bin/env python3
"""
refcheck CLI

Analyze a repository for unused source files (unreachable from any entry
point) and broken cross-file references.
"""

import argparse
import sys
from pathlib import Path

from analysis import (
    AnalysisCancelled,
    AnalysisConfig,
    RefcheckError,
    analyze,
    load_config,
)
from analysis.config import CONFIG_FILENAME
from analysis.logging import configure_logging, get_logger
from exporters import to_ascii, to_json, to_mermaid

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FINDINGS = 2
EXIT_CANCELLED = 130

logger = get_logger("cli")


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="refcheck",
        description="Find unused files and broken references in a repository.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  refcheck .                            # Text report for current directory
  refcheck ./web -f json -o report.json # JSON report to file
  refcheck . -f mermaid --group-by-dir  # Mermaid graph, grouped by directory
  refcheck . --entry src/cli.ts         # Add an entry point
  refcheck . --exclude "scripts/"       # Never report files under scripts/
  refcheck . --strict                   # Exit 2 when anything is found

Rules are also read from {CONFIG_FILENAME} in the repository root.
        """,
    )

    # Positional arguments
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Repository root directory (default: current directory)",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["text", "json", "mermaid"],
        default="text",
        help="Output format (default: text)",
    )

    parser.add_argument(
        "--ascii-style",
        choices=["tree", "ascii"],
        default="tree",
        help="Text output style: 'tree' (Unicode) or 'ascii' (pure ASCII)",
    )

    # Mermaid-specific options
    parser.add_argument(
        "--orientation",
        choices=["LR", "TD", "TB", "RL", "BT"],
        default="LR",
        help="Mermaid flowchart orientation (default: LR)",
    )

    parser.add_argument(
        "--group-by-dir",
        action="store_true",
        help="Group nodes by top-level directory in Mermaid output",
    )

    parser.add_argument(
        "--show-all",
        action="store_true",
        help="Include files with no connections in Mermaid output",
    )

    # Rule options
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Configuration file (default: <root>/{CONFIG_FILENAME} if present)",
    )

    parser.add_argument(
        "--entry",
        nargs="+",
        default=None,
        help="Entry-point patterns or paths, added to the configured ones",
    )

    parser.add_argument(
        "--exclude",
        nargs="+",
        default=None,
        help="Patterns for files never reported as unused, added to the configured ones",
    )

    parser.add_argument(
        "--no-default-entries",
        action="store_true",
        help="Use only --entry patterns as entry points",
    )

    parser.add_argument(
        "--no-default-excludes",
        action="store_true",
        help="Use only --exclude patterns as exclusions",
    )

    parser.add_argument(
        "--ext",
        nargs="+",
        default=None,
        help="Extensions tried for extensionless imports, in order (e.g., .ts .js)",
    )

    # Budget options
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads for extraction and resolution",
    )

    parser.add_argument(
        "--max-file-size",
        type=int,
        default=None,
        help="Largest file, in bytes, that is read for references",
    )

    parser.add_argument(
        "--read-timeout",
        type=float,
        default=None,
        help="Seconds allowed for reading and extracting one file",
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 when unused files or broken references are found",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Increase log verbosity for troubleshooting",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    return parser.parse_args(args)


def build_config(parsed, root: Path) -> AnalysisConfig:
    """Combine the configuration file with command line overrides."""
    config_path = Path(parsed.config) if parsed.config else root
    config = load_config(config_path)

    entry_points = [] if parsed.no_default_entries else list(config.entry_points)
    if parsed.entry:
        entry_points.extend(parsed.entry)

    exclude = [] if parsed.no_default_excludes else list(config.exclude)
    if parsed.exclude:
        exclude.extend(parsed.exclude)

    return config.merged(
        entry_points=entry_points,
        exclude=exclude,
        extensions=parsed.ext,
        workers=parsed.workers,
        max_file_size=parsed.max_file_size,
        read_timeout=parsed.read_timeout,
    )


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)
    configure_logging(
        verbose=parsed.verbose,
        log_file=Path(parsed.log_file) if parsed.log_file else None,
    )

    root = Path(parsed.root).resolve()
    if not root.is_dir():
        logger.error("'%s' is not a directory", parsed.root)
        return EXIT_ERROR

    try:
        config = build_config(parsed, root)
        result = analyze(root, config)
    except (AnalysisCancelled, KeyboardInterrupt):
        logger.error("Analysis cancelled")
        return EXIT_CANCELLED
    except RefcheckError as e:
        logger.error("Error analyzing repository: %s", e)
        return EXIT_ERROR

    if parsed.format == "json":
        output = to_json(result)
    elif parsed.format == "mermaid":
        output = to_mermaid(
            result,
            orientation=parsed.orientation,
            group_by_directory=parsed.group_by_dir,
            show_all=parsed.show_all,
        )
    else:  # text (default)
        output = to_ascii(result, title=str(root), style=parsed.ascii_style)

    # Write output
    if parsed.output:
        try:
            output_path = Path(parsed.output)
            output_path.write_text(output + "\n", encoding="utf-8")
            logger.info("Output written to: %s", output_path)
        except OSError as e:
            logger.error("Error writing output: %s", e)
            return EXIT_ERROR
    else:
        print(output)

    if parsed.strict and result.has_findings:
        return EXIT_FINDINGS
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
