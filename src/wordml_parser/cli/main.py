"""Main CLI entry point for the wordml command-line tool.

Provides batch parsing, well-formedness validation, tree dumps and profiling
of WordprocessingML parts, given as plain XML files or ``.docx`` archives.
"""

import argparse
import csv
import io
import json
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from wordml_parser import __version__
from wordml_parser.api import ParseResult, parse_docx, parse_file
from wordml_parser.document import render_outline
from wordml_parser.shared import (
    ConfigError,
    ParserConfig,
    TrailingInputPolicy,
    WordMLError,
    configure_logging,
    get_logger,
)
from wordml_parser.tools import PerformanceProfiler, profile_file

SUPPORTED_SUFFIXES = {".xml", ".docx"}
CSV_COLUMNS = [
    "file", "success", "root", "elements", "attributes", "max_depth",
    "time_ms", "error_kind", "error",
]
MAX_ERRORS_SHOWN = 3


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.parser_config = ParserConfig()
        self.max_workers: Optional[int] = None  # Use system default
        self.output_format = "json"

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file may hold a ``parser`` object (see ``ParserConfig.from_dict``)
        plus ``max_workers`` and ``output_format``.

        Raises:
            ConfigError: If the file cannot be read or holds invalid values
        """
        config = cls()
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must hold a JSON object")

        if "parser" in data:
            config.parser_config = ParserConfig.from_dict(data["parser"])
        config.max_workers = data.get("max_workers", config.max_workers)
        config.output_format = data.get("output_format", config.output_format)
        return config


class ProgressTracker:
    """Progress tracking for long-running operations."""

    def __init__(self, total: int, description: str = "Processing", enabled: bool = True):
        self.total = total
        self.completed = 0
        self.description = description
        self.enabled = enabled and total > 1
        self.start_time = time.time()
        self.last_update = 0.0

    def update(self, increment: int = 1) -> None:
        """Update progress and display if needed."""
        self.completed += increment
        current_time = time.time()

        # Update every second or on completion
        if current_time - self.last_update >= 1.0 or self.completed >= self.total:
            self._display_progress()
            self.last_update = current_time

    def _display_progress(self) -> None:
        if not self.enabled:
            return

        percentage = (self.completed / self.total) * 100
        elapsed = time.time() - self.start_time

        if self.completed > 0 and elapsed > 0:
            rate = self.completed / elapsed
            eta = (self.total - self.completed) / rate if rate > 0 else 0
            eta_str = f", ETA: {eta:.0f}s" if eta > 0 else ""
        else:
            eta_str = ""

        progress_bar = "=" * int(percentage // 2)
        progress_bar += " " * (50 - len(progress_bar))

        print(f"\r{self.description}: [{progress_bar}] "
              f"{percentage:.1f}% ({self.completed}/{self.total}){eta_str}",
              end="", file=sys.stderr)

        if self.completed >= self.total:
            print(file=sys.stderr)  # New line on completion


def parse_path(file_path: Path, parser_config: ParserConfig) -> ParseResult:
    """Parse an XML file, or the document part of a ``.docx`` archive."""
    if file_path.suffix.lower() == ".docx":
        return parse_docx(file_path, config=parser_config)
    return parse_file(file_path, config=parser_config)


def process_single_file(file_path: Path, parser_config: ParserConfig) -> Dict[str, Any]:
    """Parse one file and flatten the outcome for output.

    Module-level so it can be shipped to worker processes.
    """
    result = parse_path(file_path, parser_config)
    summary = result.summary()
    summary["file"] = str(file_path)
    summary["diagnostics"] = [diag.to_dict() for diag in result.diagnostics]
    return summary


class DocumentProcessor:
    """File discovery and batch parsing for CLI operations."""

    def __init__(self, config: CLIConfig, show_progress: bool = True):
        self.config = config
        self.show_progress = show_progress
        self.logger = get_logger(__name__, None, "cli_processor")

    def find_files(self, path: Path, recursive: bool = False) -> Iterator[Path]:
        """Yield supported files: ``path`` itself or the files in a directory."""
        if path.is_file():
            yield path
        elif path.is_dir():
            pattern = "**/*" if recursive else "*"
            for candidate in sorted(path.glob(pattern)):
                if candidate.is_file() and candidate.suffix.lower() in SUPPORTED_SUFFIXES:
                    yield candidate
        else:
            # Missing paths are reported by the parser as failed results
            yield path

    def batch_process(self, paths: List[Path], recursive: bool = False) -> List[Dict[str, Any]]:
        """Parse every file under ``paths``, in parallel when configured."""
        all_files: List[Path] = []
        for path in paths:
            all_files.extend(self.find_files(path, recursive))

        if not all_files:
            return []

        self.logger.info(
            "Starting batch",
            extra={"file_count": len(all_files), "max_workers": self.config.max_workers}
        )
        parser_config = self.config.parser_config
        progress = ProgressTracker(len(all_files), "Parsing files", enabled=self.show_progress)

        if len(all_files) == 1 or self.config.max_workers == 1:
            results = []
            for file_path in all_files:
                results.append(process_single_file(file_path, parser_config))
                progress.update()
            return results

        by_file: Dict[Path, Dict[str, Any]] = {}
        with ProcessPoolExecutor(max_workers=self.config.max_workers) as executor:
            future_to_file = {
                executor.submit(process_single_file, file_path, parser_config): file_path
                for file_path in all_files
            }
            for future in as_completed(future_to_file):
                by_file[future_to_file[future]] = future.result()
                progress.update()

        # Report in input order regardless of completion order
        return [by_file[file_path] for file_path in all_files]


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="wordml",
        description="Stack-validated parser for WordprocessingML (w:) documents"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse WordML files")
    parse_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML or .docx files, or directories containing them"
    )
    parse_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively process directories"
    )
    parse_parser.add_argument(
        "--format", "-f",
        choices=["json", "csv", "text"],
        default=None,
        help="Output format (default: json)"
    )
    parse_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    parse_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    parse_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Ignore non-whitespace input after the root element"
    )
    parse_parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Number of parallel workers"
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Check files are well-formed")
    validate_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML or .docx files to validate"
    )
    policy = validate_parser.add_mutually_exclusive_group()
    policy.add_argument(
        "--strict",
        action="store_true",
        help="Reject trailing input after the root element (default)"
    )
    policy.add_argument(
        "--lenient",
        action="store_true",
        help="Accept trailing input after the root element with a warning"
    )
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format"
    )

    # Dump command
    dump_parser = subparsers.add_parser("dump", help="Print the parsed tree")
    dump_parser.add_argument("path", type=Path, help="XML or .docx file")
    dump_parser.add_argument(
        "--format", "-f",
        choices=["json", "xml", "outline"],
        default="outline",
        help="Dump format (default: outline)"
    )

    # Profile command
    profile_parser = subparsers.add_parser("profile", help="Time repeated parses of a file")
    profile_parser.add_argument("path", type=Path, help="XML or .docx file")
    profile_parser.add_argument(
        "--iterations", "-n",
        type=int,
        default=10,
        help="Number of parses (default: 10)"
    )
    profile_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Write the JSON report to this file"
    )

    return parser


def _error_diagnostics(result: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        d for d in result.get("diagnostics", [])
        if d.get("severity") in ("ERROR", "CRITICAL")
    ]


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format processing results for output."""
    if format_type == "csv":
        if not results:
            return ""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)
        for result in results:
            writer.writerow([
                result["file"],
                result["success"],
                result.get("root") or "",
                result.get("elements", 0),
                result.get("attributes", 0),
                result.get("max_depth", 0),
                f"{result.get('processing_time_ms', 0):.1f}",
                result.get("error_kind") or "",
                result.get("error") or "",
            ])
        return buffer.getvalue().rstrip("\n")

    if format_type == "text":
        if not results:
            return "No results to display."

        successful = sum(1 for r in results if r.get("success", False))
        lines = [f"Processed {len(results)} files, {successful} successful", "-" * 60]

        for result in results:
            status = "✓" if result.get("success", False) else "✗"
            lines.append(f"{status} {result['file']}")
            if result.get("success", False):
                lines.append(
                    f"   Root: {result.get('root')}, Elements: {result.get('elements', 0)}, "
                    f"Depth: {result.get('max_depth', 0)}, "
                    f"Time: {result.get('processing_time_ms', 0):.1f}ms"
                )
                if result.get("trailing_input_ignored"):
                    lines.append("   Warning: trailing input was ignored")

            errors = _error_diagnostics(result)
            for error in errors[:MAX_ERRORS_SHOWN]:
                position = error.get("position")
                where = f" (line {position['line']}, column {position['column']})" if position else ""
                lines.append(f"   Error: {error.get('message', '')}{where}")
            if len(errors) > MAX_ERRORS_SHOWN:
                lines.append(f"   ... and {len(errors) - MAX_ERRORS_SHOWN} more errors")

            lines.append("")

        return "\n".join(lines)

    return json.dumps(results, indent=2)


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle parse command."""
    config = CLIConfig.from_file(args.config) if args.config else CLIConfig()

    # Apply command-line overrides
    if args.lenient:
        config.parser_config = config.parser_config.override(
            trailing_input=TrailingInputPolicy.LENIENT
        )
    if args.workers:
        config.max_workers = args.workers
    if args.format:
        config.output_format = args.format

    processor = DocumentProcessor(config, show_progress=not args.quiet)
    results = processor.batch_process(args.paths, args.recursive)
    formatted_output = format_results(results, config.output_format)

    if args.output:
        try:
            args.output.write_text(formatted_output, encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        if not args.quiet:
            print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(formatted_output)

    if not results:
        print("No supported files found", file=sys.stderr)
        return 1

    successful = sum(1 for r in results if r.get("success", False))
    return 0 if successful == len(results) else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    parser_config = ParserConfig.lenient() if args.lenient else ParserConfig.strict()

    results = []
    for path in args.paths:
        result = parse_path(path, parser_config)
        validation_result: Dict[str, Any] = {
            "file": str(path),
            "valid": result.success,
            "warnings": len([
                d for d in result.diagnostics if d.severity.name == "WARNING"
            ]),
        }
        if result.error is not None:
            validation_result["error"] = result.error.to_dict()
        elif not result.success:
            messages = [d.message for d in result.diagnostics if d.is_error]
            validation_result["error"] = {"kind": None, "message": messages[0] if messages else ""}
        results.append(validation_result)

    if args.format == "json":
        print(json.dumps(results, indent=2))
    else:
        valid_count = sum(1 for r in results if r["valid"])
        print(f"Validated {len(results)} files, {valid_count} valid")
        print("-" * 50)

        for result in results:
            status = "✓" if result["valid"] else "✗"
            print(f"{status} {result['file']}")
            error = result.get("error")
            if error:
                position = error.get("position")
                where = f" at line {position['line']}, column {position['column']}" if position else ""
                kind = f"{error['kind']}: " if error.get("kind") else ""
                print(f"   Error: {kind}{error['message']}{where}")

    valid_count = sum(1 for r in results if r["valid"])
    return 0 if valid_count == len(results) else 1


def cmd_dump(args: argparse.Namespace) -> int:
    """Handle dump command."""
    result = parse_path(args.path, ParserConfig())
    if result.document is None:
        errors = [d.message for d in result.diagnostics if d.is_error]
        message = str(result.error) if result.error else (errors[0] if errors else "parse failed")
        print(f"Cannot dump {args.path}: {message}", file=sys.stderr)
        return 1

    document = result.document
    if args.format == "json":
        print(json.dumps(document.to_dict(), indent=2))
    elif args.format == "xml":
        print(document.to_string())
    else:
        print(document.header)
        print(render_outline(document.root))
    return 0


def cmd_profile(args: argparse.Namespace) -> int:
    """Handle profile command."""
    profiler = PerformanceProfiler()
    report = profile_file(args.path, iterations=args.iterations, profiler=profiler)

    print(f"Profiled {args.path} over {report.session_count} iterations")
    print(f"   Average: {report.average_duration_ms:.2f}ms, "
          f"{report.average_throughput_mb_per_s:.2f} MB/s")
    for stage, duration in report.average_layer_duration_ms().items():
        print(f"   {stage}: {duration:.2f}ms")
    for recommendation in profiler.get_optimization_recommendations(report):
        print(f"   - {recommendation}")

    if args.output:
        profiler.save_report(report, args.output)
        print(f"Report written to {args.output}", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")
    else:
        configure_logging("WARNING")

    handlers = {
        "parse": cmd_parse,
        "validate": cmd_validate,
        "dump": cmd_dump,
        "profile": cmd_profile,
    }

    try:
        return handlers[args.command](args)
    except (WordMLError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
