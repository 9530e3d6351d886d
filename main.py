"""contract inventory crawler

discovers build roots in smart-contract repositories, builds them with the
foundry toolchain and lists every compiled contract with its imports

usage:
    python main.py --repo path/to/checkout
    python main.py --contests contests.json --output-format json
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from src.config import config
from src.compiler.errors import CrawlerError
from src.compiler.pipeline import ExtractionResult, ProjectResolver
from src.compiler.repository import clone_repository
from src.compiler.toolchain import SubprocessToolchain
from src.models.contest import Contest, load_contests
from src.utils.correlation import RunIdFilter, repository_run
from src.utils.logging import PipelineLogger
from src.utils.output_formats import OutputFormat, get_formatter
from src.utils.validation import (
    InputValidator,
    ValidationResult,
    validate_startup_config,
)

logger = logging.getLogger(__name__)


def extract_repository(repo_dir: Path, resolver: ProjectResolver) -> ExtractionResult:
    with repository_run(repo_dir):
        logger.info(f"Extracting contracts from {repo_dir}")
        return resolver.extract_all(repo_dir)


def crawl_contests(contests: List[Contest], resolver: ProjectResolver) -> List[Contest]:
    """clone and extract each contest repository; a failing repository is skipped"""
    for contest in contests:
        if not contest.repo_uri:
            logger.warning(f"Contest {contest.name} has no repository, skipping")
            continue

        with repository_run(contest.repo_uri) as run:
            try:
                repo_dir = clone_repository(contest.repo_uri, resolver.toolchain)
                result = resolver.extract_all(repo_dir)
            except (CrawlerError, OSError, ValueError) as e:
                logger.error(f"Contest {contest.name} failed after {run.elapsed_seconds():.1f}s: {e}",
                             extra={"repo_uri": contest.repo_uri})
                if resolver.event_log:
                    resolver.event_log.log_error(None, type(e).__name__, f"{contest.repo_uri}: {e}")
                continue

        contest.contracts = result.contracts
    return contests


def _print_block(title: str, items: List[str]) -> None:
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)
    for item in items:
        print(f"  {item}")
    print("=" * 70 + "\n")


def validate_inputs(args) -> ValidationResult:
    validator = InputValidator()
    result = validate_startup_config()

    if args.repo:
        result.merge(validator.validate_repository_path(str(args.repo)))

    if args.contests:
        try:
            data = json.loads(Path(args.contests).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            result.add_error(f"Cannot read contests file {args.contests}: {e}")
        else:
            result.merge(validator.validate_contest_records(data))

    if args.output:
        output_path = Path(args.output)
        if output_path.is_dir():
            result.add_error(f"Output path is a directory: {args.output}")
        elif not output_path.parent.exists():
            result.add_error(f"Output parent directory does not exist: {output_path.parent}")

    return result


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="C4 Crawler - smart contract inventory from Foundry and Hardhat repositories"
    )

    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument(
        "--repo",
        type=Path,
        help="Path to a local repository checkout"
    )
    input_group.add_argument(
        "--contests",
        type=Path,
        help="JSON list of contest records; each repository is cloned then crawled"
    )

    parser.add_argument(
        "--output-format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
        help="Output format (default: text)"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the report to this file instead of stdout"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help=f"Artifact reader threads per build root (default: {config.ARTIFACT_WORKERS})"
    )
    parser.add_argument(
        "--import-graph",
        action="store_true",
        help="Also report the file-level build order derived from the import graph"
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate inputs and configuration without building anything (dry-run)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(run_id)s] %(name)s: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(RunIdFilter())

    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")

    validation = validate_inputs(args)
    if validation.warnings:
        _print_block("VALIDATION WARNINGS:", validation.warnings)
    if not validation.valid:
        _print_block("VALIDATION ERRORS:", validation.errors)
        print("Please fix the above errors before running the crawler.")
        sys.exit(1)

    if args.validate_only:
        _print_block("VALIDATION SUCCESSFUL", ["All inputs and configuration are valid"])
        sys.exit(0)

    config.ensure_directories()
    event_log = PipelineLogger() if config.ENABLE_LOGGING else None
    resolver = ProjectResolver(
        toolchain=SubprocessToolchain(),
        event_log=event_log,
        max_workers=args.workers,
        build_import_graph=args.import_graph,
    )
    formatter = get_formatter(OutputFormat(args.output_format))

    if args.repo:
        result = extract_repository(args.repo, resolver)
        report = formatter.format_extraction(result)
        success = result.success
    else:
        contests = crawl_contests(load_contests(args.contests), resolver)
        report = formatter.format_contests(contests)
        success = True

    if args.output:
        args.output.write_text(report, encoding="utf-8")
        print(f"Report saved to: {args.output}")
    else:
        print(report)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
