"""Main CLI entry point for depcheck."""

import argparse
import logging
import sys
from typing import Optional

from . import __version__
from .analyzer import DuplicateAnalyzer
from .commands.stats import show_stats
from .exceptions import DepcheckError
from .formatters import OutputFormatter
from .graph_builder import PackageGraphBuilder
from .models import AnalysisOptions
from .parsers import LockFileParser

logger = logging.getLogger(__name__)

DEFAULT_LOCK_FILE = 'Cargo.lock'


def setup_logging(verbose: bool = False, log_level: Optional[str] = None):
    """Configure logging based on verbosity flags."""
    if log_level:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def _write_output(output: str, output_file: str) -> None:
    if output_file == '-':
        print(output, end='')
    else:
        with open(output_file, 'w') as f:
            f.write(output)
        logger.info(f"Output written to: {output_file}")


def handle_check(args) -> int:
    """Handle the 'check' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    options = AnalysisOptions(
        include_blame=args.blame is not None,
        include_lineage=args.dependents,
        max_workers=args.workers
    )

    records = LockFileParser.load(args.lock_file, args.input_format)
    logger.info(f"Loaded {len(records)} packages from {args.lock_file}")

    report = DuplicateAnalyzer(options).analyze_records(records)

    if args.output_format == 'json':
        output = OutputFormatter.format_as_json(report, args.system)
    else:
        output = OutputFormatter.format_as_text(
            report,
            blame_mode=args.blame,
            blame_detail=args.blame_detail,
            show_dependents=args.dependents
        )

    _write_output(output, args.output)

    # Duplicates fail the check
    return 1 if report.has_duplicates else 0


def handle_sbom(args) -> int:
    """Handle the 'sbom' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    # Capture command line for SBOM metadata
    command_line = ' '.join(sys.argv[1:])

    records = LockFileParser.load(args.lock_file, args.input_format)
    graph = PackageGraphBuilder().build(records)
    report = DuplicateAnalyzer(AnalysisOptions(include_blame=True)).analyze(graph)

    output = OutputFormatter.format_as_sbom(graph, report, args.system, command_line)
    _write_output(output, args.output)
    if args.output != '-':
        print(f"Output written to: {args.output}")
    return 0


def handle_stats(args) -> int:
    """Handle the 'stats' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    records = LockFileParser.load(args.lock_file, args.input_format)
    graph = PackageGraphBuilder().build(records)
    report = DuplicateAnalyzer(AnalysisOptions(include_blame=True)).analyze(graph)

    show_stats(graph, report)
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('lock_file', nargs='?', default=DEFAULT_LOCK_FILE,
                        help=f'Lock file path or URL (default: {DEFAULT_LOCK_FILE})')
    parser.add_argument('--input-format', choices=['cargo', 'json'],
                        help='Input format (cargo, json). Default: detect from file name')
    parser.add_argument('--system', default='cargo',
                        help='Package URL type for JSON/SBOM output. Default: cargo')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--loglevel', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Set log level')


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='depcheck',
        description='Find packages locked at multiple versions and who is to blame for them'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Subcommands')

    # Check command
    check_parser = subparsers.add_parser('check', help='Report multi-version dependencies')
    _add_common_arguments(check_parser)
    check_parser.add_argument('-b', '--blame', choices=['top-level', 'all'],
                              help='Show packages to blame (top-level, all)')
    check_parser.add_argument('-p', '--blame-detail', action='store_true',
                              help='Show which dependencies bring in each version for direct blame')
    check_parser.add_argument('-d', '--dependents', action='store_true',
                              help='Show direct dependents and top-level packages per version')
    check_parser.add_argument('--format', dest='output_format', default='text',
                              choices=['text', 'json'],
                              help='Output format (text, json). Default: text')
    check_parser.add_argument('-o', '--output', default='-',
                              help='Output file (default: stdout, use - for stdout)')
    check_parser.add_argument('--workers', type=int, default=1,
                              help='Analyze multi-version packages on this many threads. Default: 1')
    check_parser.set_defaults(func=handle_check)

    # SBOM command
    sbom_parser = subparsers.add_parser('sbom', help='Generate a CycloneDX SBOM from a lock file')
    _add_common_arguments(sbom_parser)
    sbom_parser.add_argument('output', nargs='?', default='-',
                             help='Output file (default: stdout, use - for stdout)')
    sbom_parser.set_defaults(func=handle_sbom)

    # Stats command
    stats_parser = subparsers.add_parser('stats', help='Show lock file statistics')
    _add_common_arguments(stats_parser)
    stats_parser.set_defaults(func=handle_stats)

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Execute command
    try:
        return args.func(args)
    except (DepcheckError, ValueError) as e:
        logger.error(f"{e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
