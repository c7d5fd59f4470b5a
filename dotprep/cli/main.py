"""Main CLI entry point for dotprep."""

import argparse
import sys
from typing import Optional

from .commands import run_preprocessor, render_document


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the dotprep CLI."""
    parser = argparse.ArgumentParser(
        prog='dotprep',
        description='Configuration file preprocessor'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Run command
    run_parser = subparsers.add_parser('run', help='Preprocess and link every configured document')
    run_parser.add_argument(
        'config',
        type=str,
        help='Path to the configuration file (YAML or TOML)'
    )
    run_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Process documents without writing or linking'
    )
    run_parser.add_argument(
        '--no-link',
        action='store_true',
        help='Write processed files but do not create target links'
    )
    run_parser.add_argument(
        '--on-error',
        choices=['stop', 'continue'],
        default='stop',
        help='Error handling strategy'
    )
    run_parser.add_argument(
        '--command-timeout',
        type=float,
        metavar='SEC',
        help='Timeout for $(...) commands (default: none)'
    )
    run_parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    run_parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )
    run_parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    run_parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default='info',
        help='Set log level'
    )

    # Render command
    render_parser = subparsers.add_parser('render', help='Process one file and print the result')
    render_parser.add_argument(
        'source',
        type=str,
        help='Path to the document to process'
    )
    render_parser.add_argument(
        '--config',
        type=str,
        help='Configuration file supplying substitutions and defaults'
    )
    render_parser.add_argument(
        '--prefix',
        type=str,
        help='Directive prefix'
    )
    render_parser.add_argument(
        '--escape',
        nargs=2,
        metavar=('START', 'END'),
        help='Substitution escapes'
    )
    render_parser.add_argument(
        '--keep-instructions',
        action='store_true',
        help='Keep directive lines in the output'
    )
    render_parser.add_argument(
        '--sub',
        action='append',
        metavar='KEY=VALUE',
        help='Substitution (can be specified multiple times)'
    )
    render_parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default='warn',
        help='Set log level'
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'run':
        return run_preprocessor(parsed_args)
    elif parsed_args.command == 'render':
        return render_document(parsed_args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
