"""Render command: process a single file and print it."""

import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Dict

from dotprep.exceptions import ConfigValidationError, PreprocessError
from dotprep.loader import ConfigLoader
from dotprep.query.asker import TerminalAsker
from dotprep.query.cache import QueryCache
from dotprep.variables.expansion import Expander
from dotprep.variables.substitution import merge_tables
from dotprep.workflow.processor import DocumentProcessor

from .run import configure_logging


logger = logging.getLogger(__name__)


def parse_substitutions(args: Namespace) -> Dict[str, str]:
    """Parse substitutions from KEY=VALUE arguments."""
    substitutions = {}

    if args.sub:
        for item in args.sub:
            if '=' not in item:
                raise ValueError(f"Invalid substitution format (expected KEY=VALUE): {item}")
            key, value = item.split('=', 1)
            if not key:
                raise ValueError(f"Invalid KEY in pair: {item}")
            substitutions[key] = value

    return substitutions


def render_document(args: Namespace) -> int:
    """
    Process one document and write it to stdout.

    Prefix and escapes come from the command line; a configuration file, if
    given, supplies the substitution table and the defaults.
    """
    configure_logging(args)

    source = Path(args.source)
    if not source.exists():
        logger.error(f"Source file not found: {source}")
        return 1

    expander = Expander()
    prefix = args.prefix
    escape = tuple(args.escape) if args.escape else None
    remove_instructions = True
    table: Dict[str, str] = {}
    strict = False

    try:
        if args.config:
            loader = ConfigLoader(expander)
            config = loader.load(Path(args.config))
            table = config.substitutions
            strict = config.strict_substitutions
            # The matching document entry, or else the defaults, fill unset options
            settings = (config.default_prefix, config.default_escape, config.default_remove_instructions)
            for document in config.documents:
                if document.source.resolve() == source.resolve():
                    settings = (document.prefix, document.escape, document.remove_instructions)
                    break
            prefix = prefix or settings[0]
            escape = escape or settings[1]
            remove_instructions = settings[2]

        table = merge_tables(table, parse_substitutions(args))
    except ConfigValidationError as e:
        for error in e.errors:
            logger.error(str(error.message))
        return e.exit_code
    except ValueError as e:
        logger.error(f"Validation error: {e}")
        return 2

    processor = DocumentProcessor(
        expander=expander,
        query_cache=QueryCache(),
        asker=TerminalAsker(output_stream=sys.stderr),
        substitutions=table,
        strict_substitutions=strict
    )

    try:
        text = source.read_text(encoding='utf-8')
        output = processor.process(
            text,
            prefix=prefix,
            escape=escape,
            remove_instructions=remove_instructions and not args.keep_instructions
        )
    except PreprocessError as e:
        logger.error(f"{source}: {e} ({e.kind})")
        return 1
    except OSError as e:
        logger.error(f"Failed to read {source}: {e}")
        return 1

    sys.stdout.write(output)
    return 0
