"""Run command implementation."""

import logging
from argparse import Namespace
from pathlib import Path

from dotprep.exceptions import ConfigValidationError
from dotprep.exec.command_runner import CommandRunner
from dotprep.loader import ConfigLoader
from dotprep.query.asker import TerminalAsker
from dotprep.variables.expansion import Expander
from dotprep.workflow.executor import RunExecutor, DocumentStatus


logger = logging.getLogger(__name__)


def configure_logging(args: Namespace):
    """Set up logging from the --log-level/--debug/--quiet/--verbose flags."""
    log_level = getattr(logging, args.log_level.upper())
    if getattr(args, 'debug', False):
        log_level = logging.DEBUG
    elif getattr(args, 'quiet', False):
        log_level = logging.ERROR
    elif getattr(args, 'verbose', False):
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def run_preprocessor(args: Namespace) -> int:
    """
    Preprocess and link every document of a configuration.

    Returns:
        0 on success, 1 if a document failed, 2 on configuration errors
    """
    configure_logging(args)

    try:
        config_path = Path(args.config).resolve()
        if not config_path.exists():
            logger.error(f"Configuration file not found: {config_path}")
            return 1

        expander = Expander(runner=CommandRunner(timeout_sec=args.command_timeout))

        logger.info(f"Loading configuration: {config_path}")
        loader = ConfigLoader(expander)
        try:
            config = loader.load(config_path)
        except ConfigValidationError as e:
            for error in e.errors:
                location = f" ({error.path})" if error.path else ""
                logger.error(f"Validation error{location}: {error.message}")
            return e.exit_code

        executor = RunExecutor(
            config=config,
            asker=TerminalAsker(),
            expander=expander,
            dry_run=args.dry_run,
            link=not args.no_link
        )
        result = executor.execute(on_error=args.on_error)

        completed = sum(1 for doc in result.documents if doc.status is DocumentStatus.COMPLETED)
        logger.info(
            f"Processed {completed} of {len(result.documents)} documents"
            + (f", {len(result.failed)} failed" if result.failed else "")
        )

        return 0 if result.success else 1

    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1
