"""
Materialization of processed documents.

The processed text is written next to the source as `<source>.preprocessed`
and the configured target becomes a symlink to it.
"""

import logging
import os
from pathlib import Path

from ..exceptions import TargetExistsError

logger = logging.getLogger(__name__)


class DocumentLinker:
    """Writes processed output and links targets to it."""

    def write_output(self, output_path: Path, content: str) -> Path:
        """
        Write processed content atomically.

        Content goes to a temporary file in the same directory first and is
        then renamed over the output path, so a linked target never sees a
        partially written file.

        Returns:
            The absolute output path

        Raises:
            OSError: If file operations fail
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = output_path.with_name(output_path.name + ".tmp")

        try:
            temp_path.write_text(content, encoding='utf-8')
            os.replace(temp_path, output_path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

        logger.debug(f"Wrote {len(content)} characters to {output_path}")
        return output_path.resolve()

    def link(self, output_path: Path, target: Path) -> Path:
        """
        Point target at output_path with a symlink.

        An existing symlink at target is replaced; any other existing file is
        left alone and reported.

        Raises:
            TargetExistsError: If target exists and is not a symlink
        """
        target = Path(target)
        source = Path(output_path).resolve()

        if target.is_symlink():
            target.unlink()
        elif target.exists():
            raise TargetExistsError(str(target))

        target.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Linking {source} to {target}")
        target.symlink_to(source)
        return target
