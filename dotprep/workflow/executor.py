"""
Run executor.
Processes every configured document in order with one shared query cache,
then writes and links the results.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..exceptions import PreprocessError, TargetExistsError
from ..fs.linker import DocumentLinker
from ..loader import Config, DocumentConfig
from ..query.cache import Asker, QueryCache
from ..variables.expansion import Expander
from .processor import DocumentProcessor

logger = logging.getLogger(__name__)


class DocumentStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class DocumentResult:
    """Outcome of processing one document."""
    source: Path
    target: Path
    status: DocumentStatus
    output_path: Optional[Path] = None
    error: Optional[Dict[str, Any]] = None


@dataclass
class RunResult:
    """Outcome of a whole run."""
    documents: List[DocumentResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(doc.status is not DocumentStatus.FAILED for doc in self.documents)

    @property
    def failed(self) -> List[DocumentResult]:
        return [doc for doc in self.documents if doc.status is DocumentStatus.FAILED]


class RunExecutor:
    """
    Main preprocessing engine for one run.

    Documents are processed strictly one after another in configuration
    order so that repeated questions reuse the first answer given.
    """

    def __init__(
        self,
        config: Config,
        asker: Asker,
        expander: Optional[Expander] = None,
        linker: Optional[DocumentLinker] = None,
        query_cache: Optional[QueryCache] = None,
        dry_run: bool = False,
        link: bool = True
    ):
        """
        Initialize run executor.

        Args:
            config: Validated configuration
            asker: Prompt capability for ASK blocks
            expander: Expander (default: process environment and real commands)
            linker: Output writer and linker
            query_cache: Answer cache (default: a fresh one for this run)
            dry_run: Process documents without writing or linking
            link: Create target links after writing
        """
        self.config = config
        self.expander = expander or Expander()
        self.linker = linker or DocumentLinker()
        self.query_cache = query_cache if query_cache is not None else QueryCache()
        self.dry_run = dry_run
        self.link = link
        self.processor = DocumentProcessor(
            expander=self.expander,
            query_cache=self.query_cache,
            asker=asker,
            substitutions=config.substitutions,
            strict_substitutions=config.strict_substitutions
        )

    def execute(self, on_error: str = 'stop') -> RunResult:
        """
        Process all documents.

        Args:
            on_error: 'stop' to abort at the first failing document,
                'continue' to report it and go on with the next one

        Returns:
            RunResult with one entry per document
        """
        result = RunResult()

        for index, document in enumerate(self.config.documents):
            doc_result = self.execute_document(document)
            result.documents.append(doc_result)

            if doc_result.status is DocumentStatus.FAILED:
                error = doc_result.error or {}
                location = f" at line {error['line']}" if error.get('line') else ""
                message = (f"Document '{document.source}' failed{location} "
                           f"({error.get('type')}): {error.get('message')}")
                if on_error == 'stop':
                    logger.error(message + ". Stopping run.")
                    for skipped in self.config.documents[index + 1:]:
                        result.documents.append(DocumentResult(
                            source=skipped.source,
                            target=skipped.target,
                            status=DocumentStatus.SKIPPED
                        ))
                    break
                logger.warning(message + ". Continuing.")

        return result

    def execute_document(self, document: DocumentConfig) -> DocumentResult:
        """Process, write and link a single document."""
        logger.info(f"Preprocessing {document.source}")

        try:
            content = self.processor.process_document(document)
        except PreprocessError as e:
            return self._failed(document, e.kind, e.message, line=e.line_number)
        except (OSError, UnicodeDecodeError) as e:
            return self._failed(document, "read_error", f"Failed to read source file: {e}")

        if self.dry_run:
            logger.info(f"[DRY RUN] Would write {document.output_path} and link {document.target}")
            return DocumentResult(
                source=document.source,
                target=document.target,
                status=DocumentStatus.COMPLETED
            )

        try:
            output_path = self.linker.write_output(document.output_path, content)
            if self.link:
                self.linker.link(output_path, document.target)
        except TargetExistsError as e:
            return self._failed(document, "target_exists", str(e))
        except OSError as e:
            return self._failed(document, "filesystem_error", str(e))

        return DocumentResult(
            source=document.source,
            target=document.target,
            status=DocumentStatus.COMPLETED,
            output_path=output_path
        )

    def _failed(
        self,
        document: DocumentConfig,
        error_type: str,
        message: str,
        line: Optional[int] = None
    ) -> DocumentResult:
        error: Dict[str, Any] = {"type": error_type, "message": message}
        if line is not None:
            error["line"] = line
        return DocumentResult(
            source=document.source,
            target=document.target,
            status=DocumentStatus.FAILED,
            error=error
        )
