"""Configuration loader and strict validation.

The configuration lists the documents to preprocess, per-document overrides
and the substitution table shared by all documents. YAML is the default
format; files ending in `.toml` are read as TOML.
"""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import yaml

from dotprep.exceptions import ExpansionError, ValidationError, ConfigValidationError
from dotprep.variables.expansion import Expander

logger = logging.getLogger(__name__)

Escape = Tuple[str, str]


@dataclass
class DocumentConfig:
    """Effective configuration of one document after defaults are applied."""
    source: Path
    target: Path
    prefix: Optional[str] = None
    escape: Optional[Escape] = None
    remove_instructions: bool = True

    @property
    def output_path(self) -> Path:
        """Where the processed document is written."""
        return self.source.with_name(self.source.name + ConfigLoader.OUTPUT_SUFFIX)


@dataclass
class Config:
    """The complete configuration."""
    documents: List[DocumentConfig] = field(default_factory=list)
    substitutions: Dict[str, str] = field(default_factory=dict)
    strict_substitutions: bool = False
    path: Optional[Path] = None
    default_prefix: Optional[str] = None
    default_escape: Optional[Escape] = None
    default_remove_instructions: bool = True


class ConfigLoader:
    """Loads and validates the preprocessor configuration."""

    OUTPUT_SUFFIX = ".preprocessed"
    TOP_LEVEL_FIELDS = {
        'default_prefix', 'default_escape', 'default_remove_instructions',
        'strict_substitutions', 'substitutions', 'config'
    }
    DOCUMENT_FIELDS = {'source', 'target', 'prefix', 'escape', 'remove_instructions'}

    def __init__(self, expander: Optional[Expander] = None):
        """Initialize loader; the expander resolves $VARS in paths."""
        self.expander = expander or Expander()
        self.errors: List[ValidationError] = []

    def load(self, config_path: Path) -> Config:
        """Load and validate a configuration file."""
        self.errors = []
        config_path = Path(config_path)

        try:
            raw = self._read(config_path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
            self._add_error(f"Failed to load configuration: {e}")
            self._raise_validation_errors()

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            self._add_error("Configuration must be a mapping")
            self._raise_validation_errors()

        config = self.build(raw, config_path.resolve().parent)
        config.path = config_path
        return config

    def build(self, raw: Dict[str, Any], root: Path) -> Config:
        """
        Validate a raw configuration mapping and apply defaults.

        Args:
            raw: Parsed configuration
            root: Directory that relative paths resolve against

        Raises:
            ConfigValidationError: If any validation error was found
        """
        self.errors = []

        for key in raw.keys():
            if key not in self.TOP_LEVEL_FIELDS:
                self._add_error(f"Unknown field '{key}'")

        default_prefix = self._validate_prefix(raw.get('default_prefix'), 'default_prefix')
        default_escape = self._validate_escape(raw.get('default_escape'), 'default_escape')
        default_remove = self._validate_bool(
            raw.get('default_remove_instructions', True), 'default_remove_instructions'
        )
        strict = self._validate_bool(raw.get('strict_substitutions', False), 'strict_substitutions')
        substitutions = self._validate_substitutions(raw.get('substitutions'))

        documents = []
        entries = raw.get('config', [])
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            self._add_error("'config' must be a list of document entries", 'config')
            entries = []

        for i, entry in enumerate(entries):
            document = self._validate_document(
                entry, f"config[{i}]", root, default_prefix, default_escape, default_remove
            )
            if document is not None:
                documents.append(document)

        if not documents and not self.errors:
            logger.warning("Configuration lists no documents")

        if self.errors:
            self._raise_validation_errors()

        return Config(
            documents=documents,
            substitutions=substitutions,
            strict_substitutions=strict,
            default_prefix=default_prefix,
            default_escape=default_escape,
            default_remove_instructions=default_remove
        )

    def _read(self, config_path: Path) -> Any:
        if config_path.suffix == '.toml':
            with open(config_path, 'rb') as f:
                return tomllib.load(f)
        with open(config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)

    def _validate_document(
        self,
        entry: Any,
        path: str,
        root: Path,
        default_prefix: Optional[str],
        default_escape: Optional[Escape],
        default_remove: bool
    ) -> Optional[DocumentConfig]:
        if not isinstance(entry, dict):
            self._add_error("Document entry must be a mapping", path)
            return None

        for key in entry.keys():
            if key not in self.DOCUMENT_FIELDS:
                self._add_error(f"Unknown field '{key}'", path)

        source = self._validate_path(entry.get('source'), f"{path}.source", root)
        target = self._validate_path(entry.get('target'), f"{path}.target", root)

        prefix = default_prefix
        if 'prefix' in entry:
            prefix = self._validate_prefix(entry['prefix'], f"{path}.prefix")

        escape = default_escape
        if 'escape' in entry:
            escape = self._validate_escape(entry['escape'], f"{path}.escape")

        remove_instructions = default_remove
        if 'remove_instructions' in entry:
            remove_instructions = self._validate_bool(entry['remove_instructions'], f"{path}.remove_instructions")

        if source is None or target is None:
            return None

        return DocumentConfig(
            source=source,
            target=target,
            prefix=prefix,
            escape=escape,
            remove_instructions=remove_instructions
        )

    def _validate_path(self, value: Any, path: str, root: Path) -> Optional[Path]:
        if value is None:
            self._add_error("Field is required", path)
            return None
        if not isinstance(value, str) or not value:
            self._add_error("Must be a non-empty string", path)
            return None

        try:
            expanded = self.expander.expand_env(value)
        except ExpansionError as e:
            self._add_error(str(e), path)
            return None

        resolved = Path(expanded).expanduser()
        if not resolved.is_absolute():
            resolved = root / resolved
        return resolved

    def _validate_prefix(self, value: Any, path: str) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str) or not value.strip():
            self._add_error("Prefix must be a non-empty string", path)
            return None
        return value.strip()

    def _validate_escape(self, value: Any, path: str) -> Optional[Escape]:
        """Accept [start, end] or {start: .., end: ..}."""
        if value is None:
            return None

        if isinstance(value, dict):
            unknown = set(value.keys()) - {'start', 'end'}
            if unknown:
                self._add_error(f"Unknown escape fields: {sorted(unknown)}", path)
                return None
            pair = [value.get('start'), value.get('end')]
        elif isinstance(value, list):
            pair = value
        else:
            self._add_error("Escape must be a [start, end] list or a {start, end} mapping", path)
            return None

        if len(pair) != 2 or not all(isinstance(part, str) and part for part in pair):
            self._add_error("Escape needs exactly two non-empty strings: start and end", path)
            return None
        return (pair[0], pair[1])

    def _validate_bool(self, value: Any, path: str) -> bool:
        if not isinstance(value, bool):
            self._add_error(f"Must be a boolean, got {type(value).__name__}", path)
            return False
        return value

    def _validate_substitutions(self, value: Any) -> Dict[str, str]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            self._add_error("'substitutions' must be a mapping of key to string", 'substitutions')
            return {}

        substitutions = {}
        for key, replacement in value.items():
            if not isinstance(replacement, str):
                self._add_error(
                    f"Value must be a string, got {type(replacement).__name__}",
                    f"substitutions.{key}"
                )
                continue
            substitutions[str(key)] = replacement
        return substitutions

    def _add_error(self, message: str, path: str = ""):
        self.errors.append(ValidationError(message=message, path=path))

    def _raise_validation_errors(self):
        raise ConfigValidationError(self.errors)
