"""
Dialogue repository.

Loads dialogue documents from a backing store, validates them and caches
them by name. Documents that fail any check are never cached.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Protocol, Union

import jsonschema
from pydantic import ValidationError

from dialogue_runtime.core.config import DialogueConfig
from dialogue_runtime.dialogue.errors import (
    DialogueLoadError,
    DialogueNotFound,
    DialogueParseError,
    DialogueValidationError,
)
from dialogue_runtime.dialogue.models import END_SENTINEL, DialogueDocument

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "dialogue.schema.json"


@lru_cache(maxsize=1)
def load_schema() -> dict[str, Any]:
    """The bundled dialogue document JSON schema."""
    with open(SCHEMA_PATH, 'r', encoding='utf-8') as f:
        return json.load(f)


class DocumentStore(Protocol):
    """Raw byte access by dialogue name; missing names raise KeyError."""

    def read(self, name: str) -> bytes:
        ...


class DirectoryStore:
    """Reads ``<path>/<name><suffix>`` files."""

    def __init__(self, path: Union[str, Path], suffix: str = ".json"):
        self.path = Path(path)
        self.suffix = suffix

    def file_for(self, name: str) -> Path:
        return self.path / f"{name}{self.suffix}"

    def read(self, name: str) -> bytes:
        file_path = self.file_for(name)
        # Names must stay inside the store directory
        if Path(name).name != name or not file_path.is_file():
            raise KeyError(name)
        return file_path.read_bytes()

    def names(self) -> list[str]:
        if not self.path.is_dir():
            return []
        return sorted(p.name[:-len(self.suffix)] for p in self.path.glob(f"*{self.suffix}"))


class MemoryStore:
    """In-memory store; accepts bytes, text or already-decoded dicts."""

    def __init__(self, documents: Optional[Mapping[str, Union[bytes, str, dict]]] = None):
        self._documents: dict[str, bytes] = {}
        for name, data in (documents or {}).items():
            self.put(name, data)

    def put(self, name: str, data: Union[bytes, str, dict]) -> None:
        if isinstance(data, dict):
            data = json.dumps(data)
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._documents[name] = data

    def read(self, name: str) -> bytes:
        return self._documents[name]

    def names(self) -> list[str]:
        return sorted(self._documents)


def structural_problems(document: DialogueDocument) -> list[str]:
    """Invariant violations that make a document unusable."""
    problems = []
    if not document.nodes:
        problems.append("document has no nodes")
    if not document.start_node_id:
        problems.append("start node id is empty")
    elif document.nodes and not document.has_node(document.start_node_id):
        problems.append(f"start node {document.start_node_id!r} not found")
    return problems


def reference_warnings(document: DialogueDocument, sentinel: str = END_SENTINEL) -> list[str]:
    """
    Suspicious but tolerated content: duplicate ids and references to
    nodes that do not exist. The engine ends the run if it follows one.
    """
    warnings = []
    seen: set[str] = set()
    for node in document.nodes:
        if node.id in seen:
            warnings.append(f"duplicate node id {node.id!r} (first one wins)")
        seen.add(node.id)

    for node in document.nodes:
        if not node.ends_after(sentinel) and node.next_node_id not in seen:
            warnings.append(f"node {node.id!r}: next node {node.next_node_id!r} not found")
        for i, option in enumerate(node.options):
            if option.target_node_id and option.target_node_id not in seen:
                warnings.append(
                    f"node {node.id!r} option {i}: target {option.target_node_id!r} not found"
                )
    return warnings


class DialogueRepository:
    """
    Loads, validates and caches dialogue documents.

    Handles:
    - Reading raw bytes from a DocumentStore
    - JSON parsing and schema checks
    - Building immutable DialogueDocument models
    - Structural validation (nodes present, start node resolves)
    """

    def __init__(self, store: DocumentStore, validate_schema: bool = True):
        self.store = store
        self.validate_schema = validate_schema
        self._cache: dict[str, DialogueDocument] = {}

    @classmethod
    def from_config(cls, config: DialogueConfig) -> DialogueRepository:
        return cls(
            DirectoryStore(config.dialogue_path, config.file_suffix),
            validate_schema=config.validate_schema,
        )

    def load(self, name: str) -> DialogueDocument:
        """
        Return the document called ``name``, loading it on first use.

        Raises:
            DialogueNotFound: The store has no entry for ``name``
            DialogueParseError: The entry is not well-formed JSON
            DialogueValidationError: The document is structurally invalid
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        try:
            raw = self.store.read(name)
        except KeyError:
            raise DialogueNotFound(name) from None
        except OSError as e:
            raise DialogueNotFound(name, f"cannot read: {e}") from e

        document = self.parse(name, raw)
        self._cache[name] = document
        logger.info(f"Loaded dialogue {name} ({len(document.nodes)} nodes)")
        return document

    def parse(self, name: str, raw: Union[bytes, str]) -> DialogueDocument:
        """Turn raw bytes into a validated document without caching it."""
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DialogueParseError(name, f"malformed JSON: {e}") from e

        if not isinstance(data, dict):
            raise DialogueValidationError(name, ["top level must be an object"])

        if self.validate_schema:
            validator = jsonschema.Draft7Validator(load_schema())
            errors = sorted(validator.iter_errors(data), key=lambda e: str(list(e.path)))
            if errors:
                raise DialogueValidationError(name, [_schema_message(e) for e in errors])

        try:
            document = DialogueDocument.model_validate(data)
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise DialogueValidationError(name, problems) from e

        problems = structural_problems(document)
        if problems:
            raise DialogueValidationError(name, problems)

        for warning in reference_warnings(document):
            logger.warning(f"Dialogue {name}: {warning}")

        if not document.name:
            document = document.model_copy(update={'name': name})
        return document

    def preload(self, names: Iterable[str]) -> int:
        """
        Best-effort load of several documents.

        Returns:
            Number of documents now cached from ``names``
        """
        names = list(names)
        loaded = 0
        for name in names:
            try:
                self.load(name)
                loaded += 1
            except DialogueLoadError as e:
                logger.error(f"Failed to preload dialogue {e}")
        logger.info(f"Preloaded {loaded}/{len(names)} dialogues")
        return loaded

    def get(self, name: str) -> Optional[DialogueDocument]:
        """Cached document or None; never touches the store."""
        return self._cache.get(name)

    def is_loaded(self, name: str) -> bool:
        return name in self._cache

    def loaded_names(self) -> list[str]:
        return list(self._cache)

    def evict(self, name: str) -> None:
        self._cache.pop(name, None)

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        return {
            'loaded': len(self._cache),
            'nodes': sum(len(doc.nodes) for doc in self._cache.values()),
            'names': self.loaded_names(),
        }


def _schema_message(error: jsonschema.ValidationError) -> str:
    location = ".".join(str(p) for p in error.absolute_path)
    return f"{location}: {error.message}" if location else error.message
