"""
════════════════════════════════════════════════════════════════════════════════
DOCUMENT STORE - Fonte de ficheiros carregados + cache do último documento
════════════════════════════════════════════════════════════════════════════════

Colaboradores injetados na orquestração MRP:

1. DocumentSource: guarda uploads e devolve o mais recente por tipo
   - DirectoryDocumentSource: <data_dir>/<tipo>/<timestamp>__<ficheiro>
   - InMemoryDocumentSource: testes / embedding
2. DocumentCache: último documento interpretado por tipo (fallback offline)
   - InMemoryDocumentCache
   - JsonDocumentCache: um JSON por tipo em disco
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from workbook_ingestion.schemas import DocumentType, TabularDocument

logger = logging.getLogger(__name__)

_NAME_SEPARATOR = "__"


@dataclass(frozen=True)
class DocumentRecord:
    """Metadata of one stored upload."""
    id: str
    document_type: DocumentType
    filename: str
    size_bytes: int
    created_at: datetime

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["document_type"] = self.document_type.value
        data["created_at"] = self.created_at.isoformat()
        return data


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT SOURCES
# ═══════════════════════════════════════════════════════════════════════════════

class DocumentSource(ABC):
    """File-retrieval collaborator: latest uploaded binary per document type."""

    @abstractmethod
    def save(self, doc_type: DocumentType, filename: str, content: bytes) -> DocumentRecord:
        pass

    @abstractmethod
    def latest(self, doc_type: DocumentType) -> Optional[Tuple[DocumentRecord, bytes]]:
        """Newest upload of ``doc_type`` or None when nothing was uploaded."""
        pass

    @abstractmethod
    def list(self, doc_type: DocumentType, limit: int = 25) -> List[DocumentRecord]:
        """Uploads of ``doc_type``, newest first."""
        pass


class InMemoryDocumentSource(DocumentSource):

    def __init__(self):
        self._items: Dict[DocumentType, List[Tuple[DocumentRecord, bytes]]] = {}
        self._lock = threading.Lock()
        self._counter = 0

    def save(self, doc_type: DocumentType, filename: str, content: bytes) -> DocumentRecord:
        with self._lock:
            self._counter += 1
            record = DocumentRecord(
                id=f"{doc_type.value}-{self._counter}",
                document_type=doc_type,
                filename=Path(filename).name,
                size_bytes=len(content),
                created_at=datetime.utcnow(),
            )
            self._items.setdefault(doc_type, []).append((record, content))
        return record

    def latest(self, doc_type: DocumentType) -> Optional[Tuple[DocumentRecord, bytes]]:
        with self._lock:
            items = self._items.get(doc_type) or []
            return items[-1] if items else None

    def list(self, doc_type: DocumentType, limit: int = 25) -> List[DocumentRecord]:
        with self._lock:
            items = self._items.get(doc_type) or []
            return [record for record, _ in reversed(items)][:limit]


class DirectoryDocumentSource(DocumentSource):
    """Stores each upload as ``<root>/<type>/<YYYYmmddHHMMSSffffff>__<name>``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _type_dir(self, doc_type: DocumentType) -> Path:
        return self.root / doc_type.value

    def _record_for(self, doc_type: DocumentType, path: Path) -> DocumentRecord:
        stamp, _, original = path.name.partition(_NAME_SEPARATOR)
        try:
            created_at = datetime.strptime(stamp, "%Y%m%d%H%M%S%f")
        except ValueError:
            created_at = datetime.utcfromtimestamp(path.stat().st_mtime)
        return DocumentRecord(
            id=path.name,
            document_type=doc_type,
            filename=original or path.name,
            size_bytes=path.stat().st_size,
            created_at=created_at,
        )

    def save(self, doc_type: DocumentType, filename: str, content: bytes) -> DocumentRecord:
        target_dir = self._type_dir(doc_type)
        target_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S%f")
        path = target_dir / f"{stamp}{_NAME_SEPARATOR}{Path(filename).name}"
        path.write_bytes(content)
        logger.info(f"Stored {doc_type.value} upload at {path}")
        return self._record_for(doc_type, path)

    def _paths(self, doc_type: DocumentType) -> List[Path]:
        type_dir = self._type_dir(doc_type)
        if not type_dir.exists():
            return []
        return sorted((p for p in type_dir.iterdir() if p.is_file()), key=lambda p: p.name, reverse=True)

    def latest(self, doc_type: DocumentType) -> Optional[Tuple[DocumentRecord, bytes]]:
        paths = self._paths(doc_type)
        if not paths:
            return None
        newest = paths[0]
        return self._record_for(doc_type, newest), newest.read_bytes()

    def list(self, doc_type: DocumentType, limit: int = 25) -> List[DocumentRecord]:
        return [self._record_for(doc_type, p) for p in self._paths(doc_type)[:limit]]


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT CACHES
# ═══════════════════════════════════════════════════════════════════════════════

class DocumentCache(ABC):
    """Last successfully parsed document per type."""

    @abstractmethod
    def get(self, doc_type: DocumentType) -> Optional[TabularDocument]:
        pass

    @abstractmethod
    def put(self, doc_type: DocumentType, doc: TabularDocument) -> None:
        pass


class InMemoryDocumentCache(DocumentCache):

    def __init__(self):
        self._docs: Dict[DocumentType, TabularDocument] = {}

    def get(self, doc_type: DocumentType) -> Optional[TabularDocument]:
        return self._docs.get(doc_type)

    def put(self, doc_type: DocumentType, doc: TabularDocument) -> None:
        self._docs[doc_type] = doc


class JsonDocumentCache(DocumentCache):
    """One ``<type>.json`` per document type. Unreadable files are removed."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._memory: Dict[DocumentType, TabularDocument] = {}

    def _path(self, doc_type: DocumentType) -> Path:
        return self.cache_dir / f"{doc_type.value}.json"

    def get(self, doc_type: DocumentType) -> Optional[TabularDocument]:
        if doc_type in self._memory:
            return self._memory[doc_type]

        path = self._path(doc_type)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                doc = TabularDocument.from_dict(json.load(f))
        except (OSError, ValueError, TypeError) as exc:
            logger.warning(f"Removing corrupt document cache {path.name}: {exc}")
            path.unlink(missing_ok=True)
            return None

        self._memory[doc_type] = doc
        return doc

    def put(self, doc_type: DocumentType, doc: TabularDocument) -> None:
        self._memory[doc_type] = doc
        path = self._path(doc_type)
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(doc.to_dict(), f)
        except OSError as exc:
            logger.warning(f"Could not persist document cache {path.name}: {exc}")
