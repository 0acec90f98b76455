# Rev 0.1.0
"""In-process document store. Used by tests and the `memory` backend."""
from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, List, Optional, Sequence

from ..models.documents import Document, WriteOp, parent_collection
from .document_store import DocumentStore


class MemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        super().__init__()
        # path -> data; dict order is insertion order, which is collection order
        self._docs: Dict[str, Dict[str, Any]] = {}

    def _fetch_document(self, path: str) -> Optional[Document]:
        data = self._docs.get(path)
        return Document(path, deepcopy(data)) if data is not None else None

    def _fetch_collection(self, path: str) -> List[Document]:
        return [Document(p, deepcopy(d)) for p, d in self._docs.items() if parent_collection(p) == path]

    def _fetch_group(self, collection_id: str, field: str, value: Any) -> List[Document]:
        out = []
        for p, d in self._docs.items():
            doc = Document(p, d)
            if doc.collection_id == collection_id and d.get(field) == value:
                out.append(Document(p, deepcopy(d)))
        return out

    def _commit(self, ops: Sequence[WriteOp]) -> None:
        staged = dict(self._docs)
        for op in ops:
            if op.kind == "set":
                staged[op.path] = deepcopy(op.data or {})
            elif op.kind == "update":
                if op.path not in staged:
                    raise KeyError(f"no document to update at {op.path}")
                merged = dict(staged[op.path])
                merged.update(deepcopy(op.data or {}))
                staged[op.path] = merged
            else:
                staged.pop(op.path, None)
        self._docs = staged

    def __len__(self) -> int:
        return len(self._docs)
