# Rev 0.1.0
"""Change-stream document store (Rev 0.1.0)

DocumentStore is the only thing that talks to persistence. It offers
- live subscriptions to a collection or a single document,
- one-shot reads,
- atomic batched writes,
- a collection-group query ("every `assigns` row anywhere").

Backends implement the four `_fetch_*`/`_commit` hooks; this base class
owns the subscription registry and snapshot fan-out. Every backend failure
surfaces as WriteFailed.
"""
from __future__ import annotations

import secrets
import string
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from ..errors import InvalidArgument, WriteFailed
from ..models.documents import Document, WriteOp, is_collection_path, parent_collection, split_path
from ..models.live import LiveValue
from ..utils.logging_setup import get_logger

_ID_ALPHABET = string.ascii_letters + string.digits
ID_LENGTH = 20

Snapshot = Union[List[Document], Optional[Document]]


class Subscription(LiveValue):
    """Live snapshot of one collection or document path."""

    def __init__(self, store: "DocumentStore", path: str, is_collection: bool) -> None:
        super().__init__(path)
        self.path = path
        self.is_collection = is_collection
        self._store = store

    def _on_close(self) -> None:
        self._store._release(self)


class DocumentStore:
    def __init__(self) -> None:
        self._log = get_logger(type(self).__name__)
        self._subs: Dict[str, List[Subscription]] = {}

    # ---- backend hooks
    def _fetch_document(self, path: str) -> Optional[Document]:
        raise NotImplementedError

    def _fetch_collection(self, path: str) -> List[Document]:
        raise NotImplementedError

    def _fetch_group(self, collection_id: str, field: str, value: Any) -> List[Document]:
        raise NotImplementedError

    def _commit(self, ops: Sequence[WriteOp]) -> None:
        """Apply all ops or none. Raise on any failure."""
        raise NotImplementedError

    # ---- ids
    @staticmethod
    def new_id() -> str:
        return "".join(secrets.choice(_ID_ALPHABET) for _ in range(ID_LENGTH))

    # ---- subscriptions
    def subscribe_collection(self, path: str) -> Subscription:
        self._require(path, collection=True)
        return self._subscribe(path, True)

    def subscribe_document(self, path: str) -> Subscription:
        self._require(path, collection=False)
        return self._subscribe(path, False)

    def _subscribe(self, path: str, is_collection: bool) -> Subscription:
        sub = Subscription(self, path, is_collection)
        self._subs.setdefault(path, []).append(sub)
        sub._publish(self._snapshot(path, is_collection))
        self._log.debug("subscribe %s (%d live)", path, len(self._subs[path]))
        return sub

    def _release(self, sub: Subscription) -> None:
        subs = self._subs.get(sub.path)
        if not subs:
            return
        try:
            subs.remove(sub)
        except ValueError:
            return
        if not subs:
            del self._subs[sub.path]
        self._log.debug("release %s", sub.path)

    def active_subscriptions(self) -> Dict[str, int]:
        return {path: len(subs) for path, subs in self._subs.items() if subs}

    # ---- reads
    def read_once(self, path: str) -> Snapshot:
        return self._snapshot(path, is_collection_path(path))

    def query_group(self, collection_id: str, field: str, value: Any) -> List[Document]:
        if not collection_id or "/" in collection_id:
            raise InvalidArgument(f"bad collection group {collection_id!r}")
        try:
            return list(self._fetch_group(collection_id, field, value))
        except Exception as exc:
            self._log.exception("group query %s.%s failed", collection_id, field)
            raise WriteFailed(f"query on {collection_id} failed: {exc}") from exc

    def _snapshot(self, path: str, is_collection: bool) -> Snapshot:
        try:
            if is_collection:
                return list(self._fetch_collection(path))
            return self._fetch_document(path)
        except Exception as exc:
            self._log.exception("read %s failed", path)
            raise WriteFailed(f"read of {path} failed: {exc}", path=path) from exc

    # ---- writes
    def batch_write(self, ops: Iterable[WriteOp]) -> None:
        ops = list(ops)
        if not ops:
            return
        for op in ops:
            if op.kind not in ("set", "update", "delete"):
                raise InvalidArgument(f"unknown write kind {op.kind!r}")
            self._require(op.path, collection=False)
        try:
            self._commit(ops)
        except Exception as exc:
            self._log.error("batch of %d ops failed: %s", len(ops), exc)
            raise WriteFailed(f"batch commit failed: {exc}") from exc
        self._log.debug("committed batch of %d ops", len(ops))
        self._notify(ops)

    def _notify(self, ops: Sequence[WriteOp]) -> None:
        docs = {op.path for op in ops}
        collections = {parent_collection(p) for p in docs}
        # parents first: a torn-down parent closes child subscriptions before they fire
        ordered = sorted(collections, key=lambda p: (len(split_path(p)), p)) + sorted(docs)
        for path in ordered:
            for sub in list(self._subs.get(path, ())):
                if sub.closed:
                    continue
                try:
                    snapshot = self._snapshot(path, sub.is_collection)
                except WriteFailed:
                    # the batch is committed; this subscriber keeps its last snapshot
                    self._log.warning("skipped refresh of %s after commit", path)
                    continue
                sub._publish(snapshot)

    @staticmethod
    def _require(path: str, *, collection: bool) -> None:
        try:
            ok = is_collection_path(path) == collection
        except ValueError as exc:
            raise InvalidArgument(str(exc), path=path) from exc
        if not ok:
            kind = "collection" if collection else "document"
            raise InvalidArgument(f"{path!r} is not a {kind} path", path=path)
