# boardZ application context
# Rev 0.1.0

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .utils.logging_setup import get_logger
from .utils.config import load_settings
from .repositories.document_store import DocumentStore
from .repositories.memory_store import MemoryDocumentStore
from .repositories.sqlite_store import SQLiteDocumentStore
from .services.session import SessionService
from .services.contact_directory import ContactDirectory
from .services.board_aggregator import BoardAggregator
from .services.cascade import CascadeCoordinator


def build_store(settings: Dict[str, Any]) -> DocumentStore:
    store_cfg = settings["store"]
    if store_cfg["backend"] == "memory":
        return MemoryDocumentStore()
    return SQLiteDocumentStore(store_cfg["path"])


@dataclass
class AppContext:
    """Central container for the wired-up engine. One per process, passed by reference."""
    settings: Dict[str, Any]
    store: DocumentStore
    session: SessionService
    directory: ContactDirectory
    board: BoardAggregator
    cascade: CascadeCoordinator

    @classmethod
    def create(cls, settings: Optional[Dict[str, Any]] = None, store: Optional[DocumentStore] = None) -> "AppContext":
        """Initialize store, session, directory, board and cascade."""
        log = get_logger("AppContext")
        settings = settings or load_settings()
        store = store or build_store(settings)
        session = SessionService()
        directory = ContactDirectory(store)
        board = BoardAggregator(store, directory, session)
        cascade = CascadeCoordinator(store, session, settings["cascade"]["reconcile_mode"])
        log.info("AppContext initialized with store=%s mode=%s",
                 type(store).__name__, cascade.reconcile_mode)
        return cls(settings=settings, store=store, session=session, directory=directory,
                   board=board, cascade=cascade)

    def close(self) -> None:
        self.board.close()
        if isinstance(self.store, SQLiteDocumentStore):
            self.store.close()
