# Rev 0.1.0
from __future__ import annotations

from typing import List, Optional

from ..models.documents import CONTACTS, Document, contact_path
from ..models.entities import Contact, decode_contact, unknown_contact
from ..models.live import LiveValue, MappedValue
from ..repositories.document_store import DocumentStore


class ContactDirectory:
    """
    Read-only projection of the contacts collection.
    watch(id) never fails on a missing document: it emits the sentinel
    contact (empty name/color) until the document appears.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    def watch(self, contact_id: str) -> LiveValue:
        sub = self._store.subscribe_document(contact_path(contact_id))

        def project(doc: Optional[Document]) -> Contact:
            return decode_contact(doc) if doc is not None else unknown_contact(contact_id)

        return MappedValue(sub, project, name=f"contact:{contact_id}")

    def watch_all(self) -> LiveValue:
        sub = self._store.subscribe_collection(CONTACTS)

        def project(docs: List[Document]) -> List[Contact]:
            return sorted((decode_contact(d) for d in docs), key=lambda c: c.name.casefold())

        return MappedValue(sub, project, name="contacts")
