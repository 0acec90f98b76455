# Rev 0.1.0
from __future__ import annotations

from typing import List, Optional

from PySide6.QtCore import QObject, Signal

from ..errors import BoardError
from ..models.entities import Contact
from ..services.cascade import CascadeCoordinator
from ..services.contact_directory import ContactDirectory
from ..utils.logging_setup import get_logger
from .board_viewmodel import notification_kind


class ContactsViewModel(QObject):
    """
    VM for the contacts list.
    Emits:
      - contactsReloaded(rows: list[Contact])   sorted by name
      - notify(kind: str, message: str)         kind is 'auth' or 'error'
    """

    contactsReloaded = Signal(list)
    notify = Signal(str, str)

    def __init__(self, directory: ContactDirectory, cascade: CascadeCoordinator):
        super().__init__()
        self._log = get_logger("ContactsViewModel")
        self._cascade = cascade
        self._contacts = directory.watch_all()
        self._contacts.listen(self.contactsReloaded.emit)

    def contacts(self) -> List[Contact]:
        return list(self._contacts.value([]))

    def find(self, contact_id: str) -> Optional[Contact]:
        return next((c for c in self.contacts() if c.id == contact_id), None)

    def delete_contact(self, contact_id: str) -> bool:
        try:
            purged = self._cascade.delete_contact(contact_id)
        except BoardError as exc:
            self._log.error("delete_contact %s failed: %s (%s)", contact_id, exc, exc.code)
            if notification_kind(exc) == "auth":
                self.notify.emit("auth", "You can only delete your own account.")
            else:
                self.notify.emit("error", str(exc))
            return False
        self._log.info("contact %s removed from %d tasks", contact_id, purged)
        return True

    def close(self) -> None:
        self._contacts.close()
