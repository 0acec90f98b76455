# Rev 0.1.0
"""Authenticated-session signal (Rev 0.1.0)

Login/signup screens are outside this package; they call sign_in/sign_out.
The board and the cascade only read `current_identity()` and listen to
`session_changes()`.
"""
from __future__ import annotations

from typing import Iterable, Optional, Set

from ..errors import InvalidArgument
from ..models.live import LiveValue
from ..utils.logging_setup import get_logger


class SessionService(LiveValue):
    def __init__(self, accounts: Iterable[str] = ()) -> None:
        super().__init__("session")
        self._log = get_logger("Session")
        self._accounts: Set[str] = set(accounts)
        self._publish(None)

    def current_identity(self) -> Optional[str]:
        return self.value()

    def session_changes(self) -> LiveValue:
        return self

    def has_account(self, uid: str) -> bool:
        return uid in self._accounts

    def sign_in(self, uid: str) -> None:
        if not uid:
            raise InvalidArgument("sign_in: uid is missing")
        self._accounts.add(uid)
        self._publish(uid)
        self._log.info("signed in %s", uid)

    def sign_out(self) -> None:
        if self.current_identity() is not None:
            self._log.info("signed out %s", self.current_identity())
        self._publish(None)

    def delete_credential(self, uid: str) -> None:
        """Remove the account; if it is the signed-in one, end the session too."""
        self._accounts.discard(uid)
        self._log.info("deleted credential %s", uid)
        if self.current_identity() == uid:
            self.sign_out()
