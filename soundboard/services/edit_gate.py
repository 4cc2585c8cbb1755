"""Edit mode gate: a password check, remembered for the rest of the session."""

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


class EditAuthError(Exception):
    """Wrong edit password."""


@dataclass
class EditSession:
    edit_mode: bool = False
    authorized: bool = False


class EditModeGate:
    """
    Toggles a session in and out of edit mode.

    Leaving edit mode is always allowed. Entering it needs ``secret`` once per
    session; after a match the session stays authorized. With no secret
    configured every session is authorized.
    """

    def __init__(self, secret: Optional[str]):
        self.secret = secret

    def _check(self, password: Optional[str]) -> bool:
        if not self.secret:
            return True
        if password is None:
            return False
        return hmac.compare_digest(password.encode("utf-8"), self.secret.encode("utf-8"))

    def toggle(self, session: EditSession, password: Optional[str] = None) -> EditSession:
        if session.edit_mode:
            session.edit_mode = False
            return session

        if not session.authorized:
            if not self._check(password):
                logger.info("Rejected edit mode password")
                raise EditAuthError("Incorrect password")
            session.authorized = True

        session.edit_mode = True
        return session

    def needs_password(self, session: EditSession) -> bool:
        return not session.edit_mode and not session.authorized and bool(self.secret)
