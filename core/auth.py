from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import bcrypt

from core.activity import ActivityLogger
from core.errors import AuthError, InvalidPassword, UserNotFound
from core.store import CredentialRecord, CredentialStore

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Invalid username or password"

FAILURE_ACTIVITY = {
    UserNotFound.reason: "Failed login attempt - user not found",
    InvalidPassword.reason: "Failed login attempt - invalid password",
}


@dataclass(frozen=True)
class VerifyResult:
    ok: bool
    record: Optional[CredentialRecord] = None
    reason: Optional[str] = None

    @property
    def message(self) -> str:
        return "Login successful" if self.ok else GENERIC_FAILURE


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


class CredentialVerifier:
    def __init__(self, store: CredentialStore, activity: ActivityLogger):
        self.store = store
        self.activity = activity

    def authenticate(self, username: str, password: str) -> CredentialRecord:
        """Return the matching record or raise ``UserNotFound`` / ``InvalidPassword``."""
        record = self.store.get_user(username)
        if record is None:
            raise UserNotFound(username)
        if not check_password(password, record.password_hash):
            raise InvalidPassword(username)
        return record

    def verify(self, username: str, password: str) -> VerifyResult:
        try:
            record = self.authenticate(username, password)
        except AuthError as exc:
            self.activity.log(username, FAILURE_ACTIVITY[exc.reason])
            return VerifyResult(ok=False, reason=exc.reason)
        self.activity.log(username, f"Logged in successfully (Role: {record.role})")
        return VerifyResult(ok=True, record=record)
