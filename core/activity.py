from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.store import ActivityEntry, CredentialStore

logger = logging.getLogger(__name__)


def file_timestamp(when: datetime) -> str:
    """UTC ``YYYY-MM-DDTHH:MM:SS.mmmZ``, the form existing log tooling parses."""
    when = when.astimezone(timezone.utc)
    return when.strftime("%Y-%m-%dT%H:%M:%S.") + f"{when.microsecond // 1000:03d}Z"


class ActivityLogger:
    """Append-only audit trail: one line in the activity file, one row in ``activity_logs``."""

    def __init__(self, store: CredentialStore, log_file: Optional[Path] = None):
        self.store = store
        self.log_file = Path(log_file) if log_file else None

    def log(self, username: Optional[str], activity: str) -> bool:
        """Record an event. Failures are reported on the module logger and never raised."""
        now = datetime.now(timezone.utc)
        ok = True
        if self.log_file is not None:
            try:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
                with self.log_file.open("a", encoding="utf-8") as fh:
                    fh.write(f"[{file_timestamp(now)}] User: {username}, Activity: {activity}\n")
            except Exception:
                logger.exception("Error writing activity file %s", self.log_file)
                ok = False
        try:
            self.store.append_activity(username, activity, when=now)  # type: ignore[arg-type]
        except Exception:
            logger.exception("Error logging activity to database")
            ok = False
        return ok

    def recent(self, limit: int = 50) -> List[ActivityEntry]:
        return self.store.recent_activity(limit)
