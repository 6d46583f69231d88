#!/usr/bin/env python
"""
Bookkeeping carried from one poll to the next.

A store hands out a PollState with load() and takes the new one back
with save().  The poll only saves after a successful run, so a store
only needs to make sure a save replaces the previous state completely
or not at all.
"""
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from typing import Any
from typing import Dict
from typing import MutableMapping
from typing import Optional

from caldav_connector.objects import isoformat

log = logging.getLogger("caldav_connector")

## How far back the very first poll looks
DEFAULT_LOOKBACK = timedelta(hours=1)

LAST_TIME_CHECKED = "lastTimeChecked"
KNOWN_EVENTS = "knownEvents"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class PollState:
    """
    Attributes:
      last_checked_at: when the previous poll ran
      known_versions: uid -> etag of every event seen by the previous
        created/updated poll
    """

    last_checked_at: datetime
    known_versions: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def default(cls, now: Optional[datetime] = None) -> "PollState":
        return cls(last_checked_at=(now or _utcnow()) - DEFAULT_LOOKBACK)

    def to_dict(self) -> Dict[str, Any]:
        return {
            LAST_TIME_CHECKED: isoformat(self.last_checked_at),
            KNOWN_EVENTS: dict(self.known_versions),
        }

    @classmethod
    def from_dict(
        cls, data: Optional[Dict[str, Any]], now: Optional[datetime] = None
    ) -> "PollState":
        """
        The inverse of to_dict.  Missing or unreadable values fall back
        to the defaults of a first poll.
        """
        state = cls.default(now)
        if not data:
            return state
        last_checked = data.get(LAST_TIME_CHECKED)
        if last_checked:
            try:
                ts = datetime.fromisoformat(str(last_checked).replace("Z", "+00:00"))
            except ValueError:
                log.warning(
                    "stored %s %r is not a timestamp, using the default",
                    LAST_TIME_CHECKED,
                    last_checked,
                )
            else:
                if ts.tzinfo is None:
                    ts = ts.replace(tzinfo=timezone.utc)
                state.last_checked_at = ts
        known = data.get(KNOWN_EVENTS)
        if isinstance(known, dict):
            state.known_versions = {
                str(uid): etag or "" for uid, etag in known.items()
            }
        return state


class MemoryPollStateStore:
    """Keeps the state in the process, for tests and hosts doing their own persistence"""

    def __init__(self, state: Optional[PollState] = None) -> None:
        self.state = state

    def load(self) -> PollState:
        if self.state is None:
            return PollState.default()
        return PollState(
            last_checked_at=self.state.last_checked_at,
            known_versions=dict(self.state.known_versions),
        )

    def save(self, state: PollState) -> None:
        self.state = PollState(
            last_checked_at=state.last_checked_at,
            known_versions=dict(state.known_versions),
        )


class DictPollStateStore:
    """
    Keeps the state in a mapping owned by the host, like the static data
    of a workflow node.  The state is stored under the keys
    ``lastTimeChecked`` and ``knownEvents``.  A save writes both keys with
    a single ``update`` call; other keys of the mapping are left alone.
    """

    def __init__(self, data: MutableMapping[str, Any]) -> None:
        self.data = data

    def load(self) -> PollState:
        return PollState.from_dict(dict(self.data))

    def save(self, state: PollState) -> None:
        self.data.update(state.to_dict())


class JsonFilePollStateStore:
    """
    One JSON file per monitor.  A save writes a temporary file next to
    the target and moves it into place, so the file always holds either
    the old or the new state.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def load(self) -> PollState:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return PollState.default()
        except ValueError:
            log.warning("poll state in %s is not valid json, starting over", self.path)
            return PollState.default()
        return PollState.from_dict(data if isinstance(data, dict) else None)

    def save(self, state: PollState) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=".pollstate-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
