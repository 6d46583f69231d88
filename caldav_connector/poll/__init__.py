"""
Change detection for a CalDAV calendar: which events were created,
updated or are starting since the previous poll.
"""
from .classifier import ChangeEvent
from .classifier import classify
from .config import EventCreatedTrigger
from .config import EventStartedTrigger
from .config import EventUpdatedTrigger
from .config import trigger_from_dict
from .state import DictPollStateStore
from .state import JsonFilePollStateStore
from .state import MemoryPollStateStore
from .state import PollState
from .trigger import CalDAVTrigger
from .window import build_fetch_window
from .window import FetchWindow

__all__ = [
    "CalDAVTrigger",
    "ChangeEvent",
    "classify",
    "EventCreatedTrigger",
    "EventStartedTrigger",
    "EventUpdatedTrigger",
    "trigger_from_dict",
    "PollState",
    "MemoryPollStateStore",
    "DictPollStateStore",
    "JsonFilePollStateStore",
    "FetchWindow",
    "build_fetch_window",
]
