import json
import os
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from unittest import mock

import pytest

from caldav_connector.poll import DictPollStateStore
from caldav_connector.poll import JsonFilePollStateStore
from caldav_connector.poll import MemoryPollStateStore
from caldav_connector.poll import PollState

utc = timezone.utc

CHECKED = datetime(2026, 3, 2, 12, 0, tzinfo=utc)


def assert_default(state):
    ## one hour back, give or take the time the test takes
    age = datetime.now(tz=utc) - state.last_checked_at
    assert timedelta(minutes=59) < age < timedelta(minutes=61)
    assert state.known_versions == {}


class TestPollState:
    def test_to_dict(self):
        state = PollState(last_checked_at=CHECKED, known_versions={"a": "e1"})
        assert state.to_dict() == {
            "lastTimeChecked": "2026-03-02T12:00:00Z",
            "knownEvents": {"a": "e1"},
        }

    def test_from_dict(self):
        state = PollState.from_dict(
            {"lastTimeChecked": "2026-03-02T12:00:00.000Z", "knownEvents": {"a": None}}
        )
        assert state.last_checked_at == CHECKED
        assert state.known_versions == {"a": ""}

    def test_from_dict_empty(self):
        assert_default(PollState.from_dict(None))
        assert_default(PollState.from_dict({}))

    def test_from_dict_bad_timestamp(self):
        state = PollState.from_dict(
            {"lastTimeChecked": "yesterday", "knownEvents": {"a": "e1"}}
        )
        assert state.last_checked_at < datetime.now(tz=utc)
        assert state.known_versions == {"a": "e1"}

    def test_default(self):
        assert PollState.default(CHECKED).last_checked_at == CHECKED - timedelta(hours=1)


class TestMemoryPollStateStore:
    def test_default(self):
        assert_default(MemoryPollStateStore().load())

    def test_save_load(self):
        store = MemoryPollStateStore()
        state = PollState(last_checked_at=CHECKED, known_versions={"a": "e1"})
        store.save(state)
        ## later changes to the saved object don't leak into the store
        state.known_versions["b"] = "e2"
        loaded = store.load()
        assert loaded.known_versions == {"a": "e1"}
        loaded.known_versions["c"] = "e3"
        assert store.load().known_versions == {"a": "e1"}


class TestDictPollStateStore:
    def test_round_trip(self):
        static_data = {"unrelated": 1}
        store = DictPollStateStore(static_data)
        assert_default(store.load())

        store.save(PollState(last_checked_at=CHECKED, known_versions={"a": "e1"}))
        assert static_data == {
            "unrelated": 1,
            "lastTimeChecked": "2026-03-02T12:00:00Z",
            "knownEvents": {"a": "e1"},
        }
        assert store.load() == PollState(
            last_checked_at=CHECKED, known_versions={"a": "e1"}
        )

    def test_save_replaces_record(self):
        static_data = {
            "lastTimeChecked": "2026-03-01T12:00:00Z",
            "knownEvents": {"a": "e1", "b": "e1"},
        }
        DictPollStateStore(static_data).save(
            PollState(last_checked_at=CHECKED, known_versions={"c": "e2"})
        )
        assert static_data == {
            "lastTimeChecked": "2026-03-02T12:00:00Z",
            "knownEvents": {"c": "e2"},
        }

    def test_save_is_one_update(self):
        static_data = mock.MagicMock()
        DictPollStateStore(static_data).save(
            PollState(last_checked_at=CHECKED, known_versions={"a": "e1"})
        )
        static_data.update.assert_called_once_with(
            {"lastTimeChecked": "2026-03-02T12:00:00Z", "knownEvents": {"a": "e1"}}
        )
        static_data.__setitem__.assert_not_called()


class TestJsonFilePollStateStore:
    def test_missing_file(self, tmp_path):
        assert_default(JsonFilePollStateStore(str(tmp_path / "state.json")).load())

    def test_round_trip(self, tmp_path):
        path = tmp_path / "state.json"
        store = JsonFilePollStateStore(str(path))
        store.save(PollState(last_checked_at=CHECKED, known_versions={"a": "e1"}))
        assert json.loads(path.read_text())["knownEvents"] == {"a": "e1"}
        assert store.load().last_checked_at == CHECKED
        ## no temporary files left behind
        assert os.listdir(tmp_path) == ["state.json"]

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json")
        assert_default(JsonFilePollStateStore(str(path)).load())

    def test_failed_write_keeps_old_state(self, tmp_path):
        path = tmp_path / "state.json"
        store = JsonFilePollStateStore(str(path))
        store.save(PollState(last_checked_at=CHECKED, known_versions={"a": "e1"}))

        with mock.patch("caldav_connector.poll.state.json.dump", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.save(PollState(last_checked_at=CHECKED, known_versions={}))

        assert store.load().known_versions == {"a": "e1"}
        assert os.listdir(tmp_path) == ["state.json"]
