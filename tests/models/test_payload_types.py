import time

import pytest
from pydantic import ValidationError

from postlog.models.types import Endpoint, IdentifyPayload, TrackPayload


class TestIdentifyPayload:
    def test_dumps_wire_fields(self):
        payload = IdentifyPayload(
            user_id="test_user", project="test_project", properties={"plan": "free"}
        )
        assert payload.model_dump() == {
            "user_id": "test_user",
            "project": "test_project",
            "properties": {"plan": "free"},
        }

    def test_keeps_bools_as_bools(self):
        payload = IdentifyPayload(user_id="u", project="p", properties={"beta": True, "n": 1})
        assert payload.properties["beta"] is True
        assert payload.properties["n"] == 1

    def test_rejects_non_string_ids(self):
        with pytest.raises(ValidationError):
            IdentifyPayload(user_id=123, project="p", properties={})


class TestTrackPayload:
    def test_defaults(self):
        before = int(time.time() * 1000)
        payload = TrackPayload(name="App Opened", channel="lifecycle", project="p", user_id="u")
        after = int(time.time() * 1000)

        assert payload.icon == ""
        assert payload.description == ""
        assert payload.tags == {}
        assert before <= payload.timestamp <= after

    def test_tags_default_is_not_shared(self):
        first = TrackPayload(name="a", channel="c", project="p", user_id="u")
        second = TrackPayload(name="b", channel="c", project="p", user_id="u")
        first.tags["x"] = 1
        assert second.tags == {}


class TestEndpoint:
    def test_paths(self):
        assert Endpoint.IDENTIFY == "/user/identify"
        assert Endpoint.TRACK == "/log"
