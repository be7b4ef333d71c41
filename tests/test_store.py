"""Tests for the stage store and the single-subscriber event stream."""

import gc

from conftest import RecordingListener

from vpn_bridge.bridge.store import StageStore
from vpn_bridge.bridge.stream import StageEventStream
from vpn_bridge.models import Stage


class TestStageStore:
    """Test suite for StageStore."""

    def test_initial_stage_is_disconnected(self):
        assert StageStore().get_stage() == Stage.DISCONNECTED

    def test_set_stage_updates_value_and_pushes(self, store, listener):
        store.set_stage(Stage.CONNECTING)

        assert store.get_stage() == Stage.CONNECTING
        assert listener.stages == [Stage.CONNECTING]

    def test_set_stage_pushes_repeated_values(self, store, listener):
        store.set_stage(Stage.DISCONNECTED)
        store.set_stage(Stage.DISCONNECTED)

        assert listener.stages == [Stage.DISCONNECTED, Stage.DISCONNECTED]

    def test_advance_only_pushes_changes(self, store, listener):
        assert store.advance(Stage.DISCONNECTED) is False
        assert store.advance(Stage.CONNECTED) is True
        assert store.advance(Stage.CONNECTED) is False

        assert listener.stages == [Stage.CONNECTED]

    def test_set_stage_without_subscriber(self, store):
        store.set_stage(Stage.FAILED)
        assert store.get_stage() == Stage.FAILED

    def test_stages_serialize_to_wire_values(self):
        assert [stage.value for stage in Stage] == [
            "disconnected",
            "connecting",
            "connected",
            "permission_required",
            "denied",
            "failed",
        ]


class TestStageEventStream:
    """Test suite for StageEventStream."""

    def test_subscribe_replays_current_stage(self, store):
        store.set_stage(Stage.CONNECTED)
        recorder = RecordingListener()

        store.subscribe(recorder)

        assert recorder.stages == [Stage.CONNECTED]

    def test_resubscribe_replays_without_transition(self, store):
        store.set_stage(Stage.FAILED)
        first = RecordingListener()
        second = RecordingListener()

        store.subscribe(first)
        store.unsubscribe()
        store.subscribe(second)

        assert first.stages == [Stage.FAILED]
        assert second.stages == [Stage.FAILED]

    def test_new_subscriber_replaces_old(self, store):
        first = RecordingListener()
        second = RecordingListener()
        store.subscribe(first)
        store.subscribe(second)

        store.set_stage(Stage.CONNECTING)

        assert first.stages == [Stage.DISCONNECTED]
        assert second.stages == [Stage.DISCONNECTED, Stage.CONNECTING]

    def test_unsubscribe_stops_delivery(self, store, listener):
        store.unsubscribe()
        store.set_stage(Stage.CONNECTED)

        assert listener.stages == []
        assert store.events.has_subscriber is False

    def test_push_swallows_listener_errors(self, store):
        def broken(stage):
            raise RuntimeError("sink detached")

        store.subscribe(broken)
        store.set_stage(Stage.CONNECTED)

        assert store.get_stage() == Stage.CONNECTED

    def test_bound_method_listener_is_weak(self, store):
        class Screen:
            def __init__(self):
                self.seen = []

            def on_stage(self, stage):
                self.seen.append(stage)

        screen = Screen()
        store.subscribe(screen.on_stage)
        assert screen.seen == [Stage.DISCONNECTED]

        del screen
        gc.collect()
        store.set_stage(Stage.CONNECTED)

        assert store.events.has_subscriber is False

    def test_stream_without_snapshot_does_not_replay(self):
        stream = StageEventStream()
        recorder = RecordingListener()

        stream.subscribe(recorder)
        stream.push(Stage.DENIED)

        assert recorder.stages == [Stage.DENIED]
