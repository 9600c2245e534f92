from __future__ import annotations

import pytest

from replaymark.core.annotations import Annotation
from replaymark.core.navigation_policy import NavigationSource
from replaymark.core.parser import parse_annotations
from replaymark.navigation.engine import NavigationEngine
from replaymark.navigation.location import LocationHash
from replaymark.playback.mock_player import MockPlayer


SCENARIO_DOCUMENT = """---
title: Scenario
---

## Section: Introduction

### Annotation: Welcome {#welcome}
---
timestamp: 0
autopause: true
---

```driverjs
driver.highlight({ element: '.welcome' });
```

### Annotation: Overview {#overview}
---
timestamp: 5000
autopause: false
---

## Section: Main Content

### Annotation: First Step {#first-step}
---
timestamp: 10000
autopause: false
---
"""


def _annotations() -> list[Annotation]:
    return [
        Annotation(id="a1", title="One", timestamp=1000),
        Annotation(id="a2", title="Two", timestamp=5000, driver_js_code="driver.highlight({});"),
        Annotation(id="a3", title="Three", timestamp=10000, autopause=False),
        Annotation(id="a4", title="Four", timestamp=15000),
    ]


def _engine(**kwargs) -> tuple[NavigationEngine, MockPlayer, LocationHash, list[Annotation]]:
    player = MockPlayer(duration_ms=20000)
    location = LocationHash()
    annotations = _annotations()
    engine = NavigationEngine(player, annotations, location=location, **kwargs)
    return engine, player, location, annotations


def _run(engine: NavigationEngine, player: MockPlayer, until_ms: float, step_ms: float = 100) -> None:
    """Advance the mock clock while playing, sampling like the monitor does."""
    while player.is_playing() and player.current_time() < until_ms:
        engine.sample(player.advance(step_ms))


@pytest.mark.parametrize("source", ["keyboard", "toc", "marker"])
def test_explicit_navigation_resets_triggered_set(source):
    engine, player, location, annotations = _engine()
    engine.navigate_to_annotation(annotations[0], "hash")
    engine.navigate_to_annotation(annotations[3], "hash")
    assert len(engine.triggered_ids) == 4

    engine.navigate_to_annotation(annotations[1], source)

    assert engine.triggered_ids == {"a2"}
    assert location.get() == "a2"
    assert player.current_time() == 5000
    assert engine.last_sampled_time == 5000


def test_keyboard_always_pauses_toc_only_on_request():
    engine, player, _location, annotations = _engine()
    engine.play()
    engine.navigate_to_annotation(annotations[2], NavigationSource.TOC)
    assert player.is_playing()

    engine.navigate_to_annotation(annotations[2], NavigationSource.TOC, should_pause=True)
    assert not player.is_playing()

    engine.play()
    engine.navigate_to_annotation(annotations[2], NavigationSource.KEYBOARD)
    assert not player.is_playing()
    assert engine.is_playing is False


def test_hash_marks_everything_up_to_target_without_touching_hash():
    engine, player, location, annotations = _engine()
    location.user_change("a3")

    engine.navigate_to_annotation(annotations[2], NavigationSource.HASH)

    assert engine.triggered_ids == {"a1", "a2", "a3"}
    assert "a4" not in engine.triggered_ids
    assert location.get() == "a3"
    assert ("goto", 10000) in player.calls


def test_playback_source_adds_without_clearing():
    engine, _player, _location, annotations = _engine()
    engine.navigate_to_annotation(annotations[0], NavigationSource.PLAYBACK)
    engine.navigate_to_annotation(annotations[2], NavigationSource.PLAYBACK)
    assert engine.triggered_ids == {"a1", "a3"}


def test_playback_source_pauses_according_to_autopause():
    engine, player, _location, annotations = _engine()
    engine.play()
    engine.navigate_to_annotation(annotations[2], NavigationSource.PLAYBACK)
    assert player.is_playing()
    engine.navigate_to_annotation(annotations[0], NavigationSource.PLAYBACK)
    assert not player.is_playing()


def test_default_autopause_can_be_disabled():
    engine, player, _location, annotations = _engine(default_autopause=False)
    engine.play()
    engine.navigate_to_annotation(annotations[0], NavigationSource.PLAYBACK)
    assert player.is_playing()


def test_overlay_only_for_highlight_script():
    engine, _player, _location, annotations = _engine()
    engine.navigate_to_annotation(annotations[1], NavigationSource.MARKER)
    assert engine.active_annotation is annotations[1]

    for source in NavigationSource:
        engine.navigate_to_annotation(annotations[1], NavigationSource.MARKER)
        engine.navigate_to_annotation(annotations[0], source)
        assert engine.active_annotation is None


def test_progress_bar_source_closes_overlay_and_pauses_without_touching_hash():
    engine, player, location, annotations = _engine()
    engine.navigate_to_annotation(annotations[1], NavigationSource.TOC)
    before = engine.triggered_ids
    location.user_change("a4")
    engine.play()

    engine.navigate_to_annotation(annotations[1], NavigationSource.PROGRESS_BAR)

    assert engine.active_annotation is None
    assert not player.is_playing()
    assert engine.triggered_ids == before
    assert location.get() == "a4"

    fresh_engine, _player, fresh_location, fresh_annotations = _engine()
    fresh_engine.navigate_to_annotation(fresh_annotations[2], NavigationSource.PROGRESS_BAR)
    assert fresh_location.get() == ""


def test_seek_to_rearms_only_later_annotations():
    engine, player, _location, annotations = _engine()
    for annotation in annotations:
        engine.navigate_to_annotation(annotation, NavigationSource.PLAYBACK)
    engine.navigate_to_annotation(annotations[1], NavigationSource.PLAYBACK)
    assert engine.active_annotation is annotations[1]

    engine.seek_to(5000)

    assert engine.triggered_ids == {"a1", "a2"}
    assert engine.active_annotation is None
    assert player.current_time() == 5000


def test_trigger_check_while_paused_only_moves_baseline():
    engine, _player, _location, _annotations = _engine()
    engine.check_annotation_triggers(1000)
    assert engine.triggered_ids == frozenset()
    assert engine.last_sampled_time == 1000


def test_backward_jump_during_playback_clears_triggered_set():
    engine, player, _location, annotations = _engine()
    engine.navigate_to_annotation(annotations[2], NavigationSource.HASH)
    engine.play()
    player.set_position(12000)
    engine.check_annotation_triggers(12000)
    assert engine.triggered_ids == {"a1", "a2", "a3"}

    player.set_position(7000)
    engine.check_annotation_triggers(7000)
    assert engine.triggered_ids == frozenset()


def test_small_backward_jitter_keeps_triggered_set():
    engine, player, _location, annotations = _engine()
    engine.navigate_to_annotation(annotations[2], NavigationSource.HASH)
    engine.play()
    engine.check_annotation_triggers(11000)
    engine.check_annotation_triggers(10500)
    assert "a1" in engine.triggered_ids


def test_active_overlay_does_not_retrigger_itself():
    engine, player, _location, annotations = _engine()
    events = []
    engine.add_listener(events.append)
    engine.navigate_to_annotation(annotations[1], NavigationSource.TOC)
    player.play()

    engine.check_annotation_triggers(12000)
    engine.check_annotation_triggers(5100)

    # the backward jump cleared the set, only the open overlay keeps a2 from firing
    assert "a2" not in engine.triggered_ids
    assert [event.source for event in events] == [NavigationSource.TOC]
    assert engine.active_annotation is annotations[1]


def test_missing_or_unready_player_is_a_no_op():
    annotations = _annotations()
    engine = NavigationEngine(None, annotations)
    engine.navigate_to_annotation(annotations[0], NavigationSource.KEYBOARD)
    engine.seek_to(100)
    engine.play()
    engine.toggle_play_pause()
    engine.check_annotation_triggers(1000)
    assert engine.triggered_ids == frozenset()
    assert engine.active_annotation is None

    player = MockPlayer(ready=False)
    engine = NavigationEngine(player, annotations)
    engine.navigate_to_annotation(annotations[1], NavigationSource.TOC)
    assert player.calls == []


def test_unknown_source_is_a_programming_error():
    engine, _player, _location, annotations = _engine()
    with pytest.raises(ValueError):
        engine.navigate_to_annotation(annotations[0], "scroll")


def test_toggle_uses_player_state_and_play_dismisses_overlay():
    engine, player, _location, annotations = _engine()
    engine.navigate_to_annotation(annotations[1], NavigationSource.TOC)
    player.play()  # out of band
    engine.toggle_play_pause()
    assert not player.is_playing()
    assert engine.active_annotation is annotations[1]

    engine.toggle_play_pause()
    assert player.is_playing()
    assert engine.active_annotation is None


def test_listener_errors_do_not_break_navigation():
    engine, _player, location, annotations = _engine()

    def broken(_event):
        raise RuntimeError("boom")

    engine.add_listener(broken)
    engine.navigate_to_annotation(annotations[0], NavigationSource.TOC)
    assert location.get() == "a1"


def test_player_failures_are_logged_not_raised(caplog):
    class BrokenPlayer(MockPlayer):
        def goto_time(self, time_ms: int) -> None:
            raise RuntimeError("surface gone")

    annotations = _annotations()
    engine = NavigationEngine(BrokenPlayer(), annotations)
    engine.navigate_to_annotation(annotations[0], NavigationSource.TOC)
    assert engine.triggered_ids == {"a1"}
    assert "surface gone" in caplog.text


def test_autoplay_scenario_fires_each_annotation_once():
    document = parse_annotations(SCENARIO_DOCUMENT)
    player = MockPlayer(duration_ms=20000)
    location = LocationHash()
    engine = NavigationEngine(player, document.annotations, location=location)
    events = []
    engine.add_listener(events.append)

    engine.play()
    engine.sample(player.current_time())

    welcome = document.find_annotation("welcome")
    assert [event.annotation.id for event in events] == ["welcome"]
    assert not player.is_playing()
    assert engine.active_annotation is welcome
    assert location.get() == "welcome"

    engine.play()
    assert engine.active_annotation is None
    _run(engine, player, until_ms=7000)
    assert [event.annotation.id for event in events] == ["welcome", "overview"]
    assert events[-1].paused is False
    assert events[-1].overlay is None
    assert player.is_playing()

    _run(engine, player, until_ms=12000)
    assert [event.annotation.id for event in events] == ["welcome", "overview", "first-step"]
    assert events[-1].paused is False
    assert engine.active_annotation is None
    assert player.is_playing()
    assert location.get() == "first-step"


def test_seek_back_scenario_rearms_later_annotation_only():
    document = parse_annotations(SCENARIO_DOCUMENT)
    player = MockPlayer(duration_ms=20000)
    engine = NavigationEngine(player, document.annotations)
    events = []
    engine.add_listener(events.append)

    engine.play()
    engine.sample(0)
    engine.play()
    _run(engine, player, until_ms=12000)
    assert engine.triggered_ids == {"welcome", "overview", "first-step"}

    engine.seek_to(6000)
    assert engine.triggered_ids == {"welcome", "overview"}
    events.clear()

    _run(engine, player, until_ms=12000)
    assert [event.annotation.id for event in events] == ["first-step"]


def test_current_annotation_follows_playhead():
    engine, player, _location, annotations = _engine()
    assert engine.current_annotation is None

    engine.seek_to(6000)
    assert engine.current_annotation is annotations[1]

    engine.sample(15000)
    assert engine.current_annotation is annotations[3]


def test_overlay_listeners_hear_every_open_and_close():
    engine, _player, _location, annotations = _engine()
    changes = []
    engine.add_overlay_listener(changes.append)

    engine.navigate_to_annotation(annotations[1], NavigationSource.MARKER)
    engine.dismiss_overlay()
    engine.dismiss_overlay()
    engine.navigate_to_annotation(annotations[1], NavigationSource.TOC)
    engine.seek_to(8000)
    engine.navigate_to_annotation(annotations[1], NavigationSource.TOC)
    engine.play()

    assert changes == [annotations[1], None, annotations[1], None, annotations[1], None]

    engine.remove_overlay_listener(changes.append)
    engine.navigate_to_annotation(annotations[1], NavigationSource.TOC)
    assert len(changes) == 6


def test_closed_engine_ignores_everything():
    engine, player, location, annotations = _engine()
    changes = []
    engine.add_overlay_listener(changes.append)
    engine.navigate_to_annotation(annotations[1], NavigationSource.TOC)
    player.play()
    player.calls.clear()

    engine.close()

    assert engine.closed
    assert not engine.is_ready()
    assert changes == [annotations[1], None]
    assert engine.triggered_ids == frozenset()

    engine.sample(1000)
    engine.navigate_to_annotation(annotations[3], NavigationSource.KEYBOARD)
    engine.toggle_play_pause()
    assert player.calls == []
    assert location.get() == "a2"
