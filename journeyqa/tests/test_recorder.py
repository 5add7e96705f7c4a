"""Tests for turning recorded interactions into journey steps."""
import json

import pytest
import yaml

from journeyqa.src.recorder.recorder import (
    JourneyRecorder,
    RecordedEvent,
    build_journey_yaml,
    coalesce_events,
    to_natural_language,
)


def _event(type_, timestamp=0, **fields):
    return RecordedEvent(type=type_, timestamp=timestamp, **fields)


class TestNaturalLanguage:
    @pytest.mark.parametrize(
        "event, expected",
        [
            (_event("click", tag="a", text="Pricing"), "Click the 'Pricing' link"),
            (_event("click", tag="div", role="button", aria_label="Close"), "Click the 'Close' button"),
            (_event("click", tag="span", text="x" * 80), "Click on the span"),
            (_event("click", tag="img"), "Click on the img"),
            (_event("input", tag="input", placeholder="Email", value="a@b.co"), "Type 'a@b.co' into the 'Email' field"),
            (
                _event("input", tag="input", aria_label="Password", value="hunter2", is_password=True),
                "Type '[password]' into the 'Password' field",
            ),
            (_event("select", tag="select", aria_label="Size", value="L"), "Select 'L' from the 'Size' dropdown"),
            (_event("scroll", direction="up"), "Scroll up the page"),
            (_event("navigation", url="https://example.com/a"), "Navigate to https://example.com/a"),
            (_event("submit"), "Submit the form"),
        ],
    )
    def test_phrases(self, event, expected):
        assert to_natural_language(event) == expected


class TestCoalesceEvents:
    def test_drops_focus_click_before_input(self):
        events = [_event("click", 1000, tag="input"), _event("input", 1500, tag="input", value="x")]
        assert [e.type for e in coalesce_events(events)] == ["input"]

    def test_keeps_click_when_input_is_late(self):
        events = [_event("click", 1000, tag="input"), _event("input", 3500, tag="input", value="x")]
        assert [e.type for e in coalesce_events(events)] == ["click", "input"]

    def test_collapses_repeated_scrolls(self):
        events = [
            _event("scroll", direction="down"),
            _event("scroll", direction="down"),
            _event("scroll", direction="up"),
            _event("scroll", direction="down"),
        ]
        assert [e.direction for e in coalesce_events(events)] == ["down", "up", "down"]


def test_build_journey_yaml():
    text = build_journey_yaml(
        "Signup",
        "https://example.com",
        [_event("click", tag="button", text="Join"), _event("scroll"), _event("scroll")],
    )
    data = yaml.safe_load(text)
    assert data == {
        "name": "Signup",
        "url": "https://example.com",
        "steps": [{"action": "Click the 'Join' button"}, {"action": "Scroll down the page"}],
    }


class TestJourneyRecorder:
    """Payload and navigation handling outside a real browser."""

    def test_handle_payload(self):
        recorder = JourneyRecorder()
        recorder.handle_payload(json.dumps({"type": "click", "timestamp": 5, "tag": "a", "text": "Docs"}))
        recorder.handle_payload("not json")
        recorder.handle_payload(json.dumps({"type": "teleport", "timestamp": 1}))
        assert len(recorder.events) == 1
        assert recorder.events[0].text == "Docs"

    def test_handle_navigation_skips_start_and_about(self):
        recorder = JourneyRecorder()
        recorder.handle_navigation("https://example.com/")
        recorder.handle_navigation("about:blank")
        recorder.handle_navigation("https://example.com/")
        recorder.handle_navigation("https://example.com/pricing")
        assert [e.url for e in recorder.events] == ["https://example.com/pricing"]
        assert recorder.events[0].type == "navigation"
