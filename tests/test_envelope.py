"""Inbound envelope parsing tests."""

import json

import pytest

from imagebot.core.envelope import parse_envelope, split_command


def _update(text=None, chat_id=42, key="message"):
    message = {"chat": {"id": chat_id}}
    if text is not None:
        message["text"] = text
    return {"update_id": 1, key: message}


@pytest.mark.unit
class TestParseEnvelope:

    def test_json_text_envelope(self):
        request = parse_envelope(json.dumps(_update("a cat in a garden")), thread_id="t-1")

        assert request.original_prompt == "a cat in a garden"
        assert request.destination == "42"
        assert request.thread_id == "t-1"
        assert request.style == "realistic"

    def test_dict_and_bytes_envelopes(self):
        assert parse_envelope(_update("a dog")).original_prompt == "a dog"
        assert parse_envelope(json.dumps(_update("a dog")).encode()).original_prompt == "a dog"

    def test_edited_message(self):
        request = parse_envelope(_update("a fox", chat_id=-100, key="edited_message"))
        assert request.original_prompt == "a fox"
        assert request.destination == "-100"

    @pytest.mark.parametrize("raw", [
        "not json at all",
        "",
        "[1, 2, 3]",
        json.dumps({"message": "just a string"}),
        json.dumps({"message": {"chat": {"id": 7}, "text": 12345}}),
        None,
        12,
    ])
    def test_malformed_envelopes_give_empty_prompt(self, raw):
        request = parse_envelope(raw)
        assert request.original_prompt == ""

    def test_missing_text_keeps_destination(self):
        request = parse_envelope(_update(None, chat_id=99))
        assert request.original_prompt == ""
        assert request.destination == "99"

    def test_missing_chat_id(self):
        request = parse_envelope({"message": {"text": "a cat"}})
        assert request.destination == "unknown"

    def test_defaults_are_applied(self):
        request = parse_envelope(_update("a cat"), style="anime", width=512, height=768)
        assert (request.style, request.width, request.height) == ("anime", 512, 768)


@pytest.mark.unit
class TestSplitCommand:

    @pytest.mark.parametrize("text, expected", [
        ("a cat", ("a cat", None)),
        ("  a cat  ", ("a cat", None)),
        ("/image a cat", ("a cat", None)),
        ("/imagine@my_bot a cat", ("a cat", None)),
        ("/IMAGE a cat", ("a cat", None)),
        ("/style cartoon a cat in a garden", ("a cat in a garden", "cartoon")),
        ("/style Watercolor", ("", "watercolor")),
        ("/start", ("", None)),
        ("/help@my_bot", ("", None)),
        ("/image", ("", None)),
        ("/unknown thing", ("/unknown thing", None)),
    ])
    def test_commands(self, text, expected):
        assert split_command(text) == expected

    def test_style_command_sets_request_style(self):
        request = parse_envelope(_update("/style anime a castle"))
        assert request.style == "anime"
        assert request.original_prompt == "a castle"
