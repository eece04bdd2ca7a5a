"""Tests for content flattening and tag rendering."""

import json

from tagproxy.conversation import normalize_content, render_tool_call_tag, render_tool_result_tag
from tagproxy.conversation.types import (
    TextSegment,
    ToolInvocationSegment,
    ToolResultSegment,
    decode_segment,
)


class TestNormalizeContent:
    """Tests for normalize_content."""

    def test_plain_string_is_returned_verbatim(self):
        assert normalize_content("hello\nworld") == "hello\nworld"

    def test_text_segments_are_concatenated_in_order(self):
        content = [{"type": "text", "text": "one "}, {"type": "text", "text": "two"}]
        assert normalize_content(content) == "one two"

    def test_tool_use_renders_tool_call_tag(self):
        content = [
            {"type": "text", "text": "Checking."},
            {"type": "tool_use", "id": "toolu_1", "name": "get_weather", "input": {"city": "Paris"}},
        ]
        assert normalize_content(content) == (
            "Checking."
            "\n<tool_call>\n"
            '{"name": "get_weather", "id": "toolu_1", "input": {"city":"Paris"}}'
            "\n</tool_call>\n"
        )

    def test_tool_result_renders_tool_result_tag(self):
        content = [{"type": "tool_result", "tool_use_id": "toolu_1", "content": "sunny"}]
        assert normalize_content(content) == '\n<tool_result id="toolu_1">\nsunny\n</tool_result>\n'

    def test_structured_tool_result_is_rendered_as_json(self):
        content = [
            {
                "type": "tool_result",
                "tool_use_id": "toolu_2",
                "content": [{"type": "text", "text": "42"}],
            }
        ]
        text = normalize_content(content)
        body = text.split("\n")[2]
        assert json.loads(body) == [{"type": "text", "text": "42"}]

    def test_unknown_segments_are_skipped(self):
        content = [
            {"type": "image", "source": {}},
            {"type": "text", "text": "kept"},
            "not-a-segment",
            42,
        ]
        assert normalize_content(content) == "kept"

    def test_undecodable_content_is_empty(self):
        assert normalize_content(None) == ""
        assert normalize_content(12) == ""
        assert normalize_content({"type": "text", "text": "x"}) == ""

    def test_empty_list_is_empty(self):
        assert normalize_content([]) == ""


class TestRenderTags:
    """Tests for the tag renderers."""

    def test_tool_call_tag_key_order(self):
        tag = render_tool_call_tag("search", "call_9", {"q": "x", "limit": 3})
        body = tag.strip().split("\n")[1]
        assert list(json.loads(body)) == ["name", "id", "input"]

    def test_tool_call_tag_is_surrounded_by_newlines(self):
        tag = render_tool_call_tag("noop", "c", {})
        assert tag.startswith("\n<tool_call>\n")
        assert tag.endswith("\n</tool_call>\n")

    def test_tool_call_tag_defaults_missing_input(self):
        tag = render_tool_call_tag("noop", "c", None)
        assert '"input": {}' in tag

    def test_tool_call_tag_keeps_unicode(self):
        tag = render_tool_call_tag("translate", "c", {"text": "héllo"})
        assert "héllo" in tag

    def test_tool_result_tag_passes_string_through(self):
        tag = render_tool_result_tag("abc", '{"already": "json text"}')
        assert '{"already": "json text"}' in tag

    def test_null_tool_result_renders_empty_body(self):
        assert render_tool_result_tag("abc", None) == '\n<tool_result id="abc">\n\n</tool_result>\n'

    def test_null_tool_result_segment_renders_empty_body(self):
        text = normalize_content(
            [{"type": "tool_result", "tool_use_id": "t1", "content": None}]
        )
        assert text == '\n<tool_result id="t1">\n\n</tool_result>\n'

    def test_tool_result_id_is_attribute_escaped(self):
        tag = render_tool_result_tag('a"b<c', "ok")
        assert tag.startswith('\n<tool_result id="a&quot;b&lt;c">\n')


class TestDecodeSegment:
    """Tests for segment decoding by discriminant."""

    def test_text(self):
        assert decode_segment({"type": "text", "text": "hi"}) == TextSegment("hi")

    def test_text_with_non_string_text(self):
        assert decode_segment({"type": "text", "text": 5}) == TextSegment("")

    def test_tool_use_defaults_input(self):
        segment = decode_segment({"type": "tool_use", "id": "a", "name": "b"})
        assert segment == ToolInvocationSegment(id="a", name="b", input={})

    def test_tool_result(self):
        segment = decode_segment({"type": "tool_result", "tool_use_id": "a", "content": "r"})
        assert segment == ToolResultSegment(tool_use_id="a", content="r")

    def test_unknown_type(self):
        assert decode_segment({"type": "thinking", "thinking": "..."}) is None
        assert decode_segment(["text"]) is None
