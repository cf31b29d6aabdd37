"""Unit tests for response sanitizing and shape validation."""

from __future__ import annotations

import pytest

from tt.errors import MalformedResponse, ShapeMismatch
from tt.models import ImprovementResult, Rewrite, RewriteWithReason, Translate
from tt.sanitize import extract_json_array, validate_shape


class TestExtractJsonArray:
    def test_bare_array(self):
        assert extract_json_array('["Login", "Sign Up"]') == ["Login", "Sign Up"]

    def test_json_code_fence(self):
        text = '```json\n["Login", "Sign Up"]\n```'
        assert extract_json_array(text) == ["Login", "Sign Up"]

    def test_plain_code_fence(self):
        assert extract_json_array('```\n["a"]\n```') == ["a"]

    def test_surrounding_prose(self):
        text = 'Here are the translations:\n["Home", "Settings"]\nLet me know if you need more.'
        assert extract_json_array(text) == ["Home", "Settings"]

    def test_think_block_is_ignored(self):
        text = '<think>maybe ["draft"] first</think>["final"]'
        assert extract_json_array(text) == ["final"]

    def test_fence_inside_value_is_kept(self):
        assert extract_json_array('["Use ```npm i``` to install"]') == ["Use ```npm i``` to install"]

    def test_fenced_array_with_fence_inside_value(self):
        text = '```json\n["Run ```make```", "Done"]\n```'
        assert extract_json_array(text) == ["Run ```make```", "Done"]

    def test_think_tag_inside_value_is_kept(self):
        assert extract_json_array('["<think>Big</think> ideas"]') == ["<think>Big</think> ideas"]

    def test_prose_then_value_with_think_tag(self):
        text = 'Result: ["<think>Big</think> ideas"]'
        assert extract_json_array(text) == ["<think>Big</think> ideas"]

    def test_skips_bracketed_prose_that_is_not_json(self):
        text = 'Note [see below]: ["[EN] Login", "Sign Up"]'
        assert extract_json_array(text) == ["[EN] Login", "Sign Up"]

    def test_brackets_inside_strings(self):
        assert extract_json_array('["a ] b", "[c]"]') == ["a ] b", "[c]"]

    def test_array_of_objects(self):
        text = '[{"original": "a", "improved": "b", "reason": "c"}]'
        assert extract_json_array(text) == [{"original": "a", "improved": "b", "reason": "c"}]

    def test_unicode(self):
        assert extract_json_array('["로그인", "회원가입"]') == ["로그인", "회원가입"]

    @pytest.mark.parametrize("text", ["", "no array here", "[unterminated", '{"a": 1}'])
    def test_no_array_raises(self, text):
        with pytest.raises(MalformedResponse):
            extract_json_array(text)


class TestValidateShape:
    def test_strings_pass(self):
        assert validate_shape(["a", "b"], 2, Translate("en")) == ["a", "b"]

    def test_length_mismatch(self):
        with pytest.raises(ShapeMismatch):
            validate_shape(["a"], 2, Rewrite())

    def test_non_string_element(self):
        with pytest.raises(ShapeMismatch):
            validate_shape(["a", 3], 2, Translate("en"))

    def test_not_a_list(self):
        with pytest.raises(ShapeMismatch):
            validate_shape({"a": 1}, 1, Rewrite())

    def test_reason_objects_converted(self):
        parsed = [{"original": "확인", "improved": "완료하기", "reason": "더 명확함"}]
        assert validate_shape(parsed, 1, RewriteWithReason()) == [
            ImprovementResult(original="확인", improved="완료하기", reason="더 명확함")
        ]

    def test_reason_object_missing_field(self):
        with pytest.raises(ShapeMismatch):
            validate_shape([{"original": "a", "improved": "b"}], 1, RewriteWithReason())

    def test_reason_mode_rejects_strings(self):
        with pytest.raises(ShapeMismatch):
            validate_shape(["a"], 1, RewriteWithReason())
