"""Tests for nexus/services/parsing.py."""

from __future__ import annotations

import json

import pytest

from nexus.services.parsing import loads_llm_json, strip_code_fence


class TestStripCodeFence:

    def test_plain_text_unchanged(self):
        assert strip_code_fence('  ["a"]  ') == '["a"]'

    def test_json_fence(self):
        assert strip_code_fence('```json\n["a", "b"]\n```') == '["a", "b"]'

    def test_bare_fence(self):
        assert strip_code_fence('Here you go:\n```\n{"items": []}\n```\nEnjoy') == '{"items": []}'


class TestLoadsLLMJson:

    def test_array(self):
        assert loads_llm_json('["Cebu City"]') == ["Cebu City"]

    def test_fenced_object(self):
        assert loads_llm_json('```json\n{"items": [1]}\n```') == {"items": [1]}

    @pytest.mark.parametrize("text", ["", "   \n"])
    def test_empty_raises(self, text):
        with pytest.raises(ValueError, match="empty"):
            loads_llm_json(text)

    def test_invalid_json_raises(self):
        with pytest.raises(json.JSONDecodeError):
            loads_llm_json("Cebu, Davao")
