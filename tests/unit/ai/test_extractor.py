"""Tests for multi-item extraction."""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock, patch

import pytest

from mindify.ai.classifier import Classifier
from mindify.ai.errors import MalformedResponseError
from mindify.ai.extractor import ItemExtractor, parse_extraction, split_segments
from mindify.ai.types import Categorization
from mindify.config import LLMCfg, UserProfile


def _llm_reply(payload) -> MagicMock:
    mock_response = MagicMock()
    mock_response.choices[0].message.content = (
        payload if isinstance(payload, str) else json.dumps(payload)
    )
    return mock_response


def _offline(profile: UserProfile | None = None) -> ItemExtractor:
    return ItemExtractor(LLMCfg(), profile or UserProfile(), online=False)


# ------------------------------------------------------------------
# split_segments
# ------------------------------------------------------------------


def test_split_on_conjunctions_and_punctuation():
    assert split_segments("buy milk, call Sam. then email Jo also pay rent") == [
        "buy milk",
        "call Sam",
        "email Jo",
        "pay rent",
    ]


def test_split_requires_whole_word_conjunction():
    assert split_segments("understand the android band") == ["understand the android band"]


def test_split_caps_at_five_segments():
    segments = split_segments("a, b, c, d, e, f, g")
    assert len(segments) == 5
    assert segments[-1] == "e f g"


def test_split_drops_empty_pieces():
    assert split_segments("one.. , two.") == ["one", "two"]


# ------------------------------------------------------------------
# Offline extraction
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "text",
    ["x", "...", "thinking about a new feature", "a, b, c, d, e, f, g, h", "  and  "],
)
def test_non_empty_input_yields_at_least_one_item(text):
    result = _offline().extract_multiple_items(text)
    assert len(result.items) >= 1


def test_whitespace_input_yields_nothing():
    assert _offline().extract_multiple_items("   ").items == []


def test_offline_splits_reminder_and_idea():
    result = _offline().extract_multiple_items(
        "Remind me to call mom at 3pm and I have an idea for an app"
    )

    assert len(result.items) == 2
    first, second = result.items
    assert first.category == "reminder"
    assert first.urgency == "medium"
    assert "mom" in first.raw_text
    assert second.category == "idea"
    assert all(item.confidence == 0.21 for item in result.items)


def test_offline_single_item_wrap():
    result = _offline().extract_multiple_items("thinking about a new feature")

    assert len(result.items) == 1
    item = result.items[0]
    assert item.category == "idea"
    assert item.confidence == 0.3
    assert item.raw_text == "thinking about a new feature"
    assert "no split points" in result.reasoning


def test_offline_punctuation_only_keeps_whole_text():
    result = _offline().extract_multiple_items("...")
    assert [i.raw_text for i in result.items] == ["..."]


def test_offline_items_carry_project_tags():
    extractor = _offline(UserProfile(projects=["Atlas"]))
    result = extractor.extract_multiple_items("Atlas budget review")
    assert result.items[0].entities.projects == ["Atlas"]
    assert result.items[0].tags == ["finance", "atlas"]


def test_offline_segments_go_through_classifier():
    extractor = _offline()
    extractor.offline_classifier = MagicMock(spec=Classifier)
    extractor.offline_classifier.categorize.side_effect = lambda text: Categorization(
        category="task", title=text.upper(), urgency="low", confidence=0.3
    )

    result = extractor.extract_multiple_items("buy milk and renew passport")

    assert [c.args[0] for c in extractor.offline_classifier.categorize.call_args_list] == [
        "buy milk",
        "renew passport",
    ]
    assert [i.title for i in result.items] == ["BUY MILK", "RENEW PASSPORT"]
    assert {i.category for i in result.items} == {"task"}
    assert {i.confidence for i in result.items} == {0.21}


# ------------------------------------------------------------------
# Online extraction
# ------------------------------------------------------------------

_ONLINE = {
    "items": [
        {
            "category": "reminder",
            "title": "Call mom at 3pm",
            "urgency": "medium",
            "confidence": 0.9,
            "rawText": "Remind me to call mom at 3pm",
            "tags": ["family"],
            "entities": {"people": ["mom"]},
        },
        {
            "category": "idea",
            "title": "App idea",
            "urgency": "none",
            "confidence": 0.8,
            "rawText": "I have an idea for an app",
        },
    ],
    "reasoning": "Two distinct intents",
}


def test_online_extraction_uses_llm():
    extractor = ItemExtractor(LLMCfg(max_tokens=512), UserProfile(name="Sam"))

    with patch(
        "mindify.ai.llm_client.litellm.completion", return_value=_llm_reply(_ONLINE)
    ) as mock_completion:
        result = extractor.extract_multiple_items(
            "Remind me to call mom at 3pm and I have an idea for an app"
        )

    assert [i.category for i in result.items] == ["reminder", "idea"]
    assert result.items[0].entities.people == ["mom"]
    assert result.items[0].tags == ["family"]
    assert result.reasoning == "Two distinct intents"
    assert mock_completion.call_args.kwargs["max_tokens"] == 2048


def test_online_failure_falls_back_to_offline(caplog):
    extractor = ItemExtractor(LLMCfg(), UserProfile())

    with patch(
        "mindify.ai.llm_client.litellm.completion", side_effect=TimeoutError("slow")
    ):
        with caplog.at_level(logging.WARNING, logger="mindify.ai.extractor"):
            result = extractor.extract_multiple_items("buy milk and call Sam")

    assert len(result.items) == 2
    assert result.reasoning.startswith("Offline mode")
    assert "Online extraction failed" in caplog.text


def test_online_malformed_falls_back_to_offline():
    extractor = ItemExtractor(LLMCfg(), UserProfile())
    with patch(
        "mindify.ai.llm_client.litellm.completion", return_value=_llm_reply({"items": []})
    ):
        result = extractor.extract_multiple_items("thinking about a new feature")

    assert len(result.items) == 1
    assert result.items[0].confidence == 0.3


def test_extract_online_is_strict():
    extractor = ItemExtractor(LLMCfg(), UserProfile())
    with patch(
        "mindify.ai.llm_client.litellm.completion", return_value=_llm_reply("not json")
    ):
        with pytest.raises(MalformedResponseError):
            extractor.extract_online("buy milk")


# ------------------------------------------------------------------
# parse_extraction
# ------------------------------------------------------------------


def test_parse_extraction_defaults_raw_text_to_input():
    result = parse_extraction(
        {"items": [{"category": "task", "urgency": "low", "title": "Buy milk"}]},
        "buy milk",
    )
    assert result.items[0].raw_text == "buy milk"
    assert result.reasoning == "Extracted 1 items"


def test_parse_extraction_rejects_bad_item_category():
    with pytest.raises(MalformedResponseError):
        parse_extraction({"items": [{"category": "chore", "urgency": "low"}]}, "x")


def test_parse_extraction_rejects_non_object_item():
    with pytest.raises(MalformedResponseError):
        parse_extraction({"items": ["buy milk"]}, "buy milk")
