import json

import openai
import pytest
from conftest import MODEL_ANALYSIS, FakeOpenAI

from avisscore.core.analyzer import (CANNED_ANALYSIS, WORLD_KNOWLEDGE_INSTRUCTION,
                                     AnalyzerNotConfigured, ProductAnalyzer, build_prompt,
                                     parse_analysis)


def test_analyze_returns_validated_payload():
    fake = FakeOpenAI()
    result = ProductAnalyzer(api_key="test", client=fake).analyze("iPhone 15", "Très bon.")

    assert result["pros"] == MODEL_ANALYSIS["pros"]
    assert result["predecessorName"] == "iPhone 14"
    assert result["marketAlternatives"] == [{"name": "Pixel 8", "price": "699 €"}]
    assert len(fake.requests) == 1
    assert fake.requests[0]["response_format"] == {"type": "json_object"}


def test_prompt_falls_back_to_world_knowledge():
    assert WORLD_KNOWLEDGE_INSTRUCTION in build_prompt("iPhone 15", None)
    assert "Très bon." in build_prompt("iPhone 15", "Très bon.")


def test_parse_analysis_strips_markdown_fence():
    analysis = parse_analysis("```json\n" + json.dumps(MODEL_ANALYSIS) + "\n```")
    assert analysis.buyer_tip == "Attendez les soldes."


@pytest.mark.parametrize("content", [
    "not json at all",
    json.dumps({"score": 70, "description": "incomplet"}),
    json.dumps({**MODEL_ANALYSIS, "pros": "pas une liste"}),
])
def test_malformed_model_output_returns_canned(content):
    result = ProductAnalyzer(api_key="test", client=FakeOpenAI(content=content)).analyze("iPhone 15")
    assert result == CANNED_ANALYSIS
    assert result["score"] == 85
    assert result["predecessorName"] == "Modèle précédent"
    assert result["activeLifespanYears"] == 4
    assert result["marketAlternatives"] == []
    assert len(result["pros"]) == 6 and len(result["cons"]) == 6


def test_model_error_returns_canned():
    fake = FakeOpenAI(error=openai.OpenAIError("upstream down"))
    assert ProductAnalyzer(api_key="test", client=fake).analyze("iPhone 15") == CANNED_ANALYSIS


def test_canned_copy_is_independent():
    result = ProductAnalyzer(api_key="test", client=FakeOpenAI(content="{}")).analyze("x")
    result["pros"].append("extra")
    assert len(CANNED_ANALYSIS["pros"]) == 6


def test_missing_credential():
    analyzer = ProductAnalyzer(api_key="")
    assert analyzer.configured is False
    with pytest.raises(AnalyzerNotConfigured):
        analyzer.analyze("iPhone 15")
