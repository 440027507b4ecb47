from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from curator.ai import GeminiClient, GeminiReportGenerator, GeminiScorer, OTHER_CATEGORY
from curator.errors import CollaboratorError
from curator.models import Article

from stubs import run


def make_article(title="Model release", content="A new model was released today."):
    return Article(id="a1", title=title, url="https://example.com/a1", source="Example",
                   content=content, collected_at="2026-10-18T09:00:00+00:00")


def scorer_replying(text):
    scorer = GeminiScorer(api_keys=["key"])
    scorer.complete = AsyncMock(return_value=text)
    return scorer


def test_score_parses_json_reply():
    scorer = scorer_replying('```json\n{"score": 4, "category": "Tech", "reasoning": "solid"}\n```')
    assessment = run(scorer.score(make_article(), ["Tech", "Policy"]))
    assert (assessment.score, assessment.category, assessment.reasoning) == (4, "Tech", "solid")


def test_score_is_clamped_and_unknown_category_mapped():
    scorer = scorer_replying('{"score": 7.6, "category": "Sports", "reasoning": ""}')
    assessment = run(scorer.score(make_article(), ["Tech"]))
    assert assessment.score == 5
    assert assessment.category == OTHER_CATEGORY
    assert assessment.reasoning == "No reasoning provided"


def test_unreadable_reply_is_a_collaborator_error():
    scorer = scorer_replying("I think this is a 4")
    with pytest.raises(CollaboratorError):
        run(scorer.score(make_article(), ["Tech"]))


def test_prompt_lists_categories_and_truncates_content():
    scorer = scorer_replying('{"score": 3, "category": "Tech", "reasoning": "ok"}')
    run(scorer.score(make_article(content="x" * 5000), ["Tech", "Policy"]))
    prompt = scorer.complete.call_args.args[0]
    assert "Tech, Policy" in prompt
    assert "x" * 1001 not in prompt


def test_report_prompt_contains_template_and_articles():
    generator = GeminiReportGenerator(api_keys=["key"])
    generator.complete = AsyncMock(return_value="  # Digest\n")
    article = make_article()
    article.category = "Tech"

    markdown = run(generator.generate([article], "Write a digest."))

    assert markdown == "# Digest"
    prompt = generator.complete.call_args.args[0]
    assert prompt.startswith("Write a digest.")
    assert "[1] Title: Model release" in prompt
    assert "Category: Tech" in prompt


def test_complete_without_keys_fails():
    with pytest.raises(CollaboratorError):
        run(GeminiClient(api_keys=[]).complete("hello"))


@patch("curator.ai.genai")
def test_complete_falls_back_to_next_model(mock_genai):
    failing = MagicMock()
    failing.generate_content_async = AsyncMock(side_effect=Exception("429 quota exceeded"))
    working = MagicMock()
    working.generate_content_async = AsyncMock(return_value=MagicMock(text="answer"))
    mock_genai.GenerativeModel.side_effect = [failing, working]

    client = GeminiClient(api_keys=["key"], models=["model-a", "model-b"])

    assert run(client.complete("prompt")) == "answer"
    assert [c.args[0] for c in mock_genai.GenerativeModel.call_args_list] == ["model-a", "model-b"]


@patch("curator.ai.genai")
def test_complete_rotates_keys_then_gives_up(mock_genai):
    failing = MagicMock()
    failing.generate_content_async = AsyncMock(side_effect=Exception("429 quota exceeded"))
    mock_genai.GenerativeModel.return_value = failing

    client = GeminiClient(api_keys=["k1", "k2"], models=["model-a"])

    with pytest.raises(CollaboratorError):
        run(client.complete("prompt"))
    assert [c.kwargs["api_key"] for c in mock_genai.configure.call_args_list] == ["k1", "k2"]
