import google.generativeai as genai
import os
import logging
import json
from typing import List, Optional

from curator.errors import CollaboratorError
from curator.interfaces import ReportGenerator, ScoringOracle
from curator.models import Article, Assessment

logger = logging.getLogger(__name__)

FALLBACK_MODELS = [
    "gemini-2.5-flash",
    "gemini-2.5-flash-lite",
    "gemini-2.0-flash",
    "gemini-2.0-flash-lite",
]

OTHER_CATEGORY = "Other"


def load_api_keys() -> List[str]:
    """GEMINI_API_KEY, then GEMINI_API_KEY_2 .. GEMINI_API_KEY_9."""
    keys = []
    for i in range(1, 10):
        key_name = "GEMINI_API_KEY" if i == 1 else f"GEMINI_API_KEY_{i}"
        api_key = os.getenv(key_name)
        if api_key:
            keys.append(api_key)
            logger.info(f"Loaded {key_name}")
    return keys


def parse_json_reply(text: str) -> dict:
    return json.loads(text.strip().replace('```json', '').replace('```', ''))


class GeminiClient:
    """
    Shared Gemini access: walks the model list on a key, and rotates to the
    next API key once every model is rate limited.
    """

    def __init__(self, api_keys: Optional[List[str]] = None, models: Optional[List[str]] = None):
        self.api_keys = api_keys if api_keys is not None else load_api_keys()
        self.models = models or list(FALLBACK_MODELS)
        self.current_key_index = 0
        if not self.api_keys:
            logger.warning("No GEMINI_API_KEY found. AI calls will fail until one is set.")
        else:
            logger.info(f"Loaded {len(self.api_keys)} API key(s)")

    def _use_key(self, index: int):
        self.current_key_index = index
        genai.configure(api_key=self.api_keys[index])

    async def complete(self, prompt: str, json_mode: bool = False) -> str:
        if not self.api_keys:
            raise CollaboratorError("No Gemini API key configured")

        generation_config = {"response_mime_type": "application/json"} if json_mode else None
        last_error = None
        for key_index in range(len(self.api_keys)):
            self._use_key(key_index)
            for model_name in self.models:
                try:
                    model = genai.GenerativeModel(model_name)
                    response = await model.generate_content_async(prompt, generation_config=generation_config)
                    text = response.text
                    if not text:
                        logger.warning(f"Model {model_name} returned empty response, trying next...")
                        continue
                    return text
                except Exception as e:
                    last_error = e
                    error_msg = str(e).lower()
                    if '404' in error_msg or 'not found' in error_msg:
                        logger.warning(f"Model {model_name} not found (404), skipping to next model...")
                    elif '429' in error_msg or 'quota' in error_msg:
                        logger.warning(f"Model {model_name} rate limited on key #{key_index + 1}, trying next...")
                    else:
                        logger.warning(f"Model {model_name} failed: {str(e)[:100]}")
            if len(self.api_keys) > 1 and key_index < len(self.api_keys) - 1:
                logger.warning(f"All {len(self.models)} models exhausted on key #{key_index + 1}, rotating to next key...")

        raise CollaboratorError(f"All Gemini keys and models exhausted: {last_error}")


class GeminiScorer(GeminiClient, ScoringOracle):
    async def score(self, article: Article, categories: List[str]) -> Assessment:
        prompt = f"""Analyze the following article for a curated AI news digest.
1. Assign a relevance score from 1 to 5 (5 being highly relevant/quality, 1 being spam/irrelevant).
2. Categorize it into one of the following categories: {', '.join(categories)}. If none fit, use "{OTHER_CATEGORY}".
3. Provide a brief reasoning.

Output JSON: {{"score": int, "category": "string", "reasoning": "short string"}}

Title: {article.title}
Source: {article.source}
Content: {article.content[:1000]}
"""
        text = await self.complete(prompt, json_mode=True)
        try:
            data = parse_json_reply(text)
            score = int(round(float(data["score"])))
        except (ValueError, KeyError, TypeError) as e:
            raise CollaboratorError(f"Unreadable scoring reply: {e}") from e

        category = data.get("category") or OTHER_CATEGORY
        if category not in categories:
            category = OTHER_CATEGORY
        return Assessment(
            score=min(5, max(1, score)),
            category=category,
            reasoning=data.get("reasoning") or "No reasoning provided",
        )


class GeminiReportGenerator(GeminiClient, ReportGenerator):
    async def generate(self, articles: List[Article], prompt_template: str) -> str:
        context = "\n\n----------------\n\n".join(
            f"[{i}] Title: {a.title}\n"
            f"URL: {a.url}\n"
            f"Category: {a.category}\n"
            f"Content: {a.content[:2000]}"
            for i, a in enumerate(articles, 1)
        )
        prompt = f"{prompt_template}\n\nHere are the source articles to include:\n\n{context}"
        markdown = await self.complete(prompt)
        return markdown.strip()
