"""Daily article generation via the OpenAI chat API, with a built-in fallback."""

import json

import structlog
from openai import AsyncOpenAI

from lifeup.models.article import FetchedArticle, VocabularyItem

logger = structlog.get_logger()

FALLBACK_ARTICLE = FetchedArticle(
    title="The Power of Habits",
    content=(
        "Small habits can make a big difference. When you do something every day, "
        "it becomes part of who you are. Start with one small change and stick to it."
    ),
    difficulty="Intermediate",
    vocabulary=[
        VocabularyItem(word="Habit", definition="习惯，通常定期重复的行为。"),
        VocabularyItem(word="Difference", definition="差异，不同之处。"),
        VocabularyItem(word="Stick", definition="坚持，继续做某事。"),
    ],
)

ARTICLE_SYSTEM_PROMPT = """\
You write short, inspiring English reading passages for language learners.

Respond ONLY with a JSON object:
{
    "title": "<title>",
    "content": "<the article, 80-100 words>",
    "difficulty": "Beginner" | "Intermediate" | "Advanced",
    "vocabulary": [{"word": "<word>", "definition": "<definition>"}]
}
"""


class ArticleFetcher:
    """Generates a study article for a topic.

    Any failure (no API key, network error, malformed reply) yields
    ``FALLBACK_ARTICLE`` so the library view is never left empty.

    Args:
        api_key: OpenAI API key, or None to always use the fallback.
        model: Chat model to use.
        definition_language: Language for vocabulary definitions.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini",
        definition_language: str = "Simplified Chinese",
    ):
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        self.model = model
        self.definition_language = definition_language

    async def fetch(self, topic: str = "general") -> FetchedArticle:
        if self.client is None:
            logger.info("article_fetch_skipped", reason="no_api_key")
            return FALLBACK_ARTICLE

        prompt = (
            "Generate a short, inspiring English learning article (about 80-100 words) "
            f"suitable for an intermediate learner. The topic should be related to: {topic}. "
            f"Also provide 3 key vocabulary words with definitions in {self.definition_language}."
        )
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": ARTICLE_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.8,
                response_format={"type": "json_object"},
            )
            content = response.choices[0].message.content
            if not content:
                raise ValueError("empty response")
            article = FetchedArticle.model_validate(json.loads(content))
            logger.info("article_fetched", topic=topic, title=article.title)
            return article

        except Exception:
            logger.exception("article_fetch_failed", topic=topic)
            return FALLBACK_ARTICLE
