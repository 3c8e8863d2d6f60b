"""Article library: study texts with per-day recitation credit."""

import re
from datetime import date

import structlog
from pydantic import TypeAdapter

from lifeup.confirmation import ConfirmationGate, PendingAction
from lifeup.errors import NotFound, ValidationRejected
from lifeup.models.base import CamelModel
from lifeup.models.article import CUSTOM_DIFFICULTY, DEFAULT_TITLE, EnglishArticle, FetchedArticle
from lifeup.models.stats import UserStats
from lifeup.progression.engine import RewardOutcome, recite_article
from lifeup.storage.store import Collection, JsonStore

logger = structlog.get_logger()

_library_adapter = TypeAdapter(list[EnglishArticle])

_SPLIT_RE = re.compile(r"(\s+)")
_PUNCTUATION_RE = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")


class Token(CamelModel):
    """One whitespace-delimited piece of an article.

    ``lookup`` is the text with punctuation removed, which is what gets read
    aloud when a single word is tapped. Whitespace runs are kept so the shell
    can render the text exactly.
    """

    index: int
    text: str
    lookup: str
    is_word: bool


def tokenize(content: str) -> list[Token]:
    tokens = []
    for part in _SPLIT_RE.split(content):
        if not part:
            continue
        lookup = "" if part.isspace() else _PUNCTUATION_RE.sub("", part)
        tokens.append(Token(index=len(tokens), text=part, lookup=lookup, is_word=bool(lookup)))
    return tokens


class RecitationResult(CamelModel):
    article: EnglishArticle
    outcome: RewardOutcome


class ArticleLibrary:
    """Owns the ``english_library`` collection.

    Args:
        store: Persistent store.
    """

    def __init__(self, store: JsonStore):
        self.store = store

    def articles(self) -> list[EnglishArticle]:
        return self.store.load(
            Collection.ENGLISH_LIBRARY,
            _library_adapter,
            list,
            lambda articles: [a.to_document() for a in articles],
        )

    def _save(self, articles: list[EnglishArticle]) -> None:
        self.store.write(Collection.ENGLISH_LIBRARY, [a.to_document() for a in articles])

    def _prepend(self, article: EnglishArticle) -> EnglishArticle:
        self._save([article, *self.articles()])
        logger.info("article_added", article_id=article.id, title=article.title)
        return article

    def get(self, article_id: str) -> EnglishArticle:
        for article in self.articles():
            if article.id == article_id:
                return article
        raise NotFound(f"Article {article_id} not found.")

    def add_article(self, title: str, content: str) -> EnglishArticle:
        """Import a pasted or typed article."""
        if not content.strip():
            raise ValidationRejected("Paste or type the article text first.")
        return self._prepend(
            EnglishArticle(
                title=title.strip() or DEFAULT_TITLE,
                content=content,
                difficulty=CUSTOM_DIFFICULTY,
            )
        )

    def add_fetched(self, fetched: FetchedArticle) -> EnglishArticle:
        return self._prepend(
            EnglishArticle(
                title=fetched.title.strip() or DEFAULT_TITLE,
                content=fetched.content,
                difficulty=fetched.difficulty,
                vocabulary=fetched.vocabulary,
            )
        )

    def recite(self, article_id: str, stats: UserStats, today: date | None = None) -> RecitationResult:
        """Credit a recitation, at most once per article per calendar day."""
        today = today or date.today()
        articles = self.articles()
        for i, article in enumerate(articles):
            if article.id == article_id:
                break
        else:
            raise NotFound(f"Article {article_id} not found.")

        if article.completed_on(today):
            return RecitationResult(article=article, outcome=RewardOutcome(stats=stats, rewarded=False))

        updated = article.model_copy(
            update={
                "last_completed_date": today,
                "completion_count": article.completion_count + 1,
            }
        )
        articles[i] = updated
        self._save(articles)
        logger.info("article_recited", article_id=article_id, completion_count=updated.completion_count)
        return RecitationResult(article=updated, outcome=recite_article(stats))

    def tokens(self, article_id: str) -> list[Token]:
        return tokenize(self.get(article_id).content)

    def request_deletion(self, article_id: str, gate: ConfirmationGate) -> PendingAction:
        article = self.get(article_id)
        return gate.request(
            "article",
            article_id,
            f'Delete "{article.title}"?',
            lambda: self.delete_article(article_id),
        )

    def delete_article(self, article_id: str) -> None:
        articles = self.articles()
        remaining = [a for a in articles if a.id != article_id]
        if len(remaining) == len(articles):
            raise NotFound(f"Article {article_id} not found.")
        self._save(remaining)
        logger.info("article_deleted", article_id=article_id)
