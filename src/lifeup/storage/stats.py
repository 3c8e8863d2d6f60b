"""UserStats and last-view persistence."""

from pydantic import TypeAdapter

from lifeup.models.stats import UserStats, View
from lifeup.storage.store import Collection, JsonStore

_stats_adapter = TypeAdapter(UserStats)
_view_adapter = TypeAdapter(View)


def load_stats(store: JsonStore) -> UserStats:
    return store.load(Collection.STATS, _stats_adapter, UserStats, UserStats.to_document)


def save_stats(store: JsonStore, stats: UserStats) -> None:
    store.write(Collection.STATS, stats.to_document())


def rename_user(store: JsonStore, name: str) -> UserStats:
    stats = load_stats(store).renamed(name)
    save_stats(store, stats)
    return stats


def load_view(store: JsonStore) -> View:
    return store.load(Collection.VIEW, _view_adapter, lambda: View.HABITS, str)


def save_view(store: JsonStore, view: View) -> None:
    store.write(Collection.VIEW, str(view))
