"""
Keyword tagger with fixed, category-grouped vocabularies.
"""

from typing import Optional

from news_aggregation.logger import get_logger

logger = get_logger(__name__)

# tag -> terms, per category; English and Portuguese spellings
DEFAULT_VOCABULARIES: dict[str, dict[str, tuple[str, ...]]] = {
    "regional": {
        "azores": ("açores", "azores"),
        "sao-miguel": ("são miguel", "sao miguel"),
        "ponta-delgada": ("ponta delgada",),
    },
    "practice": {
        "permaculture": ("permaculture", "permacultura"),
        "agroforestry": ("agroforestry", "agrofloresta"),
        "regeneration": ("regeneration", "regeneração"),
        "sustainability": ("sustainability", "sustentabilidade"),
    },
    "policy": {
        "climate": ("climate", "clima"),
        "environment": ("environment", "ambiente"),
        "policy": ("policy", "política"),
        "research": ("research", "investigação"),
        "innovation": ("innovation", "inovação"),
    },
}


class Tagger:
    """Assigns topic tags by case-insensitive substring matching.

    Categories are evaluated independently and their results unioned.
    """

    def __init__(self, vocabularies: Optional[dict[str, dict[str, tuple[str, ...]]]] = None):
        """Initialize tagger.

        Args:
            vocabularies: category -> tag -> terms (defaults to DEFAULT_VOCABULARIES)
        """
        source = DEFAULT_VOCABULARIES if vocabularies is None else vocabularies
        self.vocabularies = {
            category: {tag: tuple(term.lower() for term in terms) for tag, terms in tags.items()}
            for category, tags in source.items()
        }

    @property
    def categories(self) -> list[str]:
        return list(self.vocabularies)

    def tag(self, text: Optional[str]) -> set[str]:
        """Tags whose terms occur in text."""
        if not text:
            return set()

        haystack = text.lower()
        tags = set()
        for category_tags in self.vocabularies.values():
            for tag, terms in category_tags.items():
                if any(term in haystack for term in terms):
                    tags.add(tag)
        return tags

    def tag_texts(self, title: Optional[str], summary: Optional[str] = None) -> set[str]:
        """Tags for an item's title and summary together."""
        return self.tag(" ".join(part for part in (title, summary) if part))
