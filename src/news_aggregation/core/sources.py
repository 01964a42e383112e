"""
Source registry: built-in source categories and YAML overrides.
"""

from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from news_aggregation.config import Config, get_config
from news_aggregation.logger import get_logger
from news_aggregation.models import ExtractionRule, SourceCategory, SourceDescriptor, SourceKind

logger = get_logger(__name__)

_LINK = r'<a[^>]*href="([^"]*)"[^>]*>'
_TIME = r"<time[^>]*>([^<]+)</time>"

GOVERNMENT_RULE = ExtractionRule(
    container=r'<div class="news-item">([\s\S]*?)</div>',
    title=r"<h3[^>]*>([^<]+)</h3>",
    link=_LINK,
    date=_TIME,
    summary=r"<p[^>]*>([^<]+)</p>",
)

GAZETTE_RULE = ExtractionRule(
    container=r'<div class="dre-item">([\s\S]*?)</div>',
    title=r"<h4[^>]*>([^<]+)</h4>",
    link=_LINK,
    date=r'<span class="date">([^<]+)</span>',
    summary=r'<div class="summary">([^<]+)</div>',
)

INNOVATION_RULE = ExtractionRule(
    container=r"<article[^>]*>([\s\S]*?)</article>",
    title=r"<h2[^>]*>([^<]+)</h2>",
    link=_LINK,
    date=_TIME,
    summary=r'<div class="excerpt">([^<]+)</div>',
)

GEOPARK_RULE = ExtractionRule(
    container=r'<div class="news-post">([\s\S]*?)</div>',
    title=r"<h3[^>]*>([^<]+)</h3>",
    link=_LINK,
    date=r'<span class="post-date">([^<]+)</span>',
    summary=r'<div class="post-excerpt">([^<]+)</div>',
)

UNIVERSITY_RULE = ExtractionRule(
    container=r'<div class="news-item">([\s\S]*?)</div>',
    title=r"<h4[^>]*>([^<]+)</h4>",
    link=_LINK,
    date=_TIME,
    summary=r"<p[^>]*>([^<]+)</p>",
)

DEFAULT_CATEGORIES: tuple[SourceCategory, ...] = (
    SourceCategory(
        name="Azores · Policy & Regional",
        sources=(
            SourceDescriptor(
                label="Governo dos Açores",
                base_url="https://www.azores.gov.pt/pt",
                kind=SourceKind.SCRAPE,
                extraction=GOVERNMENT_RULE,
            ),
            SourceDescriptor(
                label="Diário da República",
                base_url="https://dre.pt/web/guest/home",
                kind=SourceKind.SCRAPE,
                extraction=GAZETTE_RULE,
            ),
            SourceDescriptor(
                label="INOVA (Inovação Açores)",
                base_url="https://inova.azores.gov.pt",
                kind=SourceKind.SCRAPE,
                extraction=INNOVATION_RULE,
            ),
        ),
    ),
    SourceCategory(
        name="São Miguel · Environment & Research",
        sources=(
            SourceDescriptor(
                label="Azores Geopark",
                base_url="https://azoresgeopark.com",
                kind=SourceKind.SCRAPE,
                extraction=GEOPARK_RULE,
            ),
            SourceDescriptor(
                label="Universidade dos Açores",
                base_url="https://www.uac.pt",
                kind=SourceKind.SCRAPE,
                extraction=UNIVERSITY_RULE,
            ),
        ),
    ),
    SourceCategory(
        name="Permaculture & Regeneration",
        sources=(
            SourceDescriptor(
                label="FAO Agroecology",
                base_url="https://www.fao.org/agroecology/en/",
                kind=SourceKind.FEED,
            ),
            SourceDescriptor(
                label="EU Environment",
                base_url="https://environment.ec.europa.eu/news_en?format=rss",
                kind=SourceKind.FEED,
            ),
        ),
    ),
)


def load_sources_from_yaml(yaml_path: str) -> tuple[SourceCategory, ...]:
    """Load source categories from a YAML file.

    The file holds a ``categories`` list; each category has a ``name`` and a
    ``sources`` list of descriptors (``label``, ``url``, ``type`` and, for
    scraped sources, ``extraction``).

    Args:
        yaml_path: Path to the YAML file

    Returns:
        Tuple of SourceCategory in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file does not describe valid categories
    """
    import yaml

    path = Path(yaml_path)
    if not path.exists():
        raise FileNotFoundError(f"Sources file not found: {yaml_path}")

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict) or not isinstance(data.get("categories"), list):
        raise ValueError(f"Sources file {yaml_path} must contain a 'categories' list")

    try:
        categories = tuple(SourceCategory.model_validate(entry) for entry in data["categories"])
    except ValidationError as e:
        raise ValueError(f"Invalid sources file {yaml_path}: {e}") from e

    logger.info(
        f"Loaded {sum(len(c.sources) for c in categories)} sources "
        f"in {len(categories)} categories from {yaml_path}"
    )
    return categories


def get_source_categories(config: Optional[Config] = None) -> tuple[SourceCategory, ...]:
    """Configured source categories, or the built-in ones."""
    config = config or get_config()
    if config.pipeline.sources_file:
        return load_sources_from_yaml(config.pipeline.sources_file)
    return DEFAULT_CATEGORIES


def find_source(
    label: str, categories: Optional[tuple[SourceCategory, ...]] = None
) -> Optional[SourceDescriptor]:
    """Find a source by label (case-insensitive)."""
    wanted = label.strip().lower()
    for category in categories or DEFAULT_CATEGORIES:
        for descriptor in category.sources:
            if descriptor.label.lower() == wanted:
                return descriptor
    return None
