"""
Category configuration and weighted channel selection.

A category maps to an ordered list that alternates channel names with an
optional numeric weight, e.g. ``["forest", 1, "desert", 0.25]``.

Weights follow an inverted convention:

- integer weight ``w``: the channel gets one draw among ``w`` slots, so it
  is selected with probability ``1/w``; heavier means *rarer*
- fractional weight ``1/k``: the channel is replicated ``k`` times, so it
  shows up *more* often
- no weight: the channel passes through unchanged
"""

import json
import os
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import structlog

from mediafeed.exceptions import CategoryConfigError, InvalidCategory

logger = structlog.get_logger(__name__)

META_CATEGORY = "All"

# Reserved configuration keys
META_MEMBERS_KEY = "_AllCategories"
CLIP_EXCLUDED_KEY = "_NoClips"

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "data" / "categories.json"

Weight = Union[int, float]


@dataclass(frozen=True)
class ChannelWeight:
    """One configured channel with its optional weight."""

    channel: str
    weight: Optional[Weight] = None


@dataclass(frozen=True)
class CategorySpec:
    """
    Parsed category configuration.

    Attributes:
        categories: Category name -> ordered channel entries
        meta_members: Categories unioned by the "All" meta-category
        clip_excluded: Categories whose posts must never go through the clip API
    """

    categories: Dict[str, List[ChannelWeight]] = field(default_factory=dict)
    meta_members: List[str] = field(default_factory=list)
    clip_excluded: frozenset = frozenset()

    def allows_clips(self, category: str) -> bool:
        return category not in self.clip_excluded

    def has_category(self, category: str) -> bool:
        return category == META_CATEGORY or category in self.categories


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_entries(category: str, entries: Any) -> List[ChannelWeight]:
    if not isinstance(entries, list):
        raise CategoryConfigError(f"Category '{category}' must map to a list")

    parsed: List[ChannelWeight] = []
    for entry in entries:
        if isinstance(entry, str):
            parsed.append(ChannelWeight(entry))
        elif _is_number(entry):
            if not parsed or parsed[-1].weight is not None:
                raise CategoryConfigError(
                    f"Category '{category}': weight {entry} does not follow a channel"
                )
            parsed[-1] = ChannelWeight(parsed[-1].channel, entry)
        else:
            raise CategoryConfigError(
                f"Category '{category}': unsupported entry {entry!r}"
            )

    return parsed


def _string_list(key: str, value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise CategoryConfigError(f"'{key}' must be a list of category names")
    return list(value)


def parse_category_spec(raw: Any) -> CategorySpec:
    """
    Parse the raw configuration mapping.

    Keys starting with an underscore are reserved and never exposed as
    categories.

    Raises:
        CategoryConfigError: If the structure is malformed
    """
    if not isinstance(raw, dict):
        raise CategoryConfigError("Category configuration must be a JSON object")

    categories = {
        name: _parse_entries(name, entries)
        for name, entries in raw.items()
        if not name.startswith("_")
    }

    return CategorySpec(
        categories=categories,
        meta_members=_string_list(META_MEMBERS_KEY, raw.get(META_MEMBERS_KEY)),
        clip_excluded=frozenset(_string_list(CLIP_EXCLUDED_KEY, raw.get(CLIP_EXCLUDED_KEY))),
    )


def load_category_spec(path: Union[str, Path, None] = None) -> CategorySpec:
    """
    Load the category configuration from a JSON file.

    Args:
        path: Config file (default: MEDIAFEED_CATEGORIES or the bundled file)

    Raises:
        CategoryConfigError: If the file is unreadable or malformed
    """
    config_path = Path(path or os.getenv("MEDIAFEED_CATEGORIES") or DEFAULT_CONFIG_PATH)

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error("category_config_unreadable", path=str(config_path), error=str(e))
        raise CategoryConfigError(f"Cannot read category config {config_path}: {e}") from e

    spec = parse_category_spec(raw)

    logger.info(
        "category_config_loaded",
        path=str(config_path),
        categories=len(spec.categories),
        meta_members=len(spec.meta_members),
    )

    return spec


def category_names(spec: CategorySpec) -> List[str]:
    """Configured category names, led by the meta-category."""
    return [META_CATEGORY, *spec.categories.keys()]


def expand_weighted(
    entries: Iterable[ChannelWeight], rng: Optional[random.Random] = None
) -> List[str]:
    """
    Expand weighted entries into a shuffled candidate list.

    The result is a multiset: fractional weights replicate channels.

    Example:
        >>> sorted(expand_weighted([ChannelWeight("forest", 1), ChannelWeight("desert", 0.25)]))
        ['desert', 'desert', 'desert', 'desert', 'forest']
    """
    rng = rng or random.Random()
    candidates: List[str] = []

    for entry in entries:
        weight = entry.weight

        if weight is None:
            candidates.append(entry.channel)
        elif weight >= 1 and float(weight).is_integer():
            # One live slot among `weight` slots
            slots = [None] * (int(weight) - 1) + [entry.channel]
            picked = rng.choice(slots)
            if picked is not None:
                candidates.append(picked)
        elif 0 < weight < 1:
            candidates.extend([entry.channel] * max(1, round(1 / weight)))
        else:
            logger.warning(
                "channel_weight_ignored",
                channel=entry.channel,
                weight=weight,
            )
            candidates.append(entry.channel)

    rng.shuffle(candidates)
    return candidates


def select_channels(
    spec: CategorySpec, category: str, rng: Optional[random.Random] = None
) -> List[str]:
    """
    Produce the randomized, weight-expanded channel ordering for a category.

    For the meta-category the selection runs independently per member
    category and the results are concatenated in member order.

    Raises:
        InvalidCategory: If the category is not configured
    """
    rng = rng or random.Random()

    if category == META_CATEGORY:
        if not spec.meta_members:
            raise InvalidCategory(category)

        channels: List[str] = []
        for member in spec.meta_members:
            if member not in spec.categories:
                logger.warning("meta_member_missing", category=member)
                continue
            channels.extend(expand_weighted(spec.categories[member], rng))
        return channels

    if category not in spec.categories:
        raise InvalidCategory(category)

    return expand_weighted(spec.categories[category], rng)


def unique_channels(channels: Iterable[str]) -> List[str]:
    """Drop repeated channel names, keeping first-seen order."""
    return list(dict.fromkeys(channels))


class ChannelPool:
    """
    Shrinking pool of candidate channels.

    Used when a caller keeps pulling channels until it has enough items:
    every draw removes channels from the pool, so the search ends once
    the pool is empty instead of recursing.

    Example:
        >>> pool = ChannelPool(["pics", "EarthPorn", "pics"])
        >>> len(pool)
        2
        >>> batch = pool.draw(3)
        >>> pool.exhausted
        True
    """

    def __init__(self, channels: Iterable[str], rng: Optional[random.Random] = None) -> None:
        self.remaining = unique_channels(channels)
        self.rng = rng or random.Random()

    def draw(self, count: int = 1) -> List[str]:
        """Remove and return up to ``count`` random channels."""
        drawn: List[str] = []
        while self.remaining and len(drawn) < count:
            drawn.append(self.remaining.pop(self.rng.randrange(len(self.remaining))))
        return drawn

    @property
    def exhausted(self) -> bool:
        return not self.remaining

    def __len__(self) -> int:
        return len(self.remaining)
