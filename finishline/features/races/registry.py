"""Race registry: resolves an informal race name or tag to a RaceConfig.

Lookup order (first hit wins):
1. exact tag (case-insensitive)
2. exact alias (case-insensitive)
3. alias contained in the name as whole words
4. keyword contained in the name; races flagged with
   ``keyword_requires_marathon`` also need "marathon" in the name

Within a step, races are tried in priority order (then file order), so the
result is deterministic. Tag/alias collisions between races are rejected
when the registry is built.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from finishline.config import settings

from .catalog import load_race_configs
from .errors import RegistryError, UnsupportedRace
from .models import RaceConfig

logger = logging.getLogger(__name__)

MARATHON_QUALIFIER = "marathon"

# Module-level singleton
_registry: Optional["RaceRegistry"] = None


def _key(value: str) -> str:
    return " ".join(value.split()).casefold()


class RaceRegistry:
    """Read-only table of race configs. Safe to share between tasks."""

    def __init__(
        self,
        configs: Iterable[RaceConfig],
        known_platforms: Iterable[str] | None = None,
    ):
        indexed = list(enumerate(configs))
        # explicit priority first, registration order breaks ties
        self._configs: tuple[RaceConfig, ...] = tuple(
            c for _, c in sorted(indexed, key=lambda ic: (ic[1].priority, ic[0]))
        )
        self._by_id: dict[str, RaceConfig] = {}
        self._by_tag: dict[str, RaceConfig] = {}
        self._by_alias: dict[str, RaceConfig] = {}
        self._alias_patterns: list[tuple[re.Pattern, RaceConfig]] = []

        platforms = set(known_platforms) if known_platforms is not None else None
        for config in self._configs:
            self._index(config, platforms)
        self._warn_keyword_overlaps()

    def _index(self, config: RaceConfig, platforms: set[str] | None) -> None:
        if config.id in self._by_id:
            raise RegistryError(f"Duplicate race id: {config.id}")
        if platforms is not None and config.platform not in platforms:
            raise RegistryError(
                f"{config.id}: no adapter for platform '{config.platform}'"
            )
        self._by_id[config.id] = config

        names = {("tag", _key(config.tag))}
        names.update(("alias", _key(a)) for a in config.aliases)
        for kind, name in names:
            table = self._by_tag if kind == "tag" else self._by_alias
            for other_table in (self._by_tag, self._by_alias):
                other = other_table.get(name)
                if other is not None and other is not config:
                    raise RegistryError(
                        f"Race name collision: '{name}' is used by "
                        f"{other.id} and {config.id}"
                    )
            table[name] = config

        for alias in config.aliases:
            pattern = re.compile(
                r"(?<!\w)" + re.escape(_key(alias)) + r"(?!\w)"
            )
            self._alias_patterns.append((pattern, config))

    def _warn_keyword_overlaps(self) -> None:
        owners: dict[str, RaceConfig] = {}
        for config in self._configs:
            for kw in config.keywords:
                first = owners.setdefault(kw, config)
                if first is not config:
                    logger.warning(
                        f"Keyword '{kw}' shared by {first.id} and {config.id}; "
                        f"{first.id} wins by priority"
                    )

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def find_race_config(
        self,
        name: str | None = None,
        tag: str | None = None,
    ) -> RaceConfig | None:
        """Resolve a race by tag and/or free-text name. None when nothing matches."""
        if tag and tag.strip():
            config = self._by_tag.get(_key(tag))
            if config:
                return config

        if not name or not name.strip():
            return None
        normalized = _key(name)

        config = self._by_tag.get(normalized) or self._by_alias.get(normalized)
        if config:
            return config

        for pattern, config in self._alias_patterns:
            if pattern.search(normalized):
                return config

        return self._find_by_keywords(normalized)

    def _find_by_keywords(self, normalized: str) -> RaceConfig | None:
        has_qualifier = MARATHON_QUALIFIER in normalized
        for config in self._configs:
            if not any(kw in normalized for kw in config.keywords):
                continue
            if config.keyword_requires_marathon and not has_qualifier:
                continue
            return config
        return None

    def require(self, name: str | None = None, tag: str | None = None) -> RaceConfig:
        """Like find_race_config, but raises UnsupportedRace instead of returning None."""
        config = self.find_race_config(name=name, tag=tag)
        if config is None:
            raise UnsupportedRace(f"No scraper for race {name or tag!r}")
        return config

    def has_race(self, name: str) -> bool:
        return self.find_race_config(name=name) is not None

    def get(self, race_id: str) -> RaceConfig | None:
        return self._by_id.get(race_id)

    def supported_races(self) -> list[str]:
        """Canonical names of all registered races, in priority order."""
        return [c.name for c in self._configs]

    @property
    def configs(self) -> tuple[RaceConfig, ...]:
        return self._configs

    def __len__(self) -> int:
        return len(self._configs)


def get_registry() -> RaceRegistry:
    """Get or create the registry built from ``settings.races_file``."""
    global _registry
    if _registry is None:
        from .platforms import PLATFORM_ADAPTERS

        configs = load_race_configs(settings.races_file)
        _registry = RaceRegistry(configs, known_platforms=PLATFORM_ADAPTERS.keys())
        logger.info(f"Race registry loaded: {len(_registry)} races")
    return _registry
