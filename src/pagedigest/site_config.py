"""Per-site extraction rules and domain gating.

Container selectors and exclusion rules come in two layers: global lists
applied everywhere and per-domain additions keyed by exact hostname. Domain
gating decides whether digests run on a host at all: in ``allow`` mode only
hosts matching the allowlist are enabled, in ``deny`` mode every host is
enabled except denylist matches.

Everything is persisted as JSON through the storage capability, one key per
list. Missing or malformed values fall back to the defaults below.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import structlog

from pagedigest.models.extraction import ExclusionRules
from pagedigest.patterns import list_matches_host, pattern_matches_host
from pagedigest.storage import (
    DOMAIN_EXCLUDES_KEY,
    DOMAIN_SELECTORS_KEY,
    DOMAINS_ALLOW_KEY,
    DOMAINS_DENY_KEY,
    DOMAINS_MODE_KEY,
    EXCLUDES_GLOBAL_KEY,
    SELECTORS_GLOBAL_KEY,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pagedigest.protocols import StorageProtocol

log = structlog.get_logger()

DomainMode = Literal["allow", "deny"]

# Article container selectors, most specific first.
DEFAULT_SELECTORS: tuple[str, ...] = (
    '[itemprop="articleBody"]',
    'article[itemtype*="Article"]',
    ".article-body",
    ".post-content",
    ".entry-content",
    '[class*="article-content"]',
    ':is(div, section, article)[class*="post-body"]',
    '[class*="articleContainer"] .cnt',
    '[class*="articleContainer"]',
    ".story-content",
    ".story-body",
    "article",
    "main",
    '[role="main"]',
)

DEFAULT_EXCLUDES = ExclusionRules(
    ancestors=[
        ".comment", ".comments", ".sidebar", ".navigation", ".menu",
        ".footer", ".header", "nav", "aside", ".related", ".recommended",
        ".advertisement", ".ad", ".social-share", ".author-bio",
    ],
)


def _dedupe(*lists: Iterable[str]) -> list[str]:
    """Concatenate lists, keeping the first occurrence of each item."""
    return list(dict.fromkeys(item for items in lists for item in items))


def _load_json(raw: str, key: str) -> object:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        log.warning("site_config_unreadable", key=key)
        return None


def _str_list(value: object) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [s.strip() for s in value if isinstance(s, str) and s.strip()]


@dataclass
class SiteConfig:
    selectors_global: list[str] = field(default_factory=lambda: list(DEFAULT_SELECTORS))
    excludes_global: ExclusionRules = field(
        default_factory=lambda: DEFAULT_EXCLUDES.model_copy(deep=True)
    )
    domain_selectors: dict[str, list[str]] = field(default_factory=dict)
    domain_excludes: dict[str, ExclusionRules] = field(default_factory=dict)
    domains_mode: DomainMode = "deny"
    domains_allow: list[str] = field(default_factory=list)
    domains_deny: list[str] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def rules_for(self, host: str) -> tuple[list[str], ExclusionRules]:
        """Global rules merged with the additions for ``host``."""
        domain_excludes = self.domain_excludes.get(host) or ExclusionRules()
        selectors = _dedupe(self.selectors_global, self.domain_selectors.get(host, []))
        rules = ExclusionRules(
            self_=_dedupe(self.excludes_global.self_, domain_excludes.self_),
            ancestors=_dedupe(self.excludes_global.ancestors, domain_excludes.ancestors),
        )
        return selectors, rules

    # ------------------------------------------------------------------
    # Domain gating
    # ------------------------------------------------------------------

    def is_enabled(self, host: str) -> bool:
        if self.domains_mode == "allow":
            return list_matches_host(self.domains_allow, host)
        return not list_matches_host(self.domains_deny, host)

    def toggle_host(self, host: str) -> bool:
        """Flip whether digests run on ``host``. Returns the new state.

        Disabling removes every pattern that matches the host, so a glob
        covering several hosts is dropped as a whole.
        """
        if self.domains_mode == "allow":
            if list_matches_host(self.domains_allow, host):
                self.domains_allow = [
                    p for p in self.domains_allow if not pattern_matches_host(p, host)
                ]
            else:
                self.domains_allow.append(host)
        elif self.is_enabled(host):
            if host not in self.domains_deny:
                self.domains_deny.append(host)
        else:
            self.domains_deny = [p for p in self.domains_deny if not pattern_matches_host(p, host)]
        return self.is_enabled(host)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


async def load_site_config(storage: StorageProtocol) -> SiteConfig:
    config = SiteConfig()

    selectors = _str_list(_load_json(await storage.get(SELECTORS_GLOBAL_KEY), SELECTORS_GLOBAL_KEY))
    if selectors:
        config.selectors_global = selectors

    excludes = _load_json(await storage.get(EXCLUDES_GLOBAL_KEY), EXCLUDES_GLOBAL_KEY)
    if isinstance(excludes, dict):
        config.excludes_global = ExclusionRules.from_json_obj(excludes)

    domain_selectors = _load_json(await storage.get(DOMAIN_SELECTORS_KEY), DOMAIN_SELECTORS_KEY)
    if isinstance(domain_selectors, dict):
        config.domain_selectors = {
            host: items
            for host, value in domain_selectors.items()
            if (items := _str_list(value)) is not None
        }

    domain_excludes = _load_json(await storage.get(DOMAIN_EXCLUDES_KEY), DOMAIN_EXCLUDES_KEY)
    if isinstance(domain_excludes, dict):
        config.domain_excludes = {
            host: ExclusionRules.from_json_obj(value) for host, value in domain_excludes.items()
        }

    mode = await storage.get(DOMAINS_MODE_KEY, "deny")
    config.domains_mode = "allow" if mode == "allow" else "deny"
    config.domains_allow = (
        _str_list(_load_json(await storage.get(DOMAINS_ALLOW_KEY), DOMAINS_ALLOW_KEY)) or []
    )
    config.domains_deny = (
        _str_list(_load_json(await storage.get(DOMAINS_DENY_KEY), DOMAINS_DENY_KEY)) or []
    )

    log.debug(
        "site_config_loaded",
        selectors=len(config.selectors_global),
        domains_with_rules=len(config.domain_selectors) + len(config.domain_excludes),
        domains_mode=config.domains_mode,
    )
    return config


async def save_site_config(storage: StorageProtocol, config: SiteConfig) -> None:
    await storage.set(SELECTORS_GLOBAL_KEY, json.dumps(config.selectors_global))
    await storage.set(EXCLUDES_GLOBAL_KEY, json.dumps(config.excludes_global.to_json_obj()))
    await storage.set(DOMAIN_SELECTORS_KEY, json.dumps(config.domain_selectors))
    await storage.set(
        DOMAIN_EXCLUDES_KEY,
        json.dumps({host: rules.to_json_obj() for host, rules in config.domain_excludes.items()}),
    )
    await storage.set(DOMAINS_MODE_KEY, config.domains_mode)
    await storage.set(DOMAINS_ALLOW_KEY, json.dumps(config.domains_allow))
    await storage.set(DOMAINS_DENY_KEY, json.dumps(config.domains_deny))
