"""Self/ancestor exclusion rules.

A node is excluded when it matches any ``self`` selector or sits inside an
element matching any ``ancestors`` selector. Selectors that fail to evaluate
count as "no match" for that selector only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pagedigest.dom import MatchOutcome, safe_closest, safe_matches

if TYPE_CHECKING:
    from collections.abc import Iterable

    from bs4 import Tag

    from pagedigest.models.extraction import ExclusionRules
    from pagedigest.protocols import StructuralQueryProtocol


def is_excluded(doc: StructuralQueryProtocol, node: Tag | None, rules: ExclusionRules) -> bool:
    if node is None:
        return True

    # Direct matches are cheaper than walking the ancestor chain, so go first.
    for selector in rules.self_:
        if safe_matches(doc, node, selector) is MatchOutcome.MATCHED:
            return True

    for selector in rules.ancestors:
        if safe_closest(doc, node, selector) is MatchOutcome.MATCHED:
            return True

    return False


def find_matching_selectors(
    doc: StructuralQueryProtocol, node: Tag, selectors: Iterable[str]
) -> list[str]:
    """Selectors from ``selectors`` that match ``node`` itself."""
    return [s for s in selectors if safe_matches(doc, node, s) is MatchOutcome.MATCHED]


def find_matching_exclusions(
    doc: StructuralQueryProtocol, node: Tag, rules: ExclusionRules
) -> dict[str, list[str]]:
    """Report which exclusion selectors apply to ``node``, split by kind."""
    return {
        "self": find_matching_selectors(doc, node, rules.self_),
        "ancestors": [
            s for s in rules.ancestors if safe_closest(doc, node, s) is MatchOutcome.MATCHED
        ],
    }
