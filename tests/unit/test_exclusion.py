"""Unit tests for pagedigest.exclusion."""

from __future__ import annotations

from pagedigest.dom import SoupDocument
from pagedigest.exclusion import find_matching_exclusions, find_matching_selectors, is_excluded
from pagedigest.models.extraction import ExclusionRules

_HTML = """
<html><body>
  <div class="sidebar">
    <section class="widget"><p id="in-sidebar">Related links</p></section>
  </div>
  <article class="story"><p id="in-article" class="lead">Story text</p></article>
</body></html>
"""


def _node(doc: SoupDocument, selector: str):
    return doc.query_first(doc.root, selector)


class TestIsExcluded:
    def test_missing_node_is_excluded(self) -> None:
        doc = SoupDocument.from_html(_HTML)
        assert is_excluded(doc, None, ExclusionRules())

    def test_no_rules_excludes_nothing(self) -> None:
        doc = SoupDocument.from_html(_HTML)
        assert not is_excluded(doc, _node(doc, "#in-article"), ExclusionRules())

    def test_self_selector(self) -> None:
        doc = SoupDocument.from_html(_HTML)
        rules = ExclusionRules(self_=[".lead"])
        assert is_excluded(doc, _node(doc, "#in-article"), rules)
        assert not is_excluded(doc, _node(doc, "#in-sidebar"), rules)

    def test_ancestor_selector(self) -> None:
        doc = SoupDocument.from_html(_HTML)
        rules = ExclusionRules(ancestors=[".sidebar"])
        assert is_excluded(doc, _node(doc, "#in-sidebar"), rules)
        assert not is_excluded(doc, _node(doc, "#in-article"), rules)

    def test_ancestor_selector_matches_node_itself(self) -> None:
        doc = SoupDocument.from_html(_HTML)
        rules = ExclusionRules(ancestors=[".sidebar"])
        assert is_excluded(doc, _node(doc, ".sidebar"), rules)

    def test_invalid_selector_disables_only_itself(self) -> None:
        doc = SoupDocument.from_html(_HTML)
        rules = ExclusionRules(self_=["p["], ancestors=[":::", ".widget"])
        assert is_excluded(doc, _node(doc, "#in-sidebar"), rules)
        assert not is_excluded(doc, _node(doc, "#in-article"), rules)


class TestRuleLoading:
    def test_from_json_obj_tolerates_junk(self) -> None:
        rules = ExclusionRules.from_json_obj({"self": [".a", 3, ""], "ancestors": "nav"})
        assert rules.self_ == [".a"]
        assert rules.ancestors == []

    def test_from_json_obj_non_dict(self) -> None:
        assert ExclusionRules.from_json_obj(["nav"]) == ExclusionRules()

    def test_to_json_obj_uses_self_key(self) -> None:
        rules = ExclusionRules(self_=[".a"], ancestors=["nav"])
        assert rules.to_json_obj() == {"self": [".a"], "ancestors": ["nav"]}

    def test_alias_accepted_on_input(self) -> None:
        assert ExclusionRules.model_validate({"self": [".x"]}).self_ == [".x"]


class TestDiagnostics:
    def test_find_matching_selectors(self) -> None:
        doc = SoupDocument.from_html(_HTML)
        article = _node(doc, "article")
        assert find_matching_selectors(doc, article, ["main", "article", ".story", "x["]) == [
            "article",
            ".story",
        ]

    def test_find_matching_exclusions(self) -> None:
        doc = SoupDocument.from_html(_HTML)
        node = _node(doc, "#in-sidebar")
        rules = ExclusionRules(self_=["p", ".lead"], ancestors=[".sidebar", "nav", ".widget"])
        assert find_matching_exclusions(doc, node, rules) == {
            "self": ["p"],
            "ancestors": [".sidebar", ".widget"],
        }
