"""
PopGloss Document Highlighter
Wraps glossary terms of an HTML document in clickable spans with definition panels
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional
import logging

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from .config import HighlightConfig
from .glossary import GlossaryIndex, ScanSession

logger = logging.getLogger(__name__)


@dataclass
class LinkedTerm:
    """A term wrapped in the document, addressed by its data-gloss-index"""
    index: int
    term: str
    definition: Any

    def to_dict(self) -> dict:
        return {"index": self.index, "term": self.term, "definition": self.definition}


@dataclass
class HighlightResult:
    """Highlighted markup plus the terms its spans refer to"""
    html: str
    terms: List[LinkedTerm] = field(default_factory=list)


def render_definition_panel(soup: BeautifulSoup, linked: LinkedTerm,
                            panel_class: str = "gloss_def") -> Tag:
    """
    Build the hidden definition panel for a linked term

    Args:
        soup: Document the panel will belong to
        linked: Term to describe
        panel_class: CSS class of the outer element

    Returns:
        div.gloss_def > (div.defclose, div.definition > span.term + text)
    """
    panel = soup.new_tag("div", attrs={
        "class": panel_class,
        "data-gloss-index": str(linked.index),
        "hidden": "hidden",
    })

    close = soup.new_tag("div", attrs={"class": "defclose"})
    close.string = "CLOSE"

    definition = soup.new_tag("div", attrs={"class": "definition"})
    term = soup.new_tag("span", attrs={"class": "term"})
    term.string = linked.term
    definition.append(term)
    definition.append(NavigableString(str(linked.definition)))

    panel.append(close)
    panel.append(definition)
    return panel


class DocumentHighlighter:
    """
    Scans the text-bearing nodes of an HTML document for glossary terms
    """

    def __init__(self, index: GlossaryIndex, config: Optional[HighlightConfig] = None):
        self.index = index
        self.config = config or HighlightConfig()

    def is_searchable(self, node: NavigableString) -> bool:
        """Check whether a text node sits in a region eligible for scanning"""
        if isinstance(node, PreformattedString):
            return False

        parent = node.parent
        if parent is None or parent.name is None:
            return False

        name = parent.name.lower()
        if name in self.config.skip_tags:
            return False
        if self.config.limit_search_to_tags:
            return name in self.config.search_tags
        return True

    def highlight(self, html: str, include_panels: bool = True) -> HighlightResult:
        """
        Highlight glossary terms in an HTML document

        Args:
            html: Document markup
            include_panels: Append one hidden definition panel per linked term

        Returns:
            HighlightResult with the rewritten markup and linked terms
        """
        soup = BeautifulSoup(html, "html.parser")
        session = self.index.new_session()
        linked: List[LinkedTerm] = []

        # Snapshot, text nodes are replaced inside the loop
        for node in list(soup.find_all(string=True)):
            if self.is_searchable(node):
                self._highlight_node(soup, node, session, linked)

        if include_panels and linked:
            container = soup.body if soup.body is not None else soup
            for term in linked:
                container.append(render_definition_panel(soup, term, self.config.panel_class))

        logger.debug(f"Linked {len(linked)} terms in document")
        return HighlightResult(html=str(soup), terms=linked)

    def _highlight_node(self, soup: BeautifulSoup, node: NavigableString,
                        session: ScanSession, linked: List[LinkedTerm]):
        """Replace a text node with text pieces and term spans"""
        text = str(node)
        pieces = []
        pos = 0

        for match in session.find_occurrences(text):
            if match.start_offset > pos:
                pieces.append(NavigableString(text[pos:match.start_offset]))

            entry = LinkedTerm(index=len(linked), term=match.term, definition=match.definition)
            linked.append(entry)

            span = soup.new_tag("span", attrs={
                "class": self.config.span_class,
                "data-gloss-index": str(entry.index),
            })
            span.string = text[match.start_offset:match.end_offset]
            pieces.append(span)
            pos = match.end_offset

        if not pieces:
            return

        if pos < len(text):
            pieces.append(NavigableString(text[pos:]))
        node.replace_with(*pieces)
