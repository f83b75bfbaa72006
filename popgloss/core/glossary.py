"""
PopGloss Glossary Index
Term registration, occurrence search and tooltip annotation
"""

from html import escape
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple
import csv
import io
import json
import logging

import yaml

from .config import MatchingConfig
from .scanner import Match, TermScanner, fold_text
from .trie import InvalidTerm, TermTrie

logger = logging.getLogger(__name__)

# Sample glossary used by the CLI self-test
SAMPLE_GLOSSARY_YAML = """
dog: "man's best friend"
cat: "small domesticated feline"
category: "a class of things sharing characteristics"
trie: "tree of characters where each path spells a key"
glossary: "alphabetical list of terms with their definitions"
"""


class ScanSession:
    """
    One scanning pass over a document.

    Owns the set of terms already yielded, so the first-occurrence policy can
    span several buffers of the same document.
    """

    def __init__(self, scanner: TermScanner, first_occurrence_only: bool = True):
        self.scanner = scanner
        self.first_occurrence_only = first_occurrence_only
        self.seen_terms: Set[str] = set()

    def reset(self):
        """Forget every term seen so far"""
        self.seen_terms.clear()

    def find_occurrences(self, buffer: str) -> Iterator[Match]:
        """
        Yield term occurrences in buffer, left to right

        Args:
            buffer: Text to scan

        Yields:
            Non-overlapping matches
        """
        pos = 0
        while True:
            match = self.scanner.find_next(buffer, pos)
            if match is None:
                return

            pos = match.start_offset + len(match.term)

            if self.first_occurrence_only and match.term in self.seen_terms:
                logger.debug(f"Skipping repeat of '{match.term}' at {match.start_offset}")
                continue

            self.seen_terms.add(match.term)
            yield match


class GlossaryIndex:
    """
    Glossary of terms backed by a prefix tree
    """

    def __init__(self,
                 config: Optional[MatchingConfig] = None,
                 terms: Optional[Dict[str, Any]] = None):
        """
        Initialize glossary index

        Args:
            config: Matching policy, defaults to MatchingConfig()
            terms: Optional initial term -> definition mapping
        """
        self.config = config or MatchingConfig()
        self.trie = TermTrie()
        self.scanner = TermScanner(
            self.trie,
            case_insensitive=self.config.case_insensitive,
            flush_at_end=self.config.flush_at_end
        )

        if terms:
            self.register_terms(terms)

    @staticmethod
    def read_terms(path: str) -> Dict[str, Any]:
        """
        Read a YAML or JSON mapping of term -> definition

        Raises:
            ValueError: If the file does not hold a mapping
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid YAML in glossary file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Glossary file {path} must contain a mapping of term -> definition")
        return {str(term): definition for term, definition in data.items()}

    @classmethod
    def from_file(cls, path: str, config: Optional[MatchingConfig] = None) -> 'GlossaryIndex':
        """Load a glossary from a YAML or JSON file"""
        index = cls(config=config, terms=cls.read_terms(path))
        logger.info(f"Loaded glossary with {len(index)} terms from {path}")
        return index

    @classmethod
    def sample(cls, config: Optional[MatchingConfig] = None) -> 'GlossaryIndex':
        """Glossary built from the embedded sample terms"""
        return cls(config=config, terms=yaml.safe_load(SAMPLE_GLOSSARY_YAML))

    def normalize(self, term: str) -> str:
        """Normalize a term the same way scanned text is folded"""
        if self.config.case_insensitive:
            return fold_text(term)
        return term

    def register_term(self, term: str, definition: Any):
        """
        Register a single term

        Raises:
            InvalidTerm: If the term is empty or not a string, or the
                definition is None
        """
        if not isinstance(term, str) or not term:
            raise InvalidTerm(f"Cannot register empty term: {term!r}", [term])
        self.trie.insert(self.normalize(term), definition)

    def register_terms(self, terms: Dict[str, Any]):
        """
        Register several terms at a time

        Args:
            terms: Dictionary of term -> definition. Entries without a
                definition are skipped.

        Raises:
            InvalidTerm: After every valid entry is registered, if some
                terms were rejected. Its rejected attribute lists them.
        """
        added = 0
        rejected = []
        for term, definition in terms.items():
            if definition is None or definition == "":
                logger.warning(f"Skipping term without definition: {term!r}")
                continue
            try:
                self.register_term(term, definition)
            except InvalidTerm as e:
                logger.warning(f"Rejected term: {e}")
                rejected.append(term)
                continue
            added += 1

        logger.info(f"Registered {added} terms in glossary")

        if rejected:
            raise InvalidTerm(f"Rejected {len(rejected)} invalid terms: {rejected!r}", rejected)

    def new_session(self) -> ScanSession:
        """Start a scanning session with its own seen-terms set"""
        return ScanSession(self.scanner, self.config.first_occurrence_only)

    def find_occurrences(self, buffer: str) -> Iterator[Match]:
        """Yield occurrences in buffer using a fresh scan session"""
        return self.new_session().find_occurrences(buffer)

    def get_definition(self, term: str) -> Any:
        """
        Get definition for a specific term

        Returns:
            Definition or None if not found
        """
        if not term:
            return None
        return self.trie.lookup(self.normalize(term))

    def extract_terms(self, text: str) -> List[Tuple[str, Any]]:
        """
        Extract glossary terms found in text

        Returns:
            List of (surface text, definition) tuples in text order
        """
        return [
            (text[m.start_offset:m.end_offset], m.definition)
            for m in self.find_occurrences(text)
        ]

    def search_terms(self, query: str) -> List[Tuple[str, Any]]:
        """
        Search for terms containing query string

        Returns:
            List of (term, definition) tuples, best matches first
        """
        query_lower = query.lower()
        results = []

        for term, definition in self.trie.items():
            if query_lower in term.lower() or query_lower in str(definition).lower():
                results.append((term, definition))

        def sort_key(item):
            term_lower = item[0].lower()

            # Exact match gets highest priority
            if term_lower == query_lower:
                return (0, len(term_lower), term_lower)
            # Term starts with query
            elif term_lower.startswith(query_lower):
                return (1, len(term_lower), term_lower)
            # Query in term
            elif query_lower in term_lower:
                return (2, len(term_lower), term_lower)
            # Query in definition
            else:
                return (3, len(term_lower), term_lower)

        results.sort(key=sort_key)
        return results

    def annotate_text(self, text: str, format: str = "html") -> str:
        """
        Add tooltips to glossary terms in text

        Args:
            text: Input text
            format: Output format ("html" or "markdown")

        Returns:
            Text with tooltips added
        """
        if format == "html":
            return self._annotate_html(text)
        elif format == "markdown":
            return self._annotate_markdown(text)
        else:
            raise ValueError(f"Unknown format: {format}")

    def _annotate_html(self, text: str) -> str:
        """Wrap every occurrence in a span carrying its definition as title"""
        parts = []
        pos = 0
        for match in self.find_occurrences(text):
            definition = escape(str(match.definition), quote=True)
            surface = escape(text[match.start_offset:match.end_offset], quote=False)
            parts.append(escape(text[pos:match.start_offset], quote=False))
            parts.append(f'<span class="gloss_item" title="{definition}">{surface}</span>')
            pos = match.end_offset
        parts.append(escape(text[pos:], quote=False))
        return "".join(parts)

    def _annotate_markdown(self, text: str) -> str:
        """Add footnote markers after occurrences and a glossary footnote block"""
        footnotes: Dict[str, Tuple[str, Any]] = {}
        parts = []
        pos = 0

        for match in self.find_occurrences(text):
            if match.term not in footnotes:
                footnote_id = match.term.replace(" ", "_").replace("-", "_")
                footnotes[match.term] = (footnote_id, match.definition)
            footnote_id = footnotes[match.term][0]
            parts.append(text[pos:match.end_offset])
            parts.append(f"[^{footnote_id}]")
            pos = match.end_offset
        parts.append(text[pos:])

        result = "".join(parts)

        if footnotes:
            lines = ["\n\n### Glossary\n"]
            for term in sorted(footnotes):
                footnote_id, definition = footnotes[term]
                lines.append(f"[^{footnote_id}]: {definition}")
            result += "\n".join(lines)

        return result

    def export_glossary(self, format: str = "json") -> str:
        """
        Export glossary in different formats

        Args:
            format: Export format ("json", "yaml", "csv", "html")

        Returns:
            Formatted glossary string
        """
        glossary = dict(sorted(self.trie.items()))

        if format == "json":
            return json.dumps(glossary, indent=2, ensure_ascii=False)

        elif format == "yaml":
            return yaml.dump(glossary, default_flow_style=False, allow_unicode=True)

        elif format == "csv":
            output = io.StringIO()
            writer = csv.writer(output, lineterminator="\n")
            writer.writerow(["term", "definition"])
            for term, definition in glossary.items():
                writer.writerow([term, str(definition)])
            return output.getvalue()

        elif format == "html":
            html = "<dl>\n"
            for term, definition in glossary.items():
                html += f"  <dt><strong>{escape(term)}</strong></dt>\n"
                html += f"  <dd>{escape(str(definition))}</dd>\n"
            html += "</dl>"
            return html

        else:
            raise ValueError(f"Unknown format: {format}")

    def get_stats(self) -> Dict[str, int]:
        """Get statistics about the glossary"""
        terms = [term for term, _ in self.trie.items()]
        return {
            'total_terms': len(terms),
            'unique_definitions': len({str(d) for _, d in self.trie.items()}),
            'multi_word_terms': sum(1 for t in terms if ' ' in t),
            'longest_term': max((len(t) for t in terms), default=0)
        }

    def __len__(self) -> int:
        return len(self.trie)

    def __contains__(self, term: object) -> bool:
        return isinstance(term, str) and self.get_definition(term) is not None
