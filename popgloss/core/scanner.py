"""
PopGloss Term Scanner
Finds the next glossary term occurrence in a text buffer
"""

from dataclasses import dataclass
from typing import Any, List, Optional
import logging

from .trie import TermTrie, TrieNode

logger = logging.getLogger(__name__)


def fold_char(char: str) -> str:
    """
    Lowercase a single character without changing its length.

    Characters whose lowercase form is more than one character (e.g. 'İ')
    are kept as-is so offsets in folded text match the original buffer.
    """
    lowered = char.lower()
    return lowered if len(lowered) == 1 else char


def fold_text(text: str) -> str:
    """Apply fold_char to every character of text"""
    return "".join(fold_char(c) for c in text)


@dataclass(frozen=True)
class Match:
    """A confirmed term occurrence"""
    term: str
    start_offset: int
    definition: Any

    @property
    def end_offset(self) -> int:
        return self.start_offset + len(self.term)

    def to_dict(self) -> dict:
        return {
            "term": self.term,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
            "definition": self.definition,
        }


@dataclass
class CandidateWalk:
    """In-progress attempt to match a term starting at a buffer offset"""
    start: int
    node: TrieNode
    matched_text: str = ""


class TermScanner:
    """
    Walks a buffer tracking one candidate walk per unresolved start offset.

    Every viable start is advanced in lock-step with the input, and the scanner
    only commits once no live candidate remains. The reported match is the
    first one whose walk died, with same-round ties going to the earlier start.
    """

    def __init__(self, trie: TermTrie, case_insensitive: bool = True, flush_at_end: bool = False):
        """
        Args:
            trie: Term index to match against
            case_insensitive: Fold buffer characters before lookup
            flush_at_end: Report walks still sitting on a terminal node when the
                buffer ends. Off by default, in which case such trailing
                matches are not reported.
        """
        self.trie = trie
        self.case_insensitive = case_insensitive
        self.flush_at_end = flush_at_end

    def find_next(self, buffer: str, from_offset: int = 0) -> Optional[Match]:
        """
        Find the next term occurrence at or after from_offset

        Args:
            buffer: Text to scan
            from_offset: Offset to start scanning at

        Returns:
            The earliest-to-die match, or None if no match remains
        """
        active: List[CandidateWalk] = []
        completed: List[Match] = []

        for pos in range(max(from_offset, 0), len(buffer)):
            active.append(CandidateWalk(start=pos, node=self.trie.root))

            char = buffer[pos]
            if self.case_insensitive:
                char = fold_char(char)

            survivors = []
            for walk in active:
                child = self.trie.child_for(walk.node, char)
                if child is not None:
                    walk.node = child
                    walk.matched_text += char
                    survivors.append(walk)
                else:
                    self._complete(walk, completed)
            active = survivors

            if not active and completed:
                return completed[0]

        if self.flush_at_end:
            for walk in active:
                self._complete(walk, completed)
            if completed:
                return completed[0]

        return None

    def _complete(self, walk: CandidateWalk, completed: List[Match]):
        """Record a dying walk as a match if it ends on a registered term"""
        payload = self.trie.payload_of(walk.node)
        if payload is not None:
            completed.append(Match(walk.matched_text, walk.start, payload))
