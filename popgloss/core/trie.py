"""
PopGloss Term Trie
Prefix tree mapping glossary terms to their definitions
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class InvalidTerm(ValueError):
    """Raised when a term cannot be registered (empty term or missing definition)"""

    def __init__(self, message: str, rejected: Optional[List[Any]] = None):
        super().__init__(message)
        self.rejected = rejected or []


class TrieNode:
    """Single node of the term trie"""

    __slots__ = ("children", "payload")

    def __init__(self):
        self.children: Dict[str, "TrieNode"] = {}
        # Only set on nodes that terminate a registered term
        self.payload: Any = None


class TermTrie:
    """
    Prefix tree of registered terms.

    Each edge consumes one character; a path from the root to a node with a
    payload spells one registered term.
    """

    def __init__(self):
        self.root = TrieNode()
        self._term_count = 0

    def insert(self, term: str, payload: Any):
        """
        Insert a term, overwriting the payload of an identical term

        Args:
            term: Term to insert, already normalized by the caller
            payload: Definition returned for the term

        Raises:
            InvalidTerm: If the term is empty or not a string, or the
                payload is None
        """
        if not isinstance(term, str) or not term:
            raise InvalidTerm(f"Cannot register empty term: {term!r}", [term])
        if payload is None:
            raise InvalidTerm(f"Cannot register term without definition: {term!r}", [term])

        node = self.root
        for char in term:
            child = node.children.get(char)
            if child is None:
                child = node.children[char] = TrieNode()
            node = child

        if node.payload is None:
            self._term_count += 1
        node.payload = payload

    def child_for(self, node: TrieNode, char: str) -> Optional[TrieNode]:
        """Return the child of node for char, or None"""
        return node.children.get(char)

    def payload_of(self, node: TrieNode) -> Any:
        """Return the payload of node, None for non-terminal nodes"""
        return node.payload

    def lookup(self, term: str) -> Any:
        """
        Follow the exact characters of a term from the root

        Returns:
            Payload of the reached node, or None if the path or payload is missing
        """
        node = self.root
        for char in term:
            node = self.child_for(node, char)
            if node is None:
                return None
        return self.payload_of(node)

    def items(self) -> Iterator[Tuple[str, Any]]:
        """Yield (term, payload) pairs depth-first, in insertion order"""
        stack: List[Tuple[str, TrieNode]] = [("", self.root)]
        while stack:
            prefix, node = stack.pop()
            if node.payload is not None:
                yield prefix, node.payload
            for char, child in reversed(list(node.children.items())):
                stack.append((prefix + char, child))

    def __contains__(self, term: object) -> bool:
        return isinstance(term, str) and self.lookup(term) is not None

    def __len__(self) -> int:
        return self._term_count
