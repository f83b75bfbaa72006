"""
PopGloss
Find glossary terms in text and link them to their definitions
"""

from .core.config import HighlightConfig, MatchingConfig, PopGlossConfig
from .core.glossary import GlossaryIndex, ScanSession
from .core.highlighter import DocumentHighlighter, HighlightResult, LinkedTerm
from .core.scanner import Match, TermScanner
from .core.trie import InvalidTerm, TermTrie, TrieNode

__version__ = "1.0.0"

__all__ = [
    "DocumentHighlighter",
    "GlossaryIndex",
    "HighlightConfig",
    "HighlightResult",
    "InvalidTerm",
    "LinkedTerm",
    "Match",
    "MatchingConfig",
    "PopGlossConfig",
    "ScanSession",
    "TermScanner",
    "TermTrie",
    "TrieNode",
]
