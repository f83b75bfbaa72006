"""
Shared fixtures for PopGloss tests.
"""

import pytest

from popgloss.core.config import MatchingConfig
from popgloss.core.glossary import GlossaryIndex


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep POPGLOSS_* variables from the host out of every test"""
    for name in (
        "POPGLOSS_CASE_SENSITIVE",
        "POPGLOSS_ALL_OCCURRENCES",
        "POPGLOSS_FLUSH_AT_END",
        "POPGLOSS_SEARCH_TAGS",
        "POPGLOSS_GLOSSARY",
        "POPGLOSS_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def animals():
    return {"cat": "feline", "category": "a class", "dog": "man's best friend"}


@pytest.fixture
def index(animals):
    return GlossaryIndex(terms=animals)


@pytest.fixture
def all_occurrences_index(animals):
    return GlossaryIndex(MatchingConfig(first_occurrence_only=False), terms=animals)
