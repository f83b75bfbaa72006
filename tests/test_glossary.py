"""
Tests for the glossary index: registration, occurrence search and annotation.
"""

import csv
import inspect
import io
import json

import pytest
import yaml

from popgloss.core.config import MatchingConfig
from popgloss.core.glossary import GlossaryIndex
from popgloss.core.scanner import Match
from popgloss.core.trie import InvalidTerm


class TestRegistration:

    def test_register_term_normalizes_case(self):
        index = GlossaryIndex()
        index.register_term("Dog", "canine")

        assert index.trie.lookup("dog") == "canine"
        assert index.get_definition("DOG") == "canine"

    def test_case_sensitive_keeps_case(self):
        index = GlossaryIndex(MatchingConfig(case_insensitive=False))
        index.register_term("Dog", "canine")

        assert "Dog" in index
        assert "dog" not in index

    def test_reregistration_overwrites(self):
        index = GlossaryIndex()
        index.register_term("Dog", "first")
        index.register_term("dog", "second")

        assert index.get_definition("dog") == "second"
        assert len(index) == 1

    def test_empty_term_rejected_and_index_unchanged(self, index):
        before = dict(index.trie.items())

        with pytest.raises(InvalidTerm):
            index.register_term("", "nothing")

        assert dict(index.trie.items()) == before

    def test_register_terms_keeps_valid_entries_around_invalid_one(self):
        index = GlossaryIndex()

        with pytest.raises(InvalidTerm) as excinfo:
            index.register_terms({"before": "x", "": "bad", "after": "y"})

        assert excinfo.value.rejected == [""]
        assert index.get_definition("before") == "x"
        assert index.get_definition("after") == "y"
        assert len(index) == 2

    def test_register_terms_invalid_first_entry(self):
        index = GlossaryIndex()

        with pytest.raises(InvalidTerm):
            index.register_terms({"": "bad", "ok": "fine"})

        assert index.get_definition("ok") == "fine"

    def test_none_definition_rejected_and_previous_kept(self):
        index = GlossaryIndex()
        index.register_term("cat", "feline")

        with pytest.raises(InvalidTerm):
            index.register_term("cat", None)

        assert index.get_definition("cat") == "feline"
        assert len(index) == 1

    def test_none_definition_for_new_term_rejected(self):
        index = GlossaryIndex()

        with pytest.raises(InvalidTerm):
            index.register_term("x", None)

        assert len(index) == 0

    def test_register_terms_skips_missing_definitions(self):
        index = GlossaryIndex()
        index.register_terms({"cat": "feline", "dog": None, "owl": ""})

        assert len(index) == 1
        assert "dog" not in index

    def test_get_definition_unknown_or_empty(self, index):
        assert index.get_definition("bird") is None
        assert index.get_definition("") is None


class TestFindOccurrences:

    def test_single_occurrence(self):
        index = GlossaryIndex(terms={"cat": "feline"})

        assert list(index.find_occurrences("I have a cat.")) == [Match("cat", 9, "feline")]

    def test_is_lazy_generator(self, index):
        occurrences = index.find_occurrences("a cat and a dog.")

        assert inspect.isgenerator(occurrences)
        assert next(occurrences).term == "cat"
        assert next(occurrences).term == "dog"
        with pytest.raises(StopIteration):
            next(occurrences)

    def test_empty_buffer(self, index):
        assert list(index.find_occurrences("")) == []

    def test_first_occurrence_only(self, index):
        matches = list(index.find_occurrences("cat, cat, cat."))

        assert matches == [Match("cat", 0, "feline")]

    def test_all_occurrences(self, all_occurrences_index):
        matches = list(all_occurrences_index.find_occurrences("cat, cat, cat."))

        assert [m.start_offset for m in matches] == [0, 5, 10]

    def test_skipped_duplicate_resumes_after_it(self, index):
        matches = list(index.find_occurrences("cat dog cat category."))

        assert [(m.term, m.start_offset) for m in matches] == [
            ("cat", 0),
            ("dog", 4),
            ("category", 12),
        ]

    @pytest.mark.parametrize("word", ["dog", "DOG", "Dog"])
    def test_case_insensitive_each_spelling_matches(self, word):
        index = GlossaryIndex(terms={"Dog": "canine"})

        matches = list(index.find_occurrences(f"A {word}!"))
        assert matches == [Match("dog", 2, "canine")]

    def test_case_insensitive_first_occurrence_spans_spellings(self):
        index = GlossaryIndex(terms={"Dog": "canine"})

        assert len(list(index.find_occurrences("dog DOG Dog."))) == 1

    def test_term_never_repeats_with_first_occurrence(self, index):
        text = "cat category dog cat dog category catx dogs cat."
        terms = [m.term for m in index.find_occurrences(text)]

        assert len(terms) == len(set(terms))

    @pytest.mark.parametrize("text", [
        "cat category dog cat dog category catx dogs cat.",
        "catcatcat dogdog categorycat.",
        "abcdx abx abcx",
        "",
    ])
    def test_yielded_spans_never_overlap(self, text):
        index = GlossaryIndex(
            MatchingConfig(first_occurrence_only=False),
            terms={"cat": 1, "category": 2, "dog": 3, "ab": 4, "b": 5, "bcd": 6, "abcd": 7}
        )

        previous_end = 0
        for match in index.find_occurrences(text):
            assert match.start_offset >= previous_end
            previous_end = match.end_offset

    def test_term_at_end_of_buffer_not_reported_by_default(self):
        index = GlossaryIndex(terms={"cat": "x"})

        assert list(index.find_occurrences("cat")) == []

    def test_flush_at_end_reports_trailing_term(self):
        index = GlossaryIndex(MatchingConfig(flush_at_end=True), terms={"cat": "x"})

        assert list(index.find_occurrences("cat")) == [Match("cat", 0, "x")]

    def test_prefix_sharing_terms_whole_buffer(self, index):
        assert list(index.find_occurrences("category")) == []
        assert list(index.find_occurrences("category.")) == [Match("category", 0, "a class")]

    def test_earliest_to_die_hides_overlapping_longer_term(self):
        index = GlossaryIndex(MatchingConfig(first_occurrence_only=False), terms={"abcd": 1, "b": 2})

        assert list(index.find_occurrences("abcdx")) == [Match("b", 1, 2)]

    def test_each_call_gets_fresh_seen_terms(self, index):
        assert len(list(index.find_occurrences("a cat."))) == 1
        assert len(list(index.find_occurrences("a cat."))) == 1


class TestScanSession:

    def test_session_dedups_across_buffers(self, index):
        session = index.new_session()

        assert [m.term for m in session.find_occurrences("a cat.")] == ["cat"]
        assert list(session.find_occurrences("another cat.")) == []
        assert session.seen_terms == {"cat"}

    def test_reset_clears_seen_terms(self, index):
        session = index.new_session()
        list(session.find_occurrences("a cat."))

        session.reset()

        assert [m.term for m in session.find_occurrences("a cat.")] == ["cat"]


class TestLookups:

    def test_extract_terms_keeps_surface_text(self, index):
        assert index.extract_terms("The Cat sat with a DOG.") == [
            ("Cat", "feline"),
            ("DOG", "man's best friend"),
        ]

    def test_search_terms_ranks_exact_then_prefix(self, index):
        results = index.search_terms("cat")

        assert results == [("cat", "feline"), ("category", "a class")]

    def test_search_terms_matches_definitions(self, index):
        assert index.search_terms("friend") == [("dog", "man's best friend")]

    def test_get_stats(self, index):
        stats = index.get_stats()

        assert stats["total_terms"] == 3
        assert stats["unique_definitions"] == 3
        assert stats["longest_term"] == len("category")

    def test_sample_glossary(self):
        index = GlossaryIndex.sample()

        assert len(index) == 5
        assert index.get_definition("dog") == "man's best friend"


class TestAnnotate:

    def test_html_tooltips(self, index):
        result = index.annotate_text("A cat & a dog.", "html")

        assert result == (
            'A <span class="gloss_item" title="feline">cat</span> &amp; a '
            '<span class="gloss_item" title="man&#x27;s best friend">dog</span>.'
        )

    def test_markdown_footnotes(self, index):
        result = index.annotate_text("A cat and a cat.", "markdown")

        assert result == "A cat[^cat] and a cat.\n\n### Glossary\n\n[^cat]: feline"

    def test_no_terms_leaves_text_alone(self, index):
        assert index.annotate_text("Nothing here.", "markdown") == "Nothing here."
        assert index.annotate_text("1 < 2", "html") == "1 &lt; 2"

    def test_unknown_format(self, index):
        with pytest.raises(ValueError):
            index.annotate_text("a cat.", "rtf")


class TestExport:

    def test_json(self, index):
        assert json.loads(index.export_glossary("json")) == {
            "cat": "feline",
            "category": "a class",
            "dog": "man's best friend",
        }

    def test_yaml(self, index):
        assert yaml.safe_load(index.export_glossary("yaml"))["category"] == "a class"

    def test_csv_reads_back_with_csv_module(self):
        index = GlossaryIndex(terms={"cats, dogs": "pets", "x": "line1\nline2", "q": 'a "b"'})

        rows = list(csv.reader(io.StringIO(index.export_glossary("csv"))))

        assert rows == [
            ["term", "definition"],
            ["cats, dogs", "pets"],
            ["q", 'a "b"'],
            ["x", "line1\nline2"],
        ]

    def test_html(self, index):
        html = index.export_glossary("html")

        assert html.startswith("<dl>")
        assert "<dt><strong>dog</strong></dt>" in html
        assert "<dd>man&#x27;s best friend</dd>" in html

    def test_unknown_format(self, index):
        with pytest.raises(ValueError):
            index.export_glossary("xml")


class TestFromFile:

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "glossary.yaml"
        path.write_text('Dog: "canine"\nempty:\n', encoding="utf-8")

        index = GlossaryIndex.from_file(str(path))

        assert len(index) == 1
        assert index.get_definition("dog") == "canine"

    def test_json_file(self, tmp_path):
        path = tmp_path / "glossary.json"
        path.write_text(json.dumps({"cat": "feline"}), encoding="utf-8")

        assert GlossaryIndex.from_file(str(path)).get_definition("cat") == "feline"

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "glossary.yaml"
        path.write_text("- cat\n- dog\n", encoding="utf-8")

        with pytest.raises(ValueError):
            GlossaryIndex.from_file(str(path))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "glossary.yaml"
        path.write_text("cat: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError):
            GlossaryIndex.read_terms(str(path))
