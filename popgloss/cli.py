#!/usr/bin/env python3
"""
PopGloss CLI Interface
Command-line interface for finding and highlighting glossary terms
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .core.config import PopGlossConfig
from .core.glossary import GlossaryIndex
from .core.highlighter import DocumentHighlighter
from .core.trie import InvalidTerm

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Route log records through rich"""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True
    )


def parse_term_spec(spec: str):
    """Split a TERM=DEFINITION argument"""
    term, sep, definition = spec.partition("=")
    if not sep:
        raise ValueError(f"Expected TERM=DEFINITION, got: {spec!r}")
    return term.strip(), definition.strip()


class PopGlossCLI:
    """Command-line interface for PopGloss"""

    def __init__(self, config: Optional[PopGlossConfig] = None):
        self.config = config or PopGlossConfig()
        self.index = GlossaryIndex(self.config.matching)

    def load_glossary(self, path: str):
        """Register every term of a YAML/JSON glossary file"""
        self.index.register_terms(GlossaryIndex.read_terms(path))

    def add_terms(self, specs: List[str]):
        for spec in specs:
            term, definition = parse_term_spec(spec)
            self.index.register_term(term, definition)

    def show_matches(self, text: str):
        """Print occurrences of glossary terms as a table"""
        matches = list(self.index.find_occurrences(text))

        if not matches:
            console.print("No glossary terms found.", style="yellow")
            return matches

        table = Table(title="📖 Glossary Terms")
        table.add_column("Offset", style="cyan", justify="right")
        table.add_column("Term", style="green")
        table.add_column("Definition", style="white", overflow="fold")

        for match in matches:
            table.add_row(
                str(match.start_offset),
                text[match.start_offset:match.end_offset],
                str(match.definition)
            )

        console.print(table)
        return matches

    def render(self, text: str, format: str, is_html: bool = False) -> str:
        """Produce the output document for a non-table format"""
        if is_html:
            highlighter = DocumentHighlighter(self.index, self.config.highlight)
            return highlighter.highlight(text).html

        if format == "json":
            return json.dumps(
                [m.to_dict() for m in self.index.find_occurrences(text)],
                indent=2,
                ensure_ascii=False
            )
        return self.index.annotate_text(text, format)

    def selftest(self) -> bool:
        """Run the engine against the sample glossary"""
        console.print(Panel("🧪 Running Self-Test", style="bold magenta"))

        # Default matching policy, whatever the command-line flags say
        index = GlossaryIndex.sample()
        checks = [
            ("I have a cat.", [("cat", 9)]),
            ("The category.", [("category", 4)]),
            ("DOG, dog and Dog.", [("dog", 0)]),
        ]

        passed = True
        for text, expected in checks:
            found = [(m.term, m.start_offset) for m in index.find_occurrences(text)]
            ok = found == expected
            passed = passed and ok
            mark = "✅" if ok else "❌"
            console.print(f"{mark} {text!r} -> {found}")

        if passed:
            console.print("\n✅ Self-test completed successfully!", style="green")
        else:
            console.print("\n❌ Self-test failed", style="red")
        return passed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="popgloss",
        description="PopGloss - find glossary terms in text and link them to definitions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List terms found in a text
  popgloss -g glossary.yaml --text "I have a cat."

  # Highlight an HTML page
  popgloss -g glossary.yaml -i page.html --html -o page.glossed.html

  # Markdown footnotes for every occurrence
  popgloss -t "dog=man's best friend" -i notes.md --format markdown --all-occurrences
        """
    )

    parser.add_argument("--glossary", "-g", help="Glossary file (YAML or JSON mapping)")
    parser.add_argument("--term", "-t", action="append", default=[],
                        help="Add a term as TERM=DEFINITION (repeatable)")
    parser.add_argument("--text", help="Text to scan")
    parser.add_argument("--input", "-i", help="File to scan")
    parser.add_argument("--html", action="store_true",
                        help="Treat input as an HTML document and print highlighted markup")
    parser.add_argument("--format", "-f", choices=["table", "json", "html", "markdown"],
                        default="table", help="Output format (default: table)")
    parser.add_argument("--output", "-o", help="Write output to file instead of stdout")
    parser.add_argument("--all-occurrences", action="store_true",
                        help="Report every occurrence, not only the first of each term")
    parser.add_argument("--case-sensitive", action="store_true", help="Match terms case-sensitively")
    parser.add_argument("--flush-at-end", action="store_true",
                        help="Also report a term ending exactly at the end of the text")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--export", choices=["json", "yaml", "csv", "html"],
                        help="Print the glossary in the given format")
    parser.add_argument("--selftest", action="store_true", help="Run self-test with sample data")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = PopGlossConfig.load_from_file(args.config) if args.config else PopGlossConfig()
        if args.all_occurrences:
            config.matching.first_occurrence_only = False
        if args.case_sensitive:
            config.matching.case_insensitive = False
        if args.flush_at_end:
            config.matching.flush_at_end = True

        setup_logging(config.log_level)
        cli = PopGlossCLI(config)

        if args.selftest:
            return 0 if cli.selftest() else 1

        glossary_path = args.glossary or config.glossary_path
        if glossary_path:
            cli.load_glossary(glossary_path)
        cli.add_terms(args.term)

        if args.export:
            console.print(cli.index.export_glossary(args.export), markup=False, highlight=False, emoji=False, soft_wrap=True)
            return 0

        if args.text is not None:
            text = args.text
        elif args.input:
            text = Path(args.input).read_text(encoding="utf-8")
        else:
            text = sys.stdin.read()

        if args.format == "table" and not args.html:
            cli.show_matches(text)
            return 0

        output = cli.render(text, args.format, is_html=args.html)
        if args.output:
            Path(args.output).write_text(output, encoding="utf-8")
            console.print(f"✅ Wrote {args.output}", style="green")
        else:
            console.print(output, markup=False, highlight=False, emoji=False, soft_wrap=True)
        return 0

    except (InvalidTerm, ValueError, OSError) as e:
        console.print(f"❌ Error: {str(e)}", style="red")
        return 1


if __name__ == "__main__":
    sys.exit(main())
