"""
PopGloss Central Configuration
Matching policy, highlighting options and logging settings
"""

from dataclasses import dataclass, field
from typing import List, Optional
import os

import yaml


def _env_flag(name: str) -> Optional[bool]:
    """Read a boolean environment variable, None when unset"""
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value.lower() in ("true", "1", "yes")


@dataclass
class MatchingConfig:
    """Configuration for the term-matching engine"""

    # Normalize registered terms and scanned text to lowercase
    case_insensitive: bool = True

    # Suppress repeat yields of a term within one scan session
    first_occurrence_only: bool = True

    # Report a term that ends exactly at the end of the buffer
    flush_at_end: bool = False


@dataclass
class HighlightConfig:
    """Configuration for HTML document highlighting"""

    # Only scan text whose parent tag is in search_tags
    limit_search_to_tags: bool = True
    search_tags: List[str] = field(default_factory=lambda: ["p"])

    # Never scan text inside these tags
    skip_tags: List[str] = field(default_factory=lambda: ["textarea", "script", "style"])

    # CSS classes of the generated markup
    span_class: str = "gloss_item"
    panel_class: str = "gloss_def"

    def __post_init__(self):
        """Tag names are compared lowercase"""
        self.search_tags = [tag.lower() for tag in self.search_tags]
        self.skip_tags = [tag.lower() for tag in self.skip_tags]


@dataclass
class PopGlossConfig:
    """Main configuration class combining all settings"""

    matching: MatchingConfig
    highlight: HighlightConfig

    # Glossary file loaded by the CLI and API server
    glossary_path: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    def __init__(self,
                 matching: Optional[MatchingConfig] = None,
                 highlight: Optional[HighlightConfig] = None,
                 load_env: bool = True):
        """Initialize with optional custom configurations"""
        self.matching = matching or MatchingConfig()
        self.highlight = highlight or HighlightConfig()
        self.glossary_path = None
        self.log_level = "INFO"

        # Override with environment variables if present
        if load_env:
            self._load_env_overrides()

    def _load_env_overrides(self):
        """Load configuration overrides from environment variables"""
        if _env_flag("POPGLOSS_CASE_SENSITIVE"):
            self.matching.case_insensitive = False

        if _env_flag("POPGLOSS_ALL_OCCURRENCES"):
            self.matching.first_occurrence_only = False

        if _env_flag("POPGLOSS_FLUSH_AT_END"):
            self.matching.flush_at_end = True

        if os.getenv("POPGLOSS_SEARCH_TAGS"):
            tags = [t.strip().lower() for t in os.getenv("POPGLOSS_SEARCH_TAGS").split(",")]
            self.highlight.search_tags = [t for t in tags if t]

        if os.getenv("POPGLOSS_GLOSSARY"):
            self.glossary_path = os.getenv("POPGLOSS_GLOSSARY")

        if _env_flag("POPGLOSS_DEBUG"):
            self.log_level = "DEBUG"

    @classmethod
    def load_from_file(cls, config_path: str) -> 'PopGlossConfig':
        """Load configuration from YAML file"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}

            matching = MatchingConfig(**config_data.get('matching') or {})
            highlight = HighlightConfig(**config_data.get('highlight') or {})

            config = cls(matching=matching, highlight=highlight)

            # Override other settings
            for key, value in config_data.items():
                if key not in ['matching', 'highlight'] and hasattr(config, key):
                    setattr(config, key, value)

            return config

        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}") from e

    def to_dict(self) -> dict:
        return {
            'matching': {
                'case_insensitive': self.matching.case_insensitive,
                'first_occurrence_only': self.matching.first_occurrence_only,
                'flush_at_end': self.matching.flush_at_end
            },
            'highlight': {
                'limit_search_to_tags': self.highlight.limit_search_to_tags,
                'search_tags': list(self.highlight.search_tags),
                'skip_tags': list(self.highlight.skip_tags),
                'span_class': self.highlight.span_class,
                'panel_class': self.highlight.panel_class
            },
            'glossary_path': self.glossary_path,
            'log_level': self.log_level
        }

    def save_to_file(self, config_path: str):
        """Save configuration to YAML file"""
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2)
