"""
Table name include/exclude filtering.
"""

import logging
import re
from typing import Iterable, Optional, Union

Pattern = Union[str, re.Pattern]


class TableFilter:
    """
    Decides whether a table name passes include/exclude rules.

    Supports:
    - Exact names: include_names / exclude_names
    - Regular expressions (unanchored search): include_patterns / exclude_patterns

    Exclusion always wins. When any include rule is given, a name must match one
    of them; otherwise every name not excluded passes.
    """

    def __init__(
        self,
        include_names: Optional[Iterable[str]] = None,
        exclude_names: Optional[Iterable[str]] = None,
        include_patterns: Optional[Iterable[Pattern]] = None,
        exclude_patterns: Optional[Iterable[Pattern]] = None
    ):
        self.include_names = frozenset(include_names or ())
        self.exclude_names = frozenset(exclude_names or ())
        self.include_patterns = self._compile_patterns(include_patterns or ())
        self.exclude_patterns = self._compile_patterns(exclude_patterns or ())

    @staticmethod
    def _compile_patterns(patterns: Iterable[Pattern]) -> list[re.Pattern]:
        """Pre-compile patterns, keeping their order."""
        return [p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns]

    @property
    def has_include_rules(self) -> bool:
        return bool(self.include_names or self.include_patterns)

    def is_excluded(self, name: str) -> bool:
        if name in self.exclude_names:
            logging.debug(f"Table '{name}' excluded by name")
            return True
        for compiled in self.exclude_patterns:
            if compiled.search(name):
                logging.debug(f"Table '{name}' excluded by pattern '{compiled.pattern}'")
                return True
        return False

    def is_included(self, name: str) -> bool:
        if not self.has_include_rules:
            return True
        if name in self.include_names:
            return True
        return any(compiled.search(name) for compiled in self.include_patterns)

    def accepts(self, name: str) -> bool:
        """Return True if the name is included and not excluded."""
        return self.is_included(name) and not self.is_excluded(name)
