"""Shared placeholder style sheet and the content-addressed rule cache."""
import logging
import threading
from typing import List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

WRAPPER_CLASS = "thumb-wrapper"
PLACEHOLDER_ATTRIBUTE = "data-placeholder"

# Hex escapes end with a space so a following hex digit is not absorbed
# into the escape sequence.
_CSS_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': "\\22 ",
    "'": "\\27 ",
    "\n": "\\a ",
    "\r": "\\d ",
    "\f": "\\c ",
    "\0": "\\fffd ",
}


def escape_css_string(value: str) -> str:
    """Make *value* safe to embed in a double-quoted CSS string."""
    return "".join(_CSS_STRING_ESCAPES.get(ch, ch) for ch in value)


def build_placeholder_rule(placeholder: str, uri: str) -> str:
    return (
        f'.{WRAPPER_CLASS}[{PLACEHOLDER_ATTRIBUTE}="{escape_css_string(placeholder)}"]::before '
        f'{{ background-image: url("{escape_css_string(uri)}"); }}'
    )


class StyleSheet:
    """Append-only list of CSS rules shared by every URI-strategy instance."""

    def __init__(self, sheet_id: str = "placeholder-styles"):
        self.sheet_id = sheet_id
        self._rules: List[str] = []
        self._lock = threading.Lock()

    def insert_rule(self, rule: str, index: Optional[int] = None) -> int:
        with self._lock:
            if index is None or index > len(self._rules):
                index = len(self._rules)
            if index < 0:
                raise IndexError(f"Rule index {index} out of range")
            self._rules.insert(index, rule)
            return index

    @property
    def rules(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._rules)

    def css_text(self) -> str:
        return "\n".join(self.rules)

    def clear(self) -> None:
        with self._lock:
            self._rules.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)


class RuleCache:
    """Placeholders that already have a rule in the shared style sheet.

    Grows for the lifetime of the process; nothing is ever evicted. The
    check and the insert happen under one lock, so instances sharing a
    placeholder produce exactly one rule between them.
    """

    def __init__(self, style_sheet: Optional[StyleSheet] = None):
        self.style_sheet = style_sheet if style_sheet is not None else StyleSheet()
        self._registered: Set[str] = set()
        self._lock = threading.Lock()

    def ensure_rule(self, placeholder: str, uri: str) -> bool:
        """Register a rule for *placeholder* unless one exists. Returns True on insert."""
        with self._lock:
            if placeholder in self._registered:
                return False
            rule = build_placeholder_rule(placeholder, uri)
            self.style_sheet.insert_rule(rule)
            self._registered.add(placeholder)
        logger.debug("RuleCache: registered rule #%d", len(self._registered))
        return True

    def reset(self) -> None:
        """Start over with an empty cache and sheet (new session or test)."""
        with self._lock:
            self._registered.clear()
            self.style_sheet.clear()

    def __contains__(self, placeholder: str) -> bool:
        with self._lock:
            return placeholder in self._registered

    def __len__(self) -> int:
        with self._lock:
            return len(self._registered)
