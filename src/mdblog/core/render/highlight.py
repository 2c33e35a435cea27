"""Syntax highlighting of code blocks with Pygments"""

import logging
import threading
from typing import Optional

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_all_lexers, get_lexer_by_name


logger = logging.getLogger(__name__)

CLASS_PREFIX = "syh-"

_registry: Optional[dict[str, str]] = None
_registry_lock = threading.Lock()


def lexer_registry() -> dict[str, str]:
    """Map of language token (alias or file extension) to a lexer alias, built once per process."""
    global _registry
    with _registry_lock:
        if _registry is None:
            tokens: dict[str, str] = {}
            for _name, aliases, filenames, _mimes in get_all_lexers():
                if not aliases:
                    continue
                for alias in aliases:
                    tokens.setdefault(alias.lower(), aliases[0])
                for pattern in filenames:
                    if pattern.startswith('*.') and '*' not in pattern[2:]:
                        tokens.setdefault(pattern[2:].lower(), aliases[0])
            _registry = tokens
        return _registry


def highlight(code: str, lang: str) -> Optional[str]:
    """Highlighted html spans for code, or None (with a warning) when lang is unknown."""
    alias = lexer_registry().get(lang.lower())
    if alias is None:
        logger.warning("Unknown language %r. No highlighting for this block.", lang)
        return None
    lexer = get_lexer_by_name(alias, stripnl=False, ensurenl=False)
    return pygments_highlight(code, lexer, HtmlFormatter(nowrap=True, classprefix=CLASS_PREFIX))
