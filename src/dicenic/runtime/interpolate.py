"""
String literal processing: escape decoding and `{$name}` interpolation.

A placeholder body is a variable reference, never an expression:
- `{$hp}`      -> local variable hp
- `{$a力量}`   -> special variable $a力量
- `{$}`        -> empty string, with a warning

A body starting with a, r, s or d is read as a special variable only when
the rest is not plain ASCII letters, so `{$age}` stays the local `age`
while `{$a力量}` and `{$a_hp}` are special. Names made only of ASCII
letters after the prefix (`{$auth}`) are therefore always locals.
"""

import logging
import re
from typing import AbstractSet, FrozenSet, List, Optional, Tuple, TYPE_CHECKING

from ..tokens import SourceSpan, SPECIAL_PREFIXES
from ..errors import Diagnostic, warning_empty_interpolation, warning_malformed_interpolation
from .convert import to_string
from .context import ExecutionContext

if TYPE_CHECKING:
    from .diagnostics import Diagnostics

logger = logging.getLogger("dicenic.interpolate")

# Template text: a placeholder written as `\{$` is not one
PLACEHOLDER = re.compile(r"(?<!\\)\{\$([^}]*)\}")
# Decoded literal text: escapes are tracked by offset instead
_SPAN = re.compile(r"\{\$([^}]*)\}")
_NAME = re.compile(r"^\w+$")
_ASCII_LETTERS = re.compile(r"^[A-Za-z]+$")

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


def decode_literal(raw: str) -> Tuple[str, FrozenSet[int]]:
    """
    Decode backslash escapes in a string literal body.

    Returns the decoded text and the offsets (in the decoded text) of every
    `{$` written as `\\{$`. interpolate skips placeholders starting there,
    so an escaped placeholder is kept as plain text.
    """
    chars = []
    escaped = set()
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch != "\\" or i + 1 >= len(raw):
            chars.append(ch)
            i += 1
            continue
        nxt = raw[i + 1]
        if nxt == "{" and raw[i + 2:i + 3] == "$":
            escaped.add(len(chars))
        chars.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(chars), frozenset(escaped)


def decode_escapes(raw: str) -> str:
    """Decode backslash escapes. Unknown escapes stand for the escaped character."""
    return decode_literal(raw)[0]


def has_interpolation(text: str) -> bool:
    return PLACEHOLDER.search(text) is not None


def interpolation_variables(text: str) -> List[str]:
    """Placeholder bodies (trimmed) in source order."""
    return [m.group(1).strip() for m in PLACEHOLDER.finditer(text)]


def escape_interpolation(text: str) -> str:
    """Protect placeholders from interpolation: `{$x}` -> `\\{$x\\}`."""
    return text.replace("{$", "\\{$").replace("}", "\\}")


def unescape_interpolation(text: str) -> str:
    return text.replace("\\{$", "{$").replace("\\}", "}")


def validate_interpolation_syntax(text: str) -> List[str]:
    """Problems with placeholders: nested, empty or unclosed. Empty list if fine."""
    errors = []
    open_at = -1
    i = 0
    while i < len(text):
        if text.startswith("{$", i) and (i == 0 or text[i - 1] != "\\"):
            if open_at >= 0:
                errors.append(f"nested interpolation at position {i}")
            open_at = i
            i += 2
            continue
        if text[i] == "}" and open_at >= 0:
            if not text[open_at + 2:i].strip():
                errors.append(f"empty interpolation at position {open_at}")
            open_at = -1
        i += 1
    if open_at >= 0:
        errors.append(f"unclosed interpolation at position {open_at}")
    return errors


def classify(body: str) -> Optional[tuple]:
    """
    Split a trimmed placeholder body into (prefix, name).

    prefix is None for a local variable. Returns None for an empty or
    malformed body.
    """
    if not body or not _NAME.match(body):
        return None
    if len(body) >= 2 and body[0] in SPECIAL_PREFIXES and not _ASCII_LETTERS.match(body[1:]):
        return body[0], body[1:]
    return None, body


def interpolate(template: str, context: ExecutionContext,
                diagnostics: Optional["Diagnostics"] = None,
                span: Optional[SourceSpan] = None,
                escaped: AbstractSet[int] = frozenset()) -> str:
    """
    Replace every `{$name}` in template with the variable's text.

    Placeholders starting at an offset in `escaped` are left as they are
    (see decode_literal). Substituted text is never scanned again.
    Empty or malformed placeholders become empty strings and produce a
    warning (on `diagnostics` when given, else on the module logger).
    """
    span = span or SourceSpan.unknown()
    pieces = []
    pos = 0
    search_from = 0

    while True:
        match = _SPAN.search(template, search_from)
        if match is None:
            break
        if match.start() in escaped:
            search_from = match.start() + 2
            continue
        pieces.append(template[pos:match.start()])
        pieces.append(_resolve(match.group(1).strip(), context, diagnostics, span))
        pos = search_from = match.end()

    pieces.append(template[pos:])
    return "".join(pieces)


def _resolve(body: str, context: ExecutionContext,
             diagnostics: Optional["Diagnostics"], span: SourceSpan) -> str:
    parts = classify(body)
    if parts is None:
        if body:
            _warn(warning_malformed_interpolation(body, span), diagnostics)
        else:
            _warn(warning_empty_interpolation(span), diagnostics)
        return ""
    prefix, name = parts
    if prefix is None:
        return to_string(context.get_local(name))
    return to_string(context.get_special(prefix, name, span))


def _warn(diagnostic: Diagnostic, diagnostics: Optional["Diagnostics"]) -> None:
    if diagnostics is not None:
        diagnostics.warn(diagnostic)
    else:
        logger.warning("%s", diagnostic.format(show_source=False))
