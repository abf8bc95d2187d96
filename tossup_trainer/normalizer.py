"""Canonicalize answer text for comparison.

Answers from answer lines and from players go through the same pipeline:
markup and entities are dropped, accents are folded, everything that is
not a latin letter or digit becomes a space, and bare numbers are spelled
out ("1812" -> "one thousand, eight hundred and twelve" -> words only).
The result is stable under a second pass.
"""
from __future__ import annotations

import html
import re
import unicodedata

from num2words import num2words

ANY_TAG = re.compile(r"<[^<>]*>")
NON_ALPHANUMERIC = re.compile(r"[^a-z0-9 ]+")
WHITESPACE = re.compile(r"\s+")
INITIAL = re.compile(r"^[a-z]\.?$")
ROMAN_NUMERAL = re.compile(r"^(?=[ivxlcdm]+$)m{0,3}(cm|cd|d?c{0,3})(xc|xl|l?x{0,3})(ix|iv|v?i{0,3})$")
ORDINAL = re.compile(r"^\d+(st|nd|rd|th)$")
ORDINAL_WORDS = frozenset("""
first second third fourth fifth sixth seventh eighth ninth tenth eleventh
twelfth thirteenth fourteenth fifteenth sixteenth seventeenth eighteenth
nineteenth twentieth
""".split())

# Given names that commonly lead a full-name answer ("John Adams").
# Only leading tokens found here (or initials following them) are stripped.
FIRST_NAMES = frozenset("""
aaron abraham adam adolf agnes albert alexander alfred alice amelia andrew
angela ann anna anne anthony antonio arthur august augustus barbara benjamin
bernard bertrand betty bill billy bob carl carlos caroline catherine charles
charlotte christian christina christopher claude daniel david dmitri donald
dorothy douglas edgar edmund edward edwin eleanor elizabeth ellen emily emma
ernest eugene francis frank franz frederick friedrich gabriel george georg
gerald giovanni giuseppe gustav harold harriet harry helen henri henry herbert
howard hugh isaac jack jacob james jan jane jean jeremy jimmy joan johann john
johannes jonathan jose joseph juan julia julius karl katherine kenneth lawrence
leo leonard leon louis louisa lucy ludwig luis margaret maria marie mark martin
mary matthew michael nathaniel nicholas nikolai oliver oscar patrick paul peter
philip pierre pyotr ralph richard robert roger ronald rosa samuel sarah scott
sergei sigmund simon sophie stephen susan thomas theodore victor vincent walter
wilhelm william wolfgang
""".split())


def remove_tags(s: str) -> str:
    return ANY_TAG.sub("", s)


def normalize_spacing(s: str) -> str:
    """Squeeze runs of whitespace into single spaces and trim the ends."""
    return WHITESPACE.sub(" ", s).strip()


def fold_accents(s: str) -> str:
    decomposed = unicodedata.normalize("NFKD", s)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def convert_numbers_to_words(s: str) -> str:
    """Spell out tokens that are entirely digits.

    e.g. '1 dog' => 'one dog'
    """
    words = []
    for w in s.split(" "):
        if w.isdigit() and w.isascii():
            try:
                w = num2words(int(w))
            except (OverflowError, ValueError, NotImplementedError):
                pass
        words.append(w)
    return " ".join(words)


def _strip_symbols(s: str) -> str:
    return normalize_spacing(NON_ALPHANUMERIC.sub(" ", s))


def normalize_answer(s: str | None) -> str:
    """Normalize answer text for comparison. Never raises on str input."""
    if not s:
        return ""
    s = html.unescape(remove_tags(s))
    s = fold_accents(s).lower()
    s = _strip_symbols(s)
    s = convert_numbers_to_words(s)
    return _strip_symbols(s)


def _is_regnal(token: str) -> bool:
    """Whether *token* is a regnal number: 'viii', 'eighth', '8th'."""
    token = token.lower()
    return bool(ROMAN_NUMERAL.match(token) or ORDINAL.match(token)) or token in ORDINAL_WORDS


def remove_first_names(s: str) -> str:
    """Drop leading given names (and initials after them) from a full name.

    'John F. Kennedy' => 'Kennedy'. At least one token is always kept, and
    nothing is stripped unless a known given name leads the string. Regnal
    names ('Elizabeth I', 'Henry the Eighth') are left whole.
    """
    tokens = s.split()
    if len(tokens) < 2:
        return s
    key = re.sub(r"[^a-z]", "", fold_accents(tokens[0]).lower())
    if key not in FIRST_NAMES:
        return s

    i = 1
    while i < len(tokens) - 1:
        if _is_regnal(tokens[i]):
            return s
        key = re.sub(r"[^a-z.]", "", fold_accents(tokens[i]).lower())
        if key.rstrip(".") in FIRST_NAMES or INITIAL.match(key):
            i += 1
            continue
        break
    if tokens[i].lower() == "the" or _is_regnal(tokens[i]):
        return s
    return " ".join(tokens[i:])
