"""Static import/require specifier extraction for JavaScript and TypeScript.

A small lexer splits source text into tokens (skipping comments and keeping
string, template, and regular-expression literals intact), and a pattern
pass over the token stream picks out the module specifiers that are fixed at
parse time:

- ``import x from "a"``, ``import "a"``, ``import("a")``
- ``export * from "a"``, ``export { x } from "a"``
- ``require("a")`` and TypeScript's ``import x = require("a")``

Computed specifiers (``require(name)``, templates with substitutions) are
not reported. In TypeScript mode ``import type``/``export type`` statements
are dropped since they are erased at compile time.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

TokenKind = Literal["name", "punct", "string", "template", "regex", "number"]

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_$#\u00a0-\uffff][\w$\u00a0-\uffff]*")
NUMBER_PATTERN = re.compile(r"\d[\w.]*|\.\d\w*")
PUNCTUATOR_PATTERN = re.compile(r"\.\.\.|\?\.(?!\d)|=>|[^\s\w]")
REGEX_FLAGS_PATTERN = re.compile(r"[A-Za-z]*")

# Keywords after which a "/" starts a regular expression rather than a division.
REGEX_PRECEDING_KEYWORDS = frozenset(
    {
        "await",
        "case",
        "delete",
        "do",
        "else",
        "in",
        "instanceof",
        "new",
        "of",
        "return",
        "throw",
        "typeof",
        "void",
        "yield",
    }
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: str | None

    def is_punct(self, value: str) -> bool:
        return self.kind == "punct" and self.value == value

    def is_name(self, value: str) -> bool:
        return self.kind == "name" and self.value == value

    @property
    def static_text(self) -> str | None:
        if self.kind in ("string", "template"):
            return self.value
        return None


def tokenize(source: str) -> list[Token]:
    tokens: list[Token] = []
    # "brace" for a plain "{", "template" for a "${" inside a template literal
    braces: list[str] = []
    length = len(source)
    i = 0
    if source.startswith("#!"):
        end = source.find("\n")
        i = length if end == -1 else end

    while i < length:
        char = source[i]
        if char.isspace():
            i += 1
            continue
        if source.startswith("//", i):
            end = source.find("\n", i)
            i = length if end == -1 else end
            continue
        if source.startswith("/*", i):
            end = source.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue
        if char in "'\"":
            value, i = _read_string(source, i)
            tokens.append(Token("string", value))
            continue
        if char == "`":
            text, i, opened = _read_template_chunk(source, i + 1)
            if opened:
                braces.append("template")
                tokens.append(Token("template", None))
            else:
                tokens.append(Token("template", text))
            continue
        if char == "}" and braces and braces[-1] == "template":
            braces.pop()
            _, i, opened = _read_template_chunk(source, i + 1)
            if opened:
                braces.append("template")
            continue
        if char == "/" and _regex_allowed(tokens):
            end = _read_regex(source, i)
            if end is not None:
                tokens.append(Token("regex", source[i:end]))
                i = end
                continue

        match = IDENTIFIER_PATTERN.match(source, i)
        if match is not None:
            tokens.append(Token("name", match.group()))
            i = match.end()
            continue
        match = NUMBER_PATTERN.match(source, i)
        if match is not None:
            tokens.append(Token("number", match.group()))
            i = match.end()
            continue
        match = PUNCTUATOR_PATTERN.match(source, i)
        if match is None:
            i += 1
            continue
        value = match.group()
        if value == "{":
            braces.append("brace")
        elif value == "}" and braces:
            braces.pop()
        tokens.append(Token("punct", value))
        i = match.end()
    return tokens


def extract_specifiers(source: str, *, typescript: bool = False) -> tuple[str, ...]:
    """Return static specifiers of *source* in first-seen order, without duplicates."""
    tokens = tokenize(source)
    found: dict[str, None] = {}
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token.kind != "name" or _is_member_access(tokens, index):
            index += 1
            continue
        if token.value == "require":
            specifier = _call_argument(tokens, index)
            next_index = index + 1
        elif token.value == "import":
            specifier, next_index = _import_specifier(tokens, index, typescript=typescript)
        elif token.value == "export":
            specifier, next_index = _export_specifier(tokens, index, typescript=typescript)
        else:
            index += 1
            continue
        if specifier:
            found.setdefault(specifier, None)
        index = max(next_index, index + 1)
    return tuple(found)


def _import_specifier(
    tokens: Sequence[Token], index: int, *, typescript: bool
) -> tuple[str | None, int]:
    following = _at(tokens, index + 1)
    if following is None:
        return None, index + 1
    if following.is_punct("("):
        return _call_argument(tokens, index), index + 1
    if following.is_punct("."):
        return None, index + 1
    if following.static_text is not None:
        return following.static_text, index + 2

    type_only = typescript and following.is_name("type") and _starts_clause(_at(tokens, index + 2))
    start = index + 2 if type_only else index + 1
    # import x = require("a")
    name, equals = _at(tokens, start), _at(tokens, start + 1)
    if name is not None and name.kind == "name" and equals is not None and equals.is_punct("="):
        require = _at(tokens, start + 2)
        if require is not None and require.is_name("require"):
            specifier = _call_argument(tokens, start + 2)
            return (None if type_only else specifier), start + 6
        return None, start + 2

    specifier, end = _walk_to_from(tokens, start)
    return (None if type_only else specifier), end


def _export_specifier(
    tokens: Sequence[Token], index: int, *, typescript: bool
) -> tuple[str | None, int]:
    following = _at(tokens, index + 1)
    if following is None:
        return None, index + 1
    type_only = False
    start = index + 1
    if typescript and following.is_name("type"):
        after = _at(tokens, index + 2)
        if after is not None and (after.is_punct("{") or after.is_punct("*")):
            type_only = True
            start = index + 2
            following = after
    if not (following.is_punct("*") or following.is_punct("{")):
        return None, index + 1
    specifier, end = _walk_to_from(tokens, start)
    return (None if type_only else specifier), end


def _walk_to_from(tokens: Sequence[Token], start: int) -> tuple[str | None, int]:
    """Scan an import/export clause up to its ``from "<specifier>"`` tail."""
    depth = 0
    j = start
    while j < len(tokens):
        token = tokens[j]
        if token.is_punct("{"):
            depth += 1
        elif token.is_punct("}"):
            depth -= 1
            if depth <= 0:
                tail = _at(tokens, j + 1)
                if tail is None or not tail.is_name("from"):
                    return None, j + 1
        elif depth == 0:
            if token.is_name("from"):
                target = _at(tokens, j + 1)
                if target is not None and target.static_text is not None:
                    return target.static_text, j + 2
            elif token.is_punct(";"):
                return None, j + 1
            elif (token.is_name("import") or token.is_name("export")) and j > start:
                return None, j
        j += 1
    return None, j


def _call_argument(tokens: Sequence[Token], index: int) -> str | None:
    """Static string argument of ``<callee>("a")`` starting at *index*."""
    open_paren = _at(tokens, index + 1)
    argument = _at(tokens, index + 2)
    close = _at(tokens, index + 3)
    if open_paren is None or not open_paren.is_punct("("):
        return None
    if argument is None or argument.static_text is None:
        return None
    if close is None or not (close.is_punct(")") or close.is_punct(",")):
        return None
    return argument.static_text


def _starts_clause(token: Token | None) -> bool:
    if token is None:
        return False
    if token.kind == "name":
        return token.value not in ("from", "=")
    return token.is_punct("{") or token.is_punct("*")


def _is_member_access(tokens: Sequence[Token], index: int) -> bool:
    if index == 0:
        return False
    previous = tokens[index - 1]
    return previous.is_punct(".") or previous.is_punct("?.")


def _at(tokens: Sequence[Token], index: int) -> Token | None:
    if 0 <= index < len(tokens):
        return tokens[index]
    return None


def _regex_allowed(tokens: Sequence[Token]) -> bool:
    if not tokens:
        return True
    previous = tokens[-1]
    if previous.kind == "punct":
        return previous.value not in (")", "]")
    if previous.kind == "name":
        return previous.value in REGEX_PRECEDING_KEYWORDS
    return False


def _read_regex(source: str, start: int) -> int | None:
    """End index of the regex literal at *start*, or None if it is not one."""
    i = start + 1
    in_class = False
    while i < len(source):
        char = source[i]
        if char == "\n":
            return None
        if char == "\\":
            i += 2
            continue
        if char == "[":
            in_class = True
        elif char == "]":
            in_class = False
        elif char == "/" and not in_class:
            if i == start + 1:
                return None
            flags = REGEX_FLAGS_PATTERN.match(source, i + 1)
            return flags.end() if flags is not None else i + 1
        i += 1
    return None


def _read_string(source: str, start: int) -> tuple[str | None, int]:
    """Decode the quoted literal at *start*; unterminated literals yield None."""
    quote = source[start]
    out: list[str] = []
    i = start + 1
    while i < len(source):
        char = source[i]
        if char == quote:
            return "".join(out), i + 1
        if char == "\n":
            return None, i
        if char == "\\":
            decoded, i = _read_escape(source, i)
            out.append(decoded)
            continue
        out.append(char)
        i += 1
    return None, i


def _read_template_chunk(source: str, start: int) -> tuple[str, int, bool]:
    """Read template text until the closing backtick or a ``${``.

    Returns the text, the index after the terminator, and whether a
    substitution was opened.
    """
    out: list[str] = []
    i = start
    while i < len(source):
        char = source[i]
        if char == "`":
            return "".join(out), i + 1, False
        if source.startswith("${", i):
            return "".join(out), i + 2, True
        if char == "\\":
            decoded, i = _read_escape(source, i)
            out.append(decoded)
            continue
        out.append(char)
        i += 1
    return "".join(out), i, False


def _read_escape(source: str, start: int) -> tuple[str, int]:
    marker = source[start + 1 : start + 2]
    if marker == "\n":
        return "", start + 2
    if marker in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[marker], start + 2
    if marker == "x":
        digits = source[start + 2 : start + 4]
        if len(digits) == 2 and all(c in "0123456789abcdefABCDEF" for c in digits):
            return chr(int(digits, 16)), start + 4
    if marker == "u":
        if source.startswith("{", start + 2):
            end = source.find("}", start + 3)
            if end != -1:
                try:
                    return chr(int(source[start + 3 : end], 16)), end + 1
                except ValueError:
                    return "", end + 1
        digits = source[start + 2 : start + 6]
        if len(digits) == 4 and all(c in "0123456789abcdefABCDEF" for c in digits):
            return chr(int(digits, 16)), start + 6
    return marker, start + 2
