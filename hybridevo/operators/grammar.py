"""
Tokenizing helpers for the operator mini-language.

Four separator levels, outermost first::

    |   alternatives / list entries
    ;   option lists
    ,   option sub-values
    /   fourth-level values

Separators inside square brackets (or parentheses) belong to the enclosed
sub-specification and are never split on, which is how operator strings nest:

    multiple:40%[chained:100%portugal:nocuts=2|50%germany:]|60%noxover
"""

from __future__ import annotations

from typing import List, Tuple

from hybridevo.exceptions import OperatorConfigError

FIRST_LEVEL = "|"
SECOND_LEVEL = ";"
THIRD_LEVEL = ","
FOURTH_LEVEL = "/"

_OPENING = {"[": "]", "(": ")"}
_CLOSING = {"]", ")"}


def split_level(text: str, separator: str) -> List[str]:
    """Split *text* at top-level occurrences of *separator*.

    Tokens are stripped; an empty or blank input gives an empty list.
    """
    if not text.strip():
        return []
    tokens: List[str] = []
    depth = 0
    current: List[str] = []
    for char in text:
        if char in _OPENING:
            depth += 1
        elif char in _CLOSING:
            depth -= 1
            if depth < 0:
                raise OperatorConfigError("grammar", text, "unbalanced brackets")
        if char == separator and depth == 0:
            tokens.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if depth != 0:
        raise OperatorConfigError("grammar", text, "unbalanced brackets")
    tokens.append("".join(current).strip())
    return tokens


def tokenize_first_level(text: str) -> List[str]:
    return split_level(text, FIRST_LEVEL)


def tokenize_second_level(text: str) -> List[str]:
    return split_level(text, SECOND_LEVEL)


def tokenize_third_level(text: str) -> List[str]:
    return split_level(text, THIRD_LEVEL)


def tokenize_fourth_level(text: str) -> List[str]:
    return split_level(text, FOURTH_LEVEL)


def unwrap(token: str) -> str:
    """Strip one pair of square brackets enclosing the whole token."""
    token = token.strip()
    if token.startswith("[") and token.endswith("]"):
        depth = 0
        for i, char in enumerate(token):
            if char == "[":
                depth += 1
            elif char == "]":
                depth -= 1
                if depth == 0 and i != len(token) - 1:
                    # first bracket closes early, e.g. "[a]|[b]"
                    return token
        return token[1:-1].strip()
    return token


def strip_prefix(text: str, prefix: str) -> str:
    return text[len(prefix):].strip()


def matches(text: str, *names: str) -> bool:
    """Case-insensitive match of a bare keyword, with or without a colon."""
    lowered = text.strip().lower()
    return any(lowered == name or lowered == name + ":" for name in names)


def parse_percentage(value: str, family: str, token: str) -> float:
    """Parse ``"30"`` or ``"30.5"`` into the fraction 0.30 / 0.305."""
    try:
        return float(value.strip()) / 100.0
    except ValueError as exc:
        raise OperatorConfigError(family, token, "malformed percentage") from exc


def parse_weighted_list(text: str, family: str) -> List[Tuple[float, str]]:
    """``30%specA|70%[specB]`` -> ``[(0.3, "specA"), (0.7, "specB")]``."""
    entries = []
    for token in tokenize_first_level(text):
        if "%" not in token:
            raise OperatorConfigError(family, token, "missing percentage")
        perc, spec = token.split("%", 1)
        entries.append((parse_percentage(perc, family, token), unwrap(spec)))
    return entries


def parse_scheduled_list(text: str, family: str) -> List[Tuple[float, str]]:
    """``30%[specA] 70%[specB]`` -> ``[(0.3, "specA"), (0.7, "specB")]``."""
    entries: List[Tuple[float, str]] = []
    pos = 0
    text = text.strip()
    while pos < len(text):
        if text[pos].isspace() or text[pos] == FIRST_LEVEL:
            pos += 1
            continue
        perc_end = text.find("%", pos)
        if perc_end < 0 or perc_end + 1 >= len(text) or text[perc_end + 1] != "[":
            raise OperatorConfigError(family, text[pos:], "expected 'NN%[...]' at")
        perc = parse_percentage(text[pos:perc_end], family, text[pos:])
        depth = 0
        end = perc_end + 1
        for end in range(perc_end + 1, len(text)):
            if text[end] == "[":
                depth += 1
            elif text[end] == "]":
                depth -= 1
                if depth == 0:
                    break
        if depth != 0:
            raise OperatorConfigError(family, text[pos:], "unbalanced brackets")
        entries.append((perc, text[perc_end + 2:end].strip()))
        pos = end + 1
    if not entries:
        raise OperatorConfigError(family, text, "no scheduled operators")
    return entries


def string_token(key: str, token: str) -> str:
    return token[len(key):].strip()


def bool_token(key: str, token: str, family: str) -> bool:
    value = string_token(key, token).lower()
    if value in ("true", "yes", "1", "on"):
        return True
    if value in ("false", "no", "0", "off"):
        return False
    raise OperatorConfigError(family, token, "not a boolean value")


def int_token(key: str, token: str, family: str) -> int:
    try:
        return int(string_token(key, token))
    except ValueError as exc:
        raise OperatorConfigError(family, token, "not an integer value") from exc


def float_token(key: str, token: str, family: str) -> float:
    try:
        return float(string_token(key, token))
    except ValueError as exc:
        raise OperatorConfigError(family, token, "not a number value") from exc


def float_list_token(key: str, token: str, family: str) -> List[float]:
    """``lower=-1/-2.5/3`` -> ``[-1.0, -2.5, 3.0]``."""
    try:
        return [float(v) for v in tokenize_fourth_level(string_token(key, token))]
    except ValueError as exc:
        raise OperatorConfigError(family, token, "not a list of numbers") from exc
