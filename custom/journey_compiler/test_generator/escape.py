"""
Escaping and identifier helpers shared by every render target
"""

import re


def escape_string(value: str) -> str:
    """
    Escape text for a single- or double-quoted TypeScript string literal

    Examples:
        >>> escape_string("it's")
        "it\\\\'s"
    """
    return (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def quote(value: str) -> str:
    return f"'{escape_string(value)}'"


def escape_regex(value: str) -> str:
    """Escape text for the body of a ``/.../`` regex literal"""
    return re.sub(r"([.*+?^${}()|\[\]\\/])", r"\\\1", value)


def escape_comment(value: str) -> str:
    """Single-line text safe inside ``//`` and ``/* */`` comments"""
    return re.sub(r"\s*[\r\n]+\s*", " ", value).replace("*/", "* /")


def escape_template_literal(value: str) -> str:
    """Escape a backtick template literal body, keeping ``${...}`` substitutions"""
    return value.replace("\\", "\\\\").replace("`", "\\`")


def _words(value: str):
    return [w for w in re.split(r"[^A-Za-z0-9]+", value) if w]


def to_pascal_case(value: str) -> str:
    """
    Examples:
        >>> to_pascal_case("order-history page")
        'OrderHistoryPage'
    """
    result = "".join(word[:1].upper() + word[1:].lower() for word in _words(value))
    if not result:
        return "Module"
    return result if not result[0].isdigit() else f"M{result}"


def to_camel_case(value: str) -> str:
    """
    Examples:
        >>> to_camel_case("AC-1")
        'ac1'
    """
    pascal = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def is_identifier(value: str) -> bool:
    return re.match(r"^[A-Za-z_$][A-Za-z0-9_$]*$", value) is not None


def property_access(obj: str, path: str) -> str:
    """``obj.a.b`` when every segment is an identifier, else bracket access"""
    parts = path.split(".")
    if all(is_identifier(part) for part in parts):
        return f"{obj}.{path}"
    return obj + "".join(f"[{quote(part)}]" for part in parts)


__all__ = [
    "escape_string",
    "quote",
    "escape_regex",
    "escape_comment",
    "escape_template_literal",
    "to_pascal_case",
    "to_camel_case",
    "is_identifier",
    "property_access",
]
