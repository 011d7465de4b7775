"""
Expansion of HAL link hrefs into request URLs.

Hrefs are treated as RFC 6570 URI templates. Only variables named in the
template are substituted: extra parameters are ignored rather than appended to
the query string, and variables without a value expand to nothing.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import quote, urljoin, urlsplit

from halkit.errors import InvalidLinkError
from halkit.models import Link

_RESERVED = ":/?#[]@!$&'()*+,;="
_VARNAME = re.compile(r"^(?:[A-Za-z0-9_]|%[0-9A-Fa-f]{2})(?:\.?(?:[A-Za-z0-9_]|%[0-9A-Fa-f]{2}))*$")
_DOUBLE_ENCODED = re.compile(r"%25([0-9A-Fa-f]{2})")


@dataclass(frozen=True, slots=True)
class _Operator:
    first: str
    separator: str
    named: bool
    if_empty: str
    allow_reserved: bool


_OPERATORS: dict[str, _Operator] = {
    "": _Operator("", ",", False, "", False),
    "+": _Operator("", ",", False, "", True),
    "#": _Operator("#", ",", False, "", True),
    ".": _Operator(".", ".", False, "", False),
    "/": _Operator("/", "/", False, "", False),
    ";": _Operator(";", ";", True, "", False),
    "?": _Operator("?", "&", True, "=", False),
    "&": _Operator("&", "&", True, "=", False),
}


def _encode(value: str, allow_reserved: bool) -> str:
    if not allow_reserved:
        return quote(value, safe="")
    # Reserved expansion keeps existing pct-encoded triplets intact.
    return _DOUBLE_ENCODED.sub(r"%\1", quote(value, safe=_RESERVED))


def _expand_expression(expression: str, parameters: Mapping[str, str], href: str) -> str:
    if not expression:
        raise InvalidLinkError("Empty template expression '{}'.", href=href)

    if expression[0] in "+#./;?&":
        operator = _OPERATORS[expression[0]]
        expression = expression[1:]
    elif expression[0] in "=,!@|":
        raise InvalidLinkError(f"Reserved template operator '{expression[0]}'.", href=href)
    else:
        operator = _OPERATORS[""]

    pieces: list[str] = []
    for spec in expression.split(","):
        name, prefix = spec, None
        if name.endswith("*"):
            name = name[:-1]
        elif ":" in name:
            name, length = name.split(":", 1)
            if not length.isdigit() or not 0 < int(length) < 10000:
                raise InvalidLinkError(f"Invalid prefix length in '{spec}'.", href=href)
            prefix = int(length)
        if not _VARNAME.match(name):
            raise InvalidLinkError(f"Invalid template variable '{spec}'.", href=href)

        value = parameters.get(name)
        if value is None:
            continue
        value = str(value)
        if prefix is not None:
            value = value[:prefix]
        encoded = _encode(value, operator.allow_reserved)
        if not operator.named:
            pieces.append(encoded)
        elif encoded:
            pieces.append(f"{name}={encoded}")
        else:
            pieces.append(f"{name}{operator.if_empty}")

    if not pieces:
        return ""
    return operator.first + operator.separator.join(pieces)


def expand_template(href: str, parameters: Mapping[str, str]) -> str:
    """Expand every ``{...}`` expression in href using parameters."""
    output: list[str] = []
    position = 0
    while position < len(href):
        opening = href.find("{", position)
        closing = href.find("}", position)
        if closing != -1 and (opening == -1 or closing < opening):
            raise InvalidLinkError("Unmatched '}' in link href.", href=href)
        if opening == -1:
            output.append(_encode(href[position:], allow_reserved=True))
            break
        output.append(_encode(href[position:opening], allow_reserved=True))
        closing = href.find("}", opening)
        if closing == -1:
            raise InvalidLinkError("Unterminated '{' in link href.", href=href)
        expression = href[opening + 1 : closing]
        if "{" in expression:
            raise InvalidLinkError("Nested '{' in link href.", href=href)
        output.append(_expand_expression(expression, parameters, href))
        position = closing + 1
    return "".join(output)


class LinkResolver:
    """Turns a Link plus template parameters into an absolute URL."""

    def resolve(
        self,
        link: Link,
        parameters: Mapping[str, str] | None = None,
        *,
        base_url: str | None = None,
    ) -> str:
        if link is None:
            raise InvalidLinkError("link must not be None.")
        href = getattr(link, "href", None)
        if not isinstance(href, str) or not href.strip():
            raise InvalidLinkError("link must carry a non-empty href.", href=href)

        url = expand_template(href.strip(), parameters or {})
        if base_url:
            url = urljoin(base_url, url)

        try:
            parts = urlsplit(url)
            _ = parts.port  # ValueError for a malformed port
        except ValueError as exc:
            raise InvalidLinkError(f"Link expanded to an unparseable URL: {url}", href=href) from exc
        if not parts.scheme or not parts.netloc:
            raise InvalidLinkError(f"Link did not expand to an absolute URL: {url}", href=href)
        return url
