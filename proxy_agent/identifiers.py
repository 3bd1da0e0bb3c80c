"""Decoding of the agent identifiers advertised to the proxy server.

The identifiers are passed as a URL encoded query string, for example
`host=localhost&host=node1.mydomain.com&cidr=127.0.0.1/16&ipv4=1.2.3.4`.
Repeated keys add values to the same identifier type. Only the type tags are
checked here; the server decides what the values mean.
"""

import re
from enum import StrEnum
from urllib.parse import unquote_plus

from proxy_agent.errors import IdentifierSyntaxError, UnknownIdentifierTypeError


class IdentifierType(StrEnum):
    """Identifier types understood by the proxy server."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"
    CIDR = "cidr"
    HOST = "host"
    DEFAULT_ROUTE = "default-route"


IdentifierSet = dict[IdentifierType, tuple[str, ...]]

_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _unescape(component: str) -> str:
    bad = _BAD_ESCAPE_RE.search(component)
    if bad:
        raise IdentifierSyntaxError(
            f"invalid URL escape {component[bad.start():bad.start() + 3]!r}"
        )
    try:
        return unquote_plus(component, errors="strict")
    except UnicodeDecodeError:
        raise IdentifierSyntaxError(f"invalid UTF-8 in URL escape {component!r}") from None


def parse_query(text: str) -> dict[str, list[str]]:
    """Split a URL query string into its keys and values.

    Args:
        text: `&` separated `key=value` pairs.

    Returns:
        dict[str, list[str]]: Values per key, in the order they appear.

    Raises:
        IdentifierSyntaxError: If a pair contains `;` or a bad percent escape.
    """
    decoded: dict[str, list[str]] = {}
    for pair in text.split("&"):
        if ";" in pair:
            raise IdentifierSyntaxError("invalid semicolon separator in query")
        if not pair:
            continue
        key, _, value = pair.partition("=")
        decoded.setdefault(_unescape(key), []).append(_unescape(value))
    return decoded


def decode_identifiers(text: str) -> IdentifierSet:
    """Decode the agent identifier string into typed identifiers.

    Args:
        text: URL encoded identifier list. Empty means no identifiers.

    Returns:
        IdentifierSet: Values for each identifier type present.

    Raises:
        IdentifierSyntaxError: If the string is not a valid URL query.
        UnknownIdentifierTypeError: For the first key that is not an
            identifier type.
    """
    identifiers: IdentifierSet = {}
    for key, values in parse_query(text).items():
        try:
            identifier_type = IdentifierType(key)
        except ValueError:
            raise UnknownIdentifierTypeError(key) from None
        identifiers[identifier_type] = tuple(values)
    return identifiers


def pretty_print_identifiers(text: str) -> str:
    """Return the identifier string percent-decoded for display."""
    try:
        return _unescape(text)
    except IdentifierSyntaxError:
        return text
