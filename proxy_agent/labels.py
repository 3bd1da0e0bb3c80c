"""Parsing of the label selector used to find proxy server leases."""

import re

from proxy_agent.errors import InvalidLabelSelectorError

_NAME_MAX_LENGTH = 63
_PREFIX_MAX_LENGTH = 253

_NAME_RE = re.compile(r"([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]")
_DNS_SUBDOMAIN_RE = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*")


def _is_label_name(name: str) -> bool:
    return len(name) <= _NAME_MAX_LENGTH and _NAME_RE.fullmatch(name) is not None


def _is_qualified_name(key: str) -> bool:
    prefix, slash, name = key.rpartition("/")
    if slash:
        if len(prefix) > _PREFIX_MAX_LENGTH or not _DNS_SUBDOMAIN_RE.fullmatch(prefix):
            return False
    return _is_label_name(name)


def parse_labels(text: str) -> dict[str, str]:
    """Parse a comma separated list of `key=value` labels.

    Args:
        text: Label selector such as `k8s-app=konnectivity-server,tier=control`.

    Returns:
        dict[str, str]: The selected labels.

    Raises:
        InvalidLabelSelectorError: If the selector is empty or any pair is
            malformed.
    """
    if not text.strip():
        raise InvalidLabelSelectorError("empty lease label selector")

    labels: dict[str, str] = {}
    for pair in text.split(","):
        parts = pair.split("=")
        if len(parts) != 2:
            raise InvalidLabelSelectorError(f"invalid label format: {pair!r}")
        key, value = parts[0].strip(), parts[1].strip()
        if not _is_qualified_name(key):
            raise InvalidLabelSelectorError(f"invalid label key {key!r} in {pair!r}")
        if value and not _is_label_name(value):
            raise InvalidLabelSelectorError(
                f"invalid label value {value!r} for key {key!r}"
            )
        labels[key] = value
    return labels
