"""
Relay URL normalization shared by the compiler and the relay state tracker.

Both the [compiler][reqspell.query.compiler] (relay tokens and NIP-19 relay
hints) and the [RelayStateTracker][reqspell.state.tracker.RelayStateTracker]
key relays by the string produced here, so the same logical relay always maps
to one tracker entry.

The canonical form is ``scheme://host[:port]/path[?query][#fragment]``:

* scheme forced to ``ws``/``wss`` (``wss`` when missing, ``http``/``https``
  mapped to ``ws``/``wss``);
* scheme and host lowercased (RFC 3986 normalization);
* default ports (80 for ``ws``, 443 for ``wss``) omitted;
* duplicate slashes collapsed, an empty path becomes ``/``, non-root paths
  lose their trailing slash.

The function is deterministic and idempotent:
``normalize_relay_url(normalize_relay_url(x)) == normalize_relay_url(x)``.
"""

from __future__ import annotations

import re

from rfc3986 import uri_reference
from rfc3986.exceptions import RFC3986Exception
from rfc3986.validators import Validator


_SCHEMES: dict[str, str] = {
    "ws": "ws",
    "wss": "wss",
    "http": "ws",
    "https": "wss",
}

_DEFAULT_PORTS: dict[str, str] = {"ws": "80", "wss": "443"}

# Bare "relay.example.com[:port][/path]" shorthand accepted in commands
_RELAY_DOMAIN_RE = re.compile(r"^[a-zA-Z0-9][\w.-]+\.[a-zA-Z]{2,}(:\d+)?(/.*)?$")


def normalize_relay_url(raw: str) -> str:
    """Return the canonical form of a relay URL.

    Args:
        raw: Relay URL as typed by a user or found in a relay hint, with or
            without scheme (e.g. ``"Relay.Example.COM"``,
            ``"wss://relay.example.com:8080/path"``).

    Returns:
        The normalized URL, e.g. ``"wss://relay.example.com/"``.

    Raises:
        TypeError: If *raw* is not a string.
        ValueError: If *raw* is empty, contains null bytes, uses a scheme
            other than ws/wss/http/https, or is not a valid URI.

    Examples:
        ```python
        normalize_relay_url("relay.example.com")        # 'wss://relay.example.com/'
        normalize_relay_url("wss://Relay.Example.COM")  # 'wss://relay.example.com/'
        normalize_relay_url("ws://relay.example.com")   # 'ws://relay.example.com/'
        normalize_relay_url("wss://r.example.com/path") # 'wss://r.example.com/path'
        ```
    """
    if not isinstance(raw, str):
        raise TypeError(f"Relay URL must be a string, got {type(raw).__name__}")

    value = raw.strip()
    if not value:
        raise ValueError("Relay URL cannot be empty")
    if "\x00" in value:
        raise ValueError("Relay URL contains null bytes")

    if "://" not in value:
        value = f"wss://{value}"

    try:
        uri = uri_reference(value).normalize()
        scheme = _SCHEMES.get(uri.scheme or "")
        if scheme is None:
            raise ValueError(f"Invalid scheme: must be ws or wss, got {uri.scheme!r}")

        uri = uri.copy_with(scheme=scheme)
        Validator().require_presence_of("scheme", "host").check_validity_of(
            "scheme", "host", "port", "path"
        ).validate(uri)
    except RFC3986Exception as e:
        raise ValueError(f"Invalid relay URL: {e}") from None

    host = uri.host or ""
    if not host:
        raise ValueError(f"Invalid relay URL: missing host in {raw!r}")

    port = uri.port
    authority = host if not port or port == _DEFAULT_PORTS[scheme] else f"{host}:{port}"

    path = uri.path or ""
    while "//" in path:
        path = path.replace("//", "/")
    path = path.rstrip("/") or "/"

    url = f"{scheme}://{authority}{path}"
    if uri.query:
        url += f"?{uri.query}"
    if uri.fragment:
        url += f"#{uri.fragment}"
    return url


def try_normalize_relay_url(raw: str) -> str | None:
    """Return the normalized URL, or ``None`` when *raw* cannot be normalized."""
    try:
        return normalize_relay_url(raw)
    except (TypeError, ValueError):
        return None


def is_relay_reference(token: str) -> bool:
    """Return True if a command token denotes a relay.

    A token is a relay reference when it carries a ``ws://``/``wss://``
    scheme, or when it looks like a bare domain
    (``label(.label)+`` with a TLD of at least two letters, optional port
    and path).
    """
    if not token or token.startswith("-"):
        return False
    if has_relay_scheme(token):
        return True
    return _RELAY_DOMAIN_RE.match(token) is not None


def has_relay_scheme(token: str) -> bool:
    """Return True if *token* starts with ``ws://`` or ``wss://`` (any case)."""
    lowered = token[:6].lower()
    return lowered.startswith(("ws://", "wss://"))
