"""
SIP Address Interpretation
==========================

The narrow slice of the address model that the command system needs:
turn a raw string into something with a scheme, header lookup and a
string form. Calls, conferences and registration live in the core;
this module only reads addresses.

Address Grammar
---------------
    scheme ":" [userinfo "@"] hostport *( ";" param ) [ "?" header *( "&" header ) ]

    sip:alice@example.org
    sip:alice@example.org;transport=tls
    sip:alice@example.org?method=join-conference&conference-id=42
    sip-linphone:bob@example.org;method=show

Header Lookup
-------------
get_header() checks the URI headers after '?' first and then the ';'
parameters, so both the RFC 3261 header form and the parameter form
used by older launchers resolve the same way. Values are
percent-decoded on lookup only; as_string() gives back the encoded
text, so it always re-parses to the same address. Missing names give "" rather than None, which keeps
call sites free of None checks.

Failure Mode
------------
interpret_url() returns None for anything that doesn't look like
"scheme:rest". It never raises. Plain command lines such as
"call sip-address=sip:alice@example.org" fail here because the text
before the first colon is not a valid scheme. That failure is what
routes them to the plain-text tokenizer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Optional
from urllib.parse import unquote


# RFC 3986 scheme, then at least one non-whitespace character.
_ADDRESS_PATTERN = re.compile(r'^\s*([A-Za-z][A-Za-z0-9+.\-]*):(\S+)\s*$')


def _split_chunks(text: str, separator: str) -> tuple[str, ...]:
    return tuple(chunk for chunk in text.split(separator) if chunk)


@dataclass(frozen=True)
class SipAddress:
    """A parsed address.

    Attributes
    ----------
    scheme : str
        Lowercased URI scheme ("sip", "sip-linphone", "tel", ...).
    target : str
        Everything between the scheme and the first ';' or '?',
        usually "user@host[:port]".
    params : tuple of str
        Raw "name=value" URI parameters, still percent-encoded.
    headers : tuple of str
        Raw "name=value" URI headers, still percent-encoded.
    """
    scheme: str
    target: str
    params: tuple[str, ...] = field(default=())
    headers: tuple[str, ...] = field(default=())

    def get_header(self, name: str) -> str:
        for source in (self.headers, self.params):
            for chunk in source:
                key, _, value = chunk.partition('=')
                if unquote(key) == name:
                    return unquote(value)
        return ""

    def clean(self) -> SipAddress:
        """Copy without params and headers (the bare identity)."""
        return replace(self, params=(), headers=())

    def as_string(self) -> str:
        text = f"{self.scheme}:{self.target}"
        if self.params:
            text += ";" + ";".join(self.params)
        if self.headers:
            text += "?" + "&".join(self.headers)
        return text

    def __str__(self) -> str:
        return self.as_string()


def interpret_url(text: str) -> Optional[SipAddress]:
    """Interpret a raw string as an address.

    Parameters
    ----------
    text : str
        Raw input, e.g. "sip:alice@example.org?method=call".

    Returns
    -------
    SipAddress or None
        None when the text has no recognizable "scheme:" prefix or
        nothing after it.
    """
    if not text:
        return None

    match = _ADDRESS_PATTERN.match(text)
    if match is None:
        return None

    scheme, rest = match.groups()
    rest, _, header_text = rest.partition('?')
    target, _, param_text = rest.partition(';')
    if not target:
        return None

    return SipAddress(
        scheme=scheme.lower(),
        target=target,
        params=_split_chunks(param_text, ';'),
        headers=_split_chunks(header_text, '&'),
    )
