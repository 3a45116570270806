"""
Base String Construction

The base string is the exact message that gets signed and verified:
    {normalized_uri}.{submission_id}.{form_id}.{epoch}

Binding the full URI into the signed message means a signature issued for one
endpoint does not verify against another.
"""

import logging
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)


# Characters Node's legacy url.parse percent-encodes outside the host
AUTO_ESCAPE = {
    " ": "%20",
    '"': "%22",
    "'": "%27",
    "<": "%3C",
    ">": "%3E",
    "\\": "%5C",
    "^": "%5E",
    "`": "%60",
    "{": "%7B",
    "|": "%7C",
    "}": "%7D",
}


def _escape(component: str) -> str:
    return "".join(AUTO_ESCAPE.get(char, char) for char in component)


def normalize_uri(uri: str) -> str:
    """
    Canonicalize a URI the same way on the signing and verifying side.

    Matches the `href` of Node's legacy url.parse, which existing senders use:
    surrounding whitespace is trimmed, scheme and host are lower-cased, a URI
    with a host but no path gets "/", an empty trailing "?" or "#" is kept, and
    the characters in AUTO_ESCAPE are percent-encoded in path, query and
    fragment. Userinfo and port are kept as given.

    Not reproduced: Node turns backslashes before the query into "/" and
    escapes embedded tabs/newlines, which urlsplit removes. URIs containing
    those may not verify against such senders.

    Args:
        uri: Full URL of the webhook endpoint

    Returns:
        Normalized URI string

    Example:
        >>> normalize_uri("HTTPS://Example.com/a b?")
        'https://example.com/a%20b?'
    """
    uri = uri.strip()
    parts = urlsplit(uri)
    netloc = parts.netloc
    if netloc:
        userinfo, at, hostport = netloc.rpartition("@")
        netloc = f"{userinfo}{at}{hostport.lower()}"
    path = _escape(parts.path) or ("/" if netloc else "")
    normalized = urlunsplit((parts.scheme.lower(), netloc, path, "", ""))

    head, hash_sep, _ = uri.partition("#")
    if "?" in head:
        normalized = f"{normalized}?{_escape(parts.query)}"
    if hash_sep:
        normalized = f"{normalized}#{_escape(parts.fragment)}"
    return normalized


def create_base_string(uri: str, submission_id: str, form_id: str, epoch: int) -> str:
    """
    Create the base string for signing/verification.

    Args:
        uri: Endpoint the webhook is POSTed to
        submission_id: Submission identifier
        form_id: Form identifier
        epoch: Milliseconds since Jan 1, 1970

    Returns:
        Base string

    Example:
        >>> create_base_string("https://example.com/hook", "sub1", "form1", 1583136171649)
        'https://example.com/hook.sub1.form1.1583136171649'
    """
    base_string = f"{normalize_uri(uri)}.{submission_id}.{form_id}.{int(epoch)}"
    logger.debug(f"Base string: {base_string}")
    return base_string
