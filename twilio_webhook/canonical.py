'''Reconstruct the URL and parameters Twilio signed for an inbound request.

Twilio signs the webhook URL (including any query string the operator
configured) followed by the parameters it placed in the request *body*.
Web frameworks usually expose body and query parameters through a single
merged mapping, so the query-sourced entries have to be taken out again
before the signature is checked [1].

[1]: https://www.twilio.com/docs/usage/security#validating-requests
'''

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlsplit
import logging

logger = logging.getLogger(__name__)

VALIDATABLE_METHODS = frozenset(("GET", "POST"))

MultiValued = Mapping[str, Sequence[str] | str]


@dataclass(frozen=True)
class RawRequest:
    """Read-only view of an inbound request.

    `url` is the absolute URL without its query string. `params` is the
    merged query + body mapping; `form` holds the body parameters alone
    when the HTTP layer can tell them apart.
    """

    method: str
    url: str
    query_string: str | None = None
    params: MultiValued = field(default_factory=dict)
    form: MultiValued | None = None


@dataclass(frozen=True)
class CanonicalRequest:
    url: str
    params: dict[str, str] = field(default_factory=dict)


def is_validatable_method(method: str | None) -> bool:
    """Twilio only delivers webhooks with GET or POST."""
    return (method or "").upper() in VALIDATABLE_METHODS


def _values(values):
    if isinstance(values, str):
        return [values]
    return list(values)


def first_values(params: MultiValued) -> dict[str, str]:
    """Collapse a multi-valued mapping to the first value of each name"""
    selected = {}
    for name, values in params.items():
        values = _values(values)
        if values:
            selected[name] = values[0]

    return selected


def query_component(url: str) -> list[tuple[str, str]]:
    """Return the decoded (name, value) pairs of the query part of `url`.

    A URL that cannot be parsed has no query component.
    """
    try:
        query = urlsplit(url).query
    except ValueError:
        logger.debug("unable to parse query component of %r", url)
        return []

    return parse_qsl(query, keep_blank_values=True)


def select_signed_params(params: MultiValued, url: str) -> dict[str, str]:
    """Select the body-only parameters out of a merged parameter mapping.

    Values in `params` are already decoded, so they are matched against
    the decoded query component of `url`. Each query pair cancels out a
    single identical merged pair; whatever remains came from the body.
    """
    unmatched = Counter(query_component(url))
    selected = {}

    for name, values in params.items():
        for value in _values(values):
            if unmatched[(name, value)] > 0:
                unmatched[(name, value)] -= 1
                continue
            selected.setdefault(name, value)

    return selected


def normalize_url_override(url_override: str | None) -> str | None:
    """Return a usable override, or None when it is blank or malformed."""
    if url_override is None:
        return None

    url_override = str(url_override).strip()
    if not url_override:
        return None

    try:
        parts = urlsplit(url_override)
    except ValueError:
        parts = None

    if parts is None or parts.scheme not in ("http", "https") or not parts.netloc:
        logger.warning("ignoring malformed webhook url override: %s", url_override)
        return None

    return url_override


class RequestCanonicalizer:
    def __init__(self, url_override: str | None = None):
        self.url_override = normalize_url_override(url_override)

    def canonical_url(self, request: RawRequest) -> str:
        base_url = self.url_override or request.url

        # werkzeug reports a bare "?" as an empty query string, same as none
        if request.query_string:
            return f"{base_url}?{request.query_string}"

        return base_url

    def canonicalize(self, request: RawRequest) -> CanonicalRequest:
        url = self.canonical_url(request)

        if request.form is not None:
            params = first_values(request.form)
        else:
            params = select_signed_params(request.params, url)

        return CanonicalRequest(url=url, params=params)


def canonicalize(
    request: RawRequest, url_override: str | None = None
) -> CanonicalRequest:
    return RequestCanonicalizer(url_override).canonicalize(request)
