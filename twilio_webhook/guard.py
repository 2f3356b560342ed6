'''Route decorator requiring a valid X-Twilio-Signature on a Flask view.

The decorated view only runs when the signature checks out. The
verifier and canonicalizer are looked up on `current_app`, where
`create_app` installs them.
'''

import functools

import flask
from flask import current_app, request

from .canonical import RawRequest, is_validatable_method
from .signature import SIGNATURE_HEADER


def raw_request(req: flask.Request) -> RawRequest:
    return RawRequest(
        method=req.method,
        url=req.base_url,
        query_string=req.query_string.decode("latin-1") or None,
        params=dict(req.values.lists()),
        form=dict(req.form.lists()),
    )


def request_is_valid(req: flask.Request) -> bool:
    if not is_validatable_method(req.method):
        current_app.logger.warning(
            "Unsupported method %s for request to %s", req.method, req.base_url
        )
        return False

    raw = raw_request(req)

    canonical = current_app.canonicalizer.canonicalize(raw)
    signature = req.headers.get(SIGNATURE_HEADER)

    if current_app.verifier.validate(canonical.url, canonical.params, signature):
        return True

    current_app.logger.warning(
        "Validation failed for %s request to %s", raw.method, canonical.url
    )
    return False


def unauthorized() -> flask.Response:
    return flask.Response("unauthorized", status=401, mimetype="text/plain")


def validate_twilio_signature(view):
    @functools.wraps(view)
    def guarded_view(*args, **kwargs):
        if not request_is_valid(request):
            return unauthorized()
        return view(*args, **kwargs)

    return guarded_view
