import base64
import hashlib
import hmac

import pytest
from twilio.request_validator import RequestValidator

import twilio_webhook.signature as signature

URL = "https://mycompany.com/myapp.php?foo=1&bar=2"
PARAMS = {
    "CallSid": "CA1234567890ABCDE",
    "Caller": "+12349013030",
    "Digits": "1234",
    "From": "+12349013030",
    "To": "+18005551212",
}


@pytest.fixture
def verifier():
    return signature.TwilioSignatureVerifier("12345")


def test_signing_string(verifier):
    payload = (
        URL
        + "CallSid" + "CA1234567890ABCDE"
        + "Caller" + "+12349013030"
        + "Digits" + "1234"
        + "From" + "+12349013030"
        + "To" + "+18005551212"
    )
    expected = base64.b64encode(
        hmac.new(b"12345", payload.encode(), hashlib.sha1).digest()
    ).decode()

    assert verifier.compute_signature(URL, PARAMS) == expected


def test_matches_twilio_library(verifier):
    assert verifier.compute_signature(URL, PARAMS) == RequestValidator(
        "12345"
    ).compute_signature(URL, PARAMS)


def test_no_params_signs_url_only(verifier):
    expected = base64.b64encode(
        hmac.new(b"12345", URL.encode(), hashlib.sha1).digest()
    ).decode()

    assert verifier.compute_signature(URL, {}) == expected


def test_sorted_by_codepoint(verifier):
    # "Z" (0x5a) sorts before "a" (0x61)
    expected = base64.b64encode(
        hmac.new(b"12345", (URL + "Z1a2").encode(), hashlib.sha1).digest()
    ).decode()

    assert verifier.compute_signature(URL, {"a": "2", "Z": "1"}) == expected


def test_good_signature(verifier):
    assert verifier.validate(URL, PARAMS, verifier.compute_signature(URL, PARAMS))


def test_param_order_is_irrelevant(verifier):
    sig = verifier.compute_signature(URL, {"a": "1", "b": "2"})

    assert verifier.validate(URL, {"b": "2", "a": "1"}, sig)


def test_other_secret(verifier):
    sig = signature.TwilioSignatureVerifier("54321").compute_signature(URL, PARAMS)

    assert not verifier.validate(URL, PARAMS, sig)


@pytest.mark.parametrize(
    "params",
    [
        {**PARAMS, "Digits": "4321"},
        {**PARAMS, "Extra": "value"},
        {name: value for name, value in PARAMS.items() if name != "To"},
    ],
    ids=["changed", "added", "removed"],
)
def test_tampered_params(verifier, params):
    sig = verifier.compute_signature(URL, PARAMS)

    assert not verifier.validate(URL, params, sig)


def test_tampered_url(verifier):
    sig = verifier.compute_signature(URL, PARAMS)

    assert not verifier.validate(URL.replace("foo=1", "foo=2"), PARAMS, sig)


@pytest.mark.parametrize("sig", [None, "", "not-a-signature", "sïgnature"])
def test_bad_signature(verifier, sig):
    assert not verifier.validate(URL, PARAMS, sig)


@pytest.mark.parametrize("secret", [None, ""])
def test_missing_secret(secret):
    verifier = signature.TwilioSignatureVerifier(secret)
    legit = signature.TwilioSignatureVerifier("12345").compute_signature(URL, PARAMS)

    assert not verifier.validate(URL, PARAMS, legit)
    assert not verifier.validate(URL, PARAMS, None)


@pytest.mark.parametrize("secret", [None, ""])
def test_missing_secret_rejects_empty_key_signature(secret):
    forged = base64.b64encode(
        hmac.new(b"", (URL + "Bodyhello").encode(), hashlib.sha1).digest()
    ).decode()
    verifier = signature.TwilioSignatureVerifier(secret)

    assert verifier.compute_signature(URL, {"Body": "hello"}) == forged
    assert not verifier.validate(URL, {"Body": "hello"}, forged)
    assert not signature.verify(secret, URL, {"Body": "hello"}, forged)


def test_non_ascii_values(verifier):
    params = {"Body": "¿Qué tal? 🦕"}

    assert verifier.compute_signature(URL, params) == RequestValidator(
        "12345"
    ).compute_signature(URL, params)


def test_verify():
    sig = signature.TwilioSignatureVerifier("12345").compute_signature(URL, PARAMS)

    assert signature.verify("12345", URL, PARAMS, sig)
    assert not signature.verify("54321", URL, PARAMS, sig)


def test_null_verifier():
    assert signature.TwilioNullVerifier().validate(URL, PARAMS, None)
