import base64
import hmac
from collections.abc import Mapping

SIGNATURE_HEADER = "X-Twilio-Signature"


class TwilioSignatureVerifier:
    """Implement webhook request validation as described in [1].

    The signed string is the full webhook URL followed by each POST
    parameter name and value, sorted by name, with no separators. It is
    signed with HMAC-SHA1 using the account auth token and sent base64
    encoded in the X-Twilio-Signature header.

    [1]: https://www.twilio.com/docs/usage/security#validating-requests
    """

    def __init__(self, secret: str | None):
        # an unset token still produces a (useless) signature rather than an error
        self.secret = (secret or "").encode()

    def compute_signature(self, url: str, params: Mapping[str, str]) -> str:
        payload = url + "".join(name + params[name] for name in sorted(params))

        local_signature = hmac.HMAC(
            key=self.secret,
            msg=payload.encode(),
            digestmod="sha1",
        )

        return base64.b64encode(local_signature.digest()).decode()

    def validate(
        self, url: str, params: Mapping[str, str], signature: str | None
    ) -> bool:
        # an unset token never validates anything
        if not signature or not self.secret:
            return False

        return hmac.compare_digest(
            signature.encode(),
            self.compute_signature(url, params).encode(),
        )


class TwilioNullVerifier:
    """A null verifier that is always successful."""

    def validate(
        self, url: str, params: Mapping[str, str], signature: str | None
    ) -> bool:
        return True


def verify(
    secret: str | None, url: str, params: Mapping[str, str], signature: str | None
) -> bool:
    return TwilioSignatureVerifier(secret).validate(url, params, signature)
