from flask import Flask, Response, abort, current_app, request
from twilio.twiml.messaging_response import MessagingResponse
import logging

from twilio_webhook.canonical import RequestCanonicalizer
from twilio_webhook.guard import validate_twilio_signature
from twilio_webhook.signature import TwilioNullVerifier, TwilioSignatureVerifier


class CONFIG_DEFAULTS:
    VERIFY_WEBHOOK_SIGNATURE = True
    TWILIO_WEBHOOK_URL_OVERRIDE = None
    LOGLEVEL = "INFO"


class ConfigurationError(Exception):
    pass


def require_config(app, name):
    if not str(app.config.get(name) or "").strip():
        raise ConfigurationError(f"missing {name}")


def twiml_message(text):
    """Wrap a reply in a TwiML <Response><Message> document"""
    response = MessagingResponse()
    response.message(text)
    return Response(str(response), mimetype="application/xml")


def message_body():
    body = request.values.get("Body")
    if body is None:
        abort(400, "Missing Body parameter")

    current_app.logger.info("Valid webhook call, the message Body is: %s", body)
    return body


def create_app(config_from_env=True, config=None):
    """Create and configure flask application"""
    app = Flask(__name__)

    # Configure application:
    #   Defaults ->
    #     Environment ->
    #       Explicit config
    app.config.from_object(CONFIG_DEFAULTS)
    if config_from_env:
        app.config.from_prefixed_env()
    app.config.from_object(config)

    if app.config.get("VERIFY_WEBHOOK_SIGNATURE", True):
        require_config(app, "TWILIO_AUTH_TOKEN")
        app.verifier = TwilioSignatureVerifier(str(app.config["TWILIO_AUTH_TOKEN"]))
    else:
        app.logger.warning("webhook signature verification is disabled")
        app.verifier = TwilioNullVerifier()

    app.canonicalizer = RequestCanonicalizer(
        app.config.get("TWILIO_WEBHOOK_URL_OVERRIDE")
    )

    @app.route("/healthz", methods=["GET"])
    def healthz():
        return "OK"

    @app.route("/webhook", methods=["GET"])
    @validate_twilio_signature
    def get_webhook():
        message_body()
        return twiml_message("Congrats, you're verified by GET \U0001F995")

    @app.route("/webhook", methods=["POST"])
    @validate_twilio_signature
    def post_webhook():
        message_body()
        return twiml_message("Congrats, you're verified by POST \U0001F996")

    @app.before_request
    def configure_logging():
        logging.basicConfig(level=current_app.config.get("LOGLEVEL", "INFO"))

    return app


if __name__ == "__main__":
    create_app().run()
