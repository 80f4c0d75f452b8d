import logging
import signal
import ssl
import sys

from flask import Flask
from werkzeug.serving import BaseWSGIServer, make_server

from image_prefix_webhook import validate
from image_prefix_webhook.exc import CertificateError

LOG = logging.getLogger(__name__)


def load_ssl_context(cert_file: str, key_file: str) -> ssl.SSLContext:
    """Build a server-side TLS context from a certificate and private key."""

    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(cert_file, key_file)
    except (OSError, ssl.SSLError) as err:
        LOG.error(
            "failed to load TLS material from %s, %s: %s", cert_file, key_file, err
        )
        raise CertificateError(f"unable to load certificate {cert_file}") from err

    return context


def make_https_server(app: Flask) -> BaseWSGIServer:
    ssl_context = load_ssl_context(app.config["TLS_CERT"], app.config["TLS_KEY"])

    return make_server(
        app.config["HOST"],
        int(app.config["PORT"]),
        app,
        threaded=True,
        ssl_context=ssl_context,
    )


def handle_sigterm(signum, frame):
    raise KeyboardInterrupt()


def serve(app: Flask):
    """Serve app over HTTPS until interrupted by SIGINT or SIGTERM.

    Must be called from the main thread.
    """

    with make_https_server(app) as httpd:
        previous = signal.signal(signal.SIGTERM, handle_sigterm)
        LOG.info("Server started on %s:%s", app.config["HOST"], httpd.server_port)
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            LOG.info("Shutting down")
        finally:
            if previous is not None:
                signal.signal(signal.SIGTERM, previous)


def main():
    logging.basicConfig(level=logging.INFO)

    app = validate.create_app()
    try:
        serve(app)
    except CertificateError as err:
        LOG.error("%s", err)
        sys.exit(1)


if __name__ == "__main__":
    main()
