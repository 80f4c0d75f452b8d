import functools
import logging
import sys

import pydantic

from flask import Flask, request, jsonify, current_app

from image_prefix_webhook.models import (
    BaseModel,
    AdmissionReview,
    AdmissionResponse,
    AdmissionReviewStatus,
)

LOG = logging.getLogger(__name__)

DENIED_STATUS = "Failure"
DENIED_MESSAGE = "The following containers have incorrect prefixes "
DENIED_REASON = "Only private images are allowed"
DENIED_CODE = 402


class DEFAULTS:
    TLS_CERT = "certs/tls.crt"
    TLS_KEY = "certs/tls.key"
    HOST = "0.0.0.0"
    PORT = 443


def jsonresponse():
    """Transforms the response from a view function into a JSON object."""

    def _outer(func):
        @functools.wraps(func)
        def _inner(*args, **kwargs):
            res = func(*args, **kwargs)
            if isinstance(res, BaseModel):
                return jsonify(res.model_dump(exclude_none=True))
            else:
                return jsonify(res)

        return _inner

    return _outer


def pod_images(review: AdmissionReview) -> list[str] | None:
    """Return the container images of the pod under review, in container
    order, or None if the review does not describe any containers.

    Containers with an empty or missing image are skipped.
    """

    if review.request is None or review.request.object is None:
        return None

    pod = review.request.object
    if pod.metadata is not None and pod.metadata.name:
        LOG.info("Evaluating pod %s", pod.metadata.name)

    if pod.spec is None or pod.spec.containers is None:
        return None

    return [
        container.image for container in pod.spec.containers if container.image
    ]


def evaluate(review: AdmissionReview, required_prefix: str) -> AdmissionResponse:
    """Decide whether the pod in `review` may be admitted.

    A pod is allowed only if every container image starts with
    `required_prefix`. Reviews that carry no containers at all are allowed.
    """

    uid = review.request.uid if review.request else None

    images = pod_images(review)
    if images is None:
        return AdmissionResponse(allowed=True, uid=uid)

    without_prefix = [img for img in images if not img.startswith(required_prefix)]
    LOG.info("Found the following images without prefix: %s", without_prefix)

    if without_prefix:
        return AdmissionResponse(
            allowed=False,
            uid=uid,
            status=AdmissionReviewStatus(
                status=DENIED_STATUS,
                message=DENIED_MESSAGE + ",".join(without_prefix),
                reason=DENIED_REASON,
                code=DENIED_CODE,
            ),
        )

    return AdmissionResponse(allowed=True, uid=uid)


@jsonresponse()
def validate_pod():
    body = request.get_json()
    LOG.debug("Got request %s", body)

    review = AdmissionReview.model_validate(body)
    return AdmissionReview(
        response=evaluate(review, current_app.config["REQUIRED_PREFIX"])
    )


def handle_validationerror(err):
    return str(err), 400, {"content-type": "text/plain"}


def health():
    return "OK", 200, {"content-type": "text/plain"}


def create_app(**config) -> Flask:
    """Use an application factory [1] to create the Flask app.

    Configuration comes from DEFAULTS, then from WEBHOOK_* environment
    variables, then from keyword arguments. The application refuses to start
    without a REQUIRED_PREFIX.

    [1]: https://flask.palletsprojects.com/en/3.0.x/patterns/appfactories/
    """

    app = Flask(__name__)
    app.config.from_object(DEFAULTS)
    app.config.from_prefixed_env("WEBHOOK", loads=str)
    if config:
        app.config.update(config)

    if not app.config.get("REQUIRED_PREFIX"):
        LOG.error("Missing required prefix configuration")
        sys.exit(1)

    app.errorhandler(pydantic.ValidationError)(handle_validationerror)
    app.add_url_rule("/healthz", view_func=health)
    app.add_url_rule("/", view_func=validate_pod, methods=["POST"])

    return app
