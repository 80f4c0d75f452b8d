from typing import Any, Literal
from pydantic import (
    BaseModel,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from enum import StrEnum


class ApiVersion(StrEnum):
    V1 = "admission.k8s.io/v1"


class Operation(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


def absent_if_invalid(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    try:
        return handler(value)
    except ValidationError:
        return None


class LenientModel(BaseModel):
    """A model whose ill-typed fields are treated as absent."""

    @field_validator("*", mode="wrap")
    @classmethod
    def validate_lenient(cls, val, handler):
        return absent_if_invalid(val, handler)


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#container-v1-core
class Container(LenientModel):
    name: str | None = None
    image: str | None = None


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#podspec-v1-core
class PodSpec(LenientModel):
    containers: list[Container] | None = None

    @field_validator("containers", mode="before")
    @classmethod
    def validate_containers(cls, val):
        # Entries that are not objects carry no image.
        if isinstance(val, list):
            return [item for item in val if isinstance(item, dict)]
        return val


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#objectmeta-v1-meta
class ObjectMeta(LenientModel):
    name: str | None = None
    namespace: str | None = None


class Pod(LenientModel):
    metadata: ObjectMeta | None = None
    spec: PodSpec | None = None


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#status-v1-meta
class AdmissionReviewStatus(BaseModel):
    status: str | None = None
    message: str | None = None
    reason: str | None = None
    code: int | None = None


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionResponse
class AdmissionResponse(BaseModel):
    allowed: bool
    uid: str | None = None
    status: AdmissionReviewStatus | None = None

    @model_validator(mode="after")
    def validate_model(self):
        if not self.allowed and self.status is None:
            raise ValueError("a denied response must include a status")

        return self


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionRequest
class AdmissionRequest(BaseModel):
    uid: str | None = None
    name: str | None = None
    namespace: str | None = None
    operation: Operation = Operation.CREATE
    object: Pod | None = None

    @field_validator("object", mode="wrap")
    @classmethod
    def validate_object(cls, val, handler):
        return absent_if_invalid(val, handler)


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionReview
class AdmissionReview(BaseModel):
    apiVersion: Literal[ApiVersion.V1] = ApiVersion.V1
    kind: Literal["AdmissionReview"] = "AdmissionReview"
    request: AdmissionRequest | None = None
    response: AdmissionResponse | None = None

    @model_validator(mode="after")
    def validate_model(self):
        if not (self.request or self.response):
            raise ValueError("must contain a request or a response")

        return self
