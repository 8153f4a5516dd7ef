"""Validating admission endpoint for Registry, Project and Scanner objects.

``POST /`` receives a Kubernetes ``AdmissionReview``, builds an overlay of
the live store reflecting the requested mutation and runs the consistency
validator on it. The verdict is always returned with HTTP 200; only
undecodable requests are rejected with HTTP 400.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import msgspec

from registryman.api.errors import InvalidAdmissionRequestError
from registryman.config.loader import ManifestValidationError, parse_resource
from registryman.config.models import RESOURCE_TYPES
from registryman.config.overlay import OverlayStore
from registryman.config.validation import ConsistencyError, validate_consistency
from registryman.logging import get_logger, log_debug, log_info

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from registryman.api.store_handle import LiveStoreHandle
    from registryman.config.models import Resource
    from registryman.config.store import ApiObjectStore

__all__ = [
    "AdmissionRequest",
    "AdmissionResource",
    "AdmissionResponse",
    "AdmissionReview",
    "decode_review",
]

logger = get_logger(__name__)

ADMISSION_API_VERSION = "admission.k8s.io/v1"
FORBIDDEN = 403


class GroupVersionKind(msgspec.Struct, kw_only=True):
    group: str = ""
    version: str = ""
    kind: str


class AdmissionRequest(msgspec.Struct, kw_only=True, rename="camel"):
    """The ``request`` member of an AdmissionReview."""

    uid: str
    kind: GroupVersionKind
    operation: str
    name: str = ""
    namespace: str = ""
    object: dict[str, typ.Any] | None = None
    old_object: dict[str, typ.Any] | None = None


class AdmissionStatus(msgspec.Struct, kw_only=True):
    code: int
    message: str


class AdmissionResponse(msgspec.Struct, kw_only=True, omit_defaults=True):
    """The ``response`` member of an AdmissionReview."""

    uid: str
    allowed: bool
    status: AdmissionStatus | None = None


class AdmissionReview(msgspec.Struct, kw_only=True, rename="camel", omit_defaults=True):
    """Envelope of admission requests and responses."""

    api_version: str = ADMISSION_API_VERSION
    kind: str = "AdmissionReview"
    request: AdmissionRequest | None = None
    response: AdmissionResponse | None = None


_REVIEW_DECODER = msgspec.json.Decoder(AdmissionReview)


def decode_review(body: bytes) -> AdmissionRequest:
    """Decode an AdmissionReview body and return its request.

    Raises
    ------
    InvalidAdmissionRequestError
        If the body is not an AdmissionReview carrying a request.

    """
    try:
        review = _REVIEW_DECODER.decode(body)
    except msgspec.DecodeError as exc:
        raise InvalidAdmissionRequestError(f"invalid request body: {exc}") from exc
    if review.request is None:
        msg = "AdmissionReview carries no request"
        raise InvalidAdmissionRequestError(msg)
    return review.request


def _decode_object(
    request: AdmissionRequest, document: dict[str, typ.Any] | None, field: str
) -> Resource:
    kind = request.kind.kind
    if kind not in RESOURCE_TYPES:
        msg = f"unknown resource kind {kind!r}"
        raise InvalidAdmissionRequestError(msg)
    if document is None:
        msg = f"{request.operation} request without {field}"
        raise InvalidAdmissionRequestError(msg)
    try:
        resource = parse_resource(document, source=field)
    except ManifestValidationError as exc:
        raise InvalidAdmissionRequestError(str(exc)) from exc
    if resource.kind != kind:
        msg = f"{kind} type mismatch"
        raise InvalidAdmissionRequestError(msg)
    return resource


def overlay_for(
    request: AdmissionRequest, base: ApiObjectStore
) -> OverlayStore | None:
    """Return the store view after the requested mutation.

    ``None`` means the operation is not validated.
    """
    match request.operation:
        case "CREATE":
            added = _decode_object(request, request.object, "object")
            return OverlayStore(base, added=[added])
        case "DELETE":
            removed = _decode_object(request, request.old_object, "oldObject")
            return OverlayStore(base, removed=[removed])
        case "UPDATE":
            added = _decode_object(request, request.object, "object")
            removed = _decode_object(request, request.old_object, "oldObject")
            return OverlayStore(base, added=[added], removed=[removed])
        case _:
            return None


class AdmissionResource:
    """Falcon resource serving ``POST /``."""

    def __init__(self, store_handle: LiveStoreHandle) -> None:
        """Bind the resource to the live store handle."""
        self._store_handle = store_handle

    async def verdict(self, request: AdmissionRequest) -> AdmissionResponse:
        """Validate the mutation described by ``request``."""
        overlay = overlay_for(request, await self._store_handle.get())
        if overlay is None:
            log_debug(logger, "unvalidated operation %s allowed", request.operation)
            return AdmissionResponse(uid=request.uid, allowed=True)
        try:
            await validate_consistency(overlay)
        except ConsistencyError as exc:
            log_info(logger, "rejecting admission request: %s", exc)
            return AdmissionResponse(
                uid=request.uid,
                allowed=False,
                status=AdmissionStatus(code=FORBIDDEN, message=str(exc)),
            )
        log_info(
            logger,
            "accepting %s of %s %s",
            request.operation,
            request.kind.kind,
            request.name,
        )
        return AdmissionResponse(uid=request.uid, allowed=True)

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST / admission reviews."""
        request = decode_review(await req.stream.read())
        review = AdmissionReview(response=await self.verdict(request))
        resp.data = msgspec.json.encode(review)
        resp.content_type = "application/json"
        resp.status = HTTPStatus.OK
