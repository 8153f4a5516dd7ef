"""Admission webhook exceptions and their Falcon error handlers.

Usage
-----
Register the handler on the Falcon app::

    app.add_error_handler(
        InvalidAdmissionRequestError, handle_invalid_admission_request
    )

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["InvalidAdmissionRequestError", "handle_invalid_admission_request"]


class InvalidAdmissionRequestError(Exception):
    """Raised when an AdmissionReview cannot be decoded; maps to HTTP 400.

    Attributes
    ----------
    reason
        Human-readable description of the decoding failure.

    """

    def __init__(self, reason: str) -> None:
        """Initialize with the decoding failure reason."""
        self.reason = reason
        super().__init__(reason)


async def handle_invalid_admission_request(
    _req: Request,
    resp: Response,
    ex: InvalidAdmissionRequestError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidAdmissionRequestError`` to an HTTP 400 JSON response."""
    resp.status = falcon.HTTP_400
    resp.media = {
        "title": "Invalid admission request",
        "description": ex.reason,
    }
