from __future__ import annotations

import hmac

from starlette.datastructures import Headers

VAPI_SECRET_HEADER = "x-vapi-secret"


class SignatureVerificationError(Exception):
    pass


def verify_shared_secret(
    headers: Headers,
    secret: str,
    *,
    header_name: str = VAPI_SECRET_HEADER,
) -> None:
    if not secret:
        return
    provided = headers.get(header_name)
    if not provided:
        raise SignatureVerificationError(f"missing {header_name} header")
    if not hmac.compare_digest(provided.encode("utf-8"), secret.encode("utf-8")):
        raise SignatureVerificationError("shared secret mismatch")
