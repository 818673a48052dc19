from __future__ import annotations

import logging
from collections.abc import Callable

import httpx

from ..models.submission import SubmissionPayload, SubmissionResult

"""Submission sink: POST the payload to the workflow webhook as multipart.

The session is never touched here, so a failed submission can simply be
retried with a freshly built payload. The caller gets a SubmissionResult and,
optionally, an on_success / on_failure callback.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "submit",
]

DEFAULT_TIMEOUT = 30.0


def submit(
    payload: SubmissionPayload,
    url: str,
    *,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    on_success: Callable[[SubmissionResult], None] | None = None,
    on_failure: Callable[[SubmissionResult], None] | None = None,
) -> SubmissionResult:
    """Send ``payload`` to ``url``.

    Returns:
        SubmissionResult with ok=True for 2xx responses. Non-2xx keeps the raw
        status and body; transport errors have status_code=None and the
        message in ``error``.
    """
    own_client = client is None
    http = client if client is not None else httpx.Client(timeout=timeout)
    logger.info(
        f"submitting contract={payload.contract_name!r} tables={len(payload.tables)} "
        f"document={payload.document.filename} ({payload.document.size} bytes)"
    )
    try:
        response = http.post(url, data=payload.to_form_fields(), files=payload.to_files())
    except httpx.HTTPError as e:
        result = SubmissionResult(ok=False, status_code=None, error=str(e))
    else:
        result = SubmissionResult(
            ok=response.is_success,
            status_code=response.status_code,
            body=response.text,
        )
    finally:
        if own_client:
            http.close()

    if result.ok:
        logger.info(result.message)
        if on_success is not None:
            on_success(result)
    else:
        logger.error(result.message)
        if on_failure is not None:
            on_failure(result)
    return result
