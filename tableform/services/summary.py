from __future__ import annotations

from ..models.submission import SubmissionPayload, SubmissionResult

"""Summary line rendering for the CLI SUMMARY output.

Format:
SUMMARY tables={n} rows={data rows} recipients={addresses} cc={cc bindings} status={status}
"""


def render_summary_line(payload: SubmissionPayload, result: SubmissionResult | None) -> str:
    """Render a SUMMARY line for a submitted (or dry-run) payload.

    ``rows`` counts data rows only (header rows excluded). ``status`` is
    ``dry-run`` when no submission happened, ``ok`` on success, otherwise
    the HTTP status code or ``error`` for transport failures.

    Examples:
        >>> from tableform.models.submission import DocumentRef, TablePayload
        >>> p = SubmissionPayload(
        ...     contract_name="c", document=DocumentRef("c.pdf", b""), emails=["a@x.io"],
        ...     tables=[TablePayload("t", [["id"], ["1"]], ["a@x.io"], [], "horizontal")],
        ... )
        >>> render_summary_line(p, None)
        'SUMMARY tables=1 rows=1 recipients=1 cc=0 status=dry-run'
    """
    rows = sum(max(len(t.data) - 1, 0) for t in payload.tables)
    cc = sum(len(t.cc_emails_assigned) for t in payload.tables)
    if result is None:
        status = "dry-run"
    elif result.ok:
        status = "ok"
    elif result.status_code is None:
        status = "error"
    else:
        status = str(result.status_code)
    return (
        f"SUMMARY tables={len(payload.tables)} "
        f"rows={rows} "
        f"recipients={len(payload.emails)} "
        f"cc={cc} "
        f"status={status}"
    )
