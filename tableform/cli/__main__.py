from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from tableform.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from tableform.errors import SubmissionError, TableFormError, ValidationError
from tableform.excel.reader import TableFileError, read_table_text
from tableform.grid.projector import ViewMode
from tableform.logging.error_log import ErrorLogBuffer
from tableform.logging.init import enable_debug, log_summary, setup_logging
from tableform.services.session import FormSession
from tableform.services.structure_source import fetch_structures
from tableform.services.submission import submit
from tableform.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env and config
- Fetch table structures (built-in fallback on failure)
- Build a form session from the command line: contract, document, recipients,
  one table per --table STRUCTURE=FILE
- Print the payload (--dry-run) or submit it to the workflow webhook
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_SUBMIT_FAILED = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; failures only warn."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Submit contract tables to the workflow webhook")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--list-structures", action="store_true", help="Print table structures then exit")
    p.add_argument("--contract-name", default="", help="Contract name")
    p.add_argument("--document", type=Path, help="Contract document to attach")
    p.add_argument("--email", action="append", default=[], help="Primary recipient (repeatable)")
    p.add_argument("--cc", action="append", default=[], help="CC recipient (repeatable)")
    p.add_argument(
        "--table", action="append", default=[], metavar="STRUCTURE=FILE",
        help="Create a table from STRUCTURE filled with FILE (.xlsx/.xls/.csv or tab text)",
    )
    p.add_argument("--vertical", action="store_true", help="Table files are in vertical orientation")
    p.add_argument("--dry-run", action="store_true", help="Print the payload instead of submitting")
    return p.parse_args(argv)


def _list_structures(session: FormSession) -> int:
    if session.structure_load_error:
        print(f"(built-in structures: {session.structure_load_error})")
    for s in session.catalog:
        print(f"{s.structure_id}: {s.name} ({len(s.columns)} columns) {', '.join(s.columns)}")
    return EXIT_SUCCESS


def _add_recipients(session: FormSession, addresses: list[str]) -> list[str]:
    ids: list[str] = []
    for address in addresses:
        # 最初の空スロットを優先して使う
        blank = next((e for e in session.mapper.emails() if e.is_blank), None)
        if blank is not None:
            ids.append(session.update_email(blank.id, address).id)
        else:
            ids.append(session.add_email(address).id)
    return ids


def _build_session(session: FormSession, args: argparse.Namespace) -> None:
    session.set_contract_name(args.contract_name)
    if args.document is None:
        raise ValidationError("Contract document is required.")
    session.attach_document_file(args.document)

    primary_ids = _add_recipients(session, args.email)
    cc_ids = _add_recipients(session, args.cc)

    for spec in args.table:
        structure_name, sep, file_part = spec.partition("=")
        if not sep or not file_part:
            raise ValidationError(f"--table expects STRUCTURE=FILE, got: {spec}")
        path = Path(file_part)
        if not path.is_file():
            raise ValidationError(f"table file not found: {path}")
        try:
            text = read_table_text(path)
        except TableFileError as e:
            session.error_log.record("read_table", str(path), e)
            raise ValidationError(str(e)) from e
        table = session.create_table(structure_name.strip(), primary_ids, cc_ids)
        if args.vertical:
            session.registry.set_view_mode(table.id, ViewMode.VERTICAL)
        table = session.registry.edit_text(table.id, text)
        print(f"TABLE {table.display_name} rows={len(table.data_rows)} view={table.view_mode.value}")


def _flush_errors(error_log: ErrorLogBuffer, logger: logging.Logger) -> None:
    path = error_log.flush()
    if path is None:
        return
    counts = ", ".join(f"{k}={v}" for k, v in sorted(error_log.counts().items()))
    logger.warning(f"rejected operations written to {path} ({counts})")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    error_log = ErrorLogBuffer()
    session = FormSession(error_log=error_log)
    session.load_structures(
        fetch_structures(
            cfg.structure_source_url,
            timeout=cfg.request_timeout,
            fallback=cfg.fallback_structures,
        )
    )

    if args.list_structures:
        return _list_structures(session)

    try:
        _build_session(session, args)
        payload = session.build_payload()
    except TableFormError as e:
        logger.error(f"form: {e}")
        _flush_errors(error_log, logger)
        return EXIT_FATAL

    if args.dry_run:
        print(json.dumps(payload.to_dict(), indent=2, ensure_ascii=False))
        log_summary(render_summary_line(payload, None)[len("SUMMARY "):])
        return EXIT_SUCCESS

    result = submit(payload, cfg.submission_url, timeout=cfg.request_timeout)
    log_summary(render_summary_line(payload, result)[len("SUMMARY "):])
    try:
        result.raise_for_error()
    except SubmissionError as e:
        error_log.record("submit", payload.contract_name, e)
        _flush_errors(error_log, logger)
        return EXIT_SUBMIT_FAILED
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
