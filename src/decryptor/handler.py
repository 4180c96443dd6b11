from __future__ import annotations

import argparse
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from securejson.config import DecryptorSettings
from securejson.errors import DecryptorError, InputReadError, OutputWriteError
from securejson.resolver import ResolverClient
from securejson.walker import JsonValue, find_markers, walk


logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    if logging.getLogger().hasHandlers():
        return
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _read_document(source: Path) -> JsonValue:
    try:
        with source.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise InputReadError(f"Cannot read {source}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InputReadError(f"{source} is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise InputReadError(f"{source} is nested too deeply to parse") from exc


def _serialize(doc: JsonValue, *, indent: Optional[int] = None) -> bytes:
    try:
        text = json.dumps(doc, ensure_ascii=False, indent=indent)
        try:
            return text.encode("utf-8")
        except UnicodeEncodeError:
            # Lone surrogates (valid in JSON input) only survive as \u escapes
            return json.dumps(doc, ensure_ascii=True, indent=indent).encode("utf-8")
    except RecursionError as exc:
        raise OutputWriteError("Document is nested too deeply to serialize") from exc


def _write_document(target: Path, doc: JsonValue, *, indent: Optional[int] = None) -> None:
    # Temp file in the target directory, then rename: the target is either
    # fully replaced or left as it was.
    payload = _serialize(doc, indent=indent)
    tmp_name: Optional[str] = None
    try:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.replace(tmp_name, target)
    except OSError as exc:
        raise OutputWriteError(f"Cannot write {target}: {exc}") from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def run_once(
    source: os.PathLike[str] | str,
    target: os.PathLike[str] | str,
    *,
    resolver: ResolverClient,
    indent: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Decrypt every `secure:` marker of `source` and write the result to `target`.

    Fail-fast: the first error aborts the run and `target` is not touched.
    Returns a small summary dict.
    """
    src = Path(source)
    dst = Path(target)

    doc = _read_document(src)

    resolved = 0

    def _resolve(token: str) -> str:
        nonlocal resolved
        plaintext = resolver.resolve(token)
        resolved += 1
        return plaintext

    out = walk(doc, _resolve)
    logger.info("Resolved %d marker(s) in %s", resolved, src)

    _write_document(dst, out, indent=indent)
    return {"ok": True, "resolved": resolved, "target": str(dst)}


def dry_run(source: os.PathLike[str] | str) -> List[str]:
    """Return the locations of all markers in `source` without contacting the resolver."""
    return find_markers(_read_document(Path(source)))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="decryptor",
        description="Replace secure:<token> values in a JSON document with their decrypted plaintext.",
    )
    parser.add_argument("source", help="Input JSON file")
    parser.add_argument("target", help="Output JSON file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List marker locations only; contact nothing and write nothing",
    )
    parser.add_argument("--indent", type=int, default=None, help="Indent the output JSON")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    # Dry runs contact nothing, so resolver settings are not needed
    if args.dry_run:
        _setup_logging("INFO")
        try:
            paths = dry_run(args.source)
        except DecryptorError as exc:
            logger.error("%s", exc)
            return 1
        for p in paths:
            print(p)
        logger.info("%d marker(s) found in %s", len(paths), args.source)
        return 0

    try:
        settings = DecryptorSettings.from_env()
    except ValueError as exc:
        _setup_logging("INFO")
        logger.error("Invalid configuration: %s", exc)
        return 1
    _setup_logging(settings.log_level)

    logger.info("Decryptor starting")
    try:
        with ResolverClient(
            settings.url,
            credentials=settings.credential_provider(),
            timeout=settings.timeout,
        ) as resolver:
            run_once(args.source, args.target, resolver=resolver, indent=args.indent)
    except DecryptorError as exc:
        logger.error("Decryptor failed: %s", exc)
        return 1

    logger.info("Decryptor run completed successfully")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
