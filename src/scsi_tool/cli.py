# src/scsi_tool/cli.py

import argparse
import logging
import os
import re
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

_COMMENT_RE = re.compile(r"#.*$", re.MULTILINE)
_SEPARATOR_RE = re.compile(r"[\s,]+")


def _error_log_path() -> Path:
    override = os.getenv("SCSI_TOOL_ERROR_LOG", "").strip()
    if override:
        return Path(override)

    for var in ("TEMP", "TMP"):
        value = os.getenv(var, "").strip()
        if value:
            return Path(value) / "scsi_tool_error.log"
    return Path.cwd() / "scsi_tool_error.log"


def _write_startup_error_log(exc: BaseException) -> Optional[str]:
    path = _error_log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass

    try:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        tb_text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        with path.open("a", encoding="utf-8", newline="\n") as fh:
            fh.write(f"\n[{timestamp}] scsi-decode error\n")
            fh.write(tb_text)
        return str(path)
    except OSError:
        return None


def _parse_hex_byte(token: str) -> int:
    text = token.lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text or len(text) > 2:
        raise ValueError(f"bad hex byte: {token!r}")
    return int(text, 16)


def parse_hex_tokens(tokens: Sequence[str]) -> bytes:
    """Hex bytes given one per token, e.g. ``["70", "0x00", "05"]``."""
    out = bytearray()
    for token in tokens:
        try:
            out.append(_parse_hex_byte(token))
        except ValueError as exc:
            raise ValueError(f"bad hex byte: {token!r}") from exc
    return bytes(out)


def parse_hex_text(text: str, nospace: bool = False) -> bytes:
    """
    Hex bytes from free text: whitespace or comma separated, '#' starts a
    comment. With ``nospace`` each line is a run of hex digit pairs.
    """
    text = _COMMENT_RE.sub("", text)
    if nospace:
        digits = "".join(_SEPARATOR_RE.split(text))
        if len(digits) % 2:
            raise ValueError("odd number of hex digits")
        return parse_hex_tokens([digits[i : i + 2] for i in range(0, len(digits), 2)])
    return parse_hex_tokens([t for t in _SEPARATOR_RE.split(text) if t])


def _read_input(args: argparse.Namespace) -> bytes:
    if args.binary:
        with open(args.binary, "rb") as fh:
            return fh.read()
    if args.file:
        if args.file == "-":
            return parse_hex_text(sys.stdin.read(), args.nospace)
        with open(args.file, encoding="utf-8") as fh:
            return parse_hex_text(fh.read(), args.nospace)
    if args.nospace:
        return parse_hex_text(" ".join(args.hex_bytes), nospace=True)
    return parse_hex_tokens(args.hex_bytes)


def _load_print_help():
    from .help_text import print_help as _print_help

    return _print_help


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scsi-decode",
        description="Decode SCSI sense data and device identification pages.",
        add_help=False,
    )
    parser.add_argument("-h", "--help", action="store_true")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-b", "--binary", metavar="FN")
    source.add_argument("-f", "--file", metavar="FN")
    parser.add_argument("--vpd", action="store_true")
    parser.add_argument("--nospace", action="store_true")
    parser.add_argument("--raw", action="store_true")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    parser.add_argument("-V", "--version", action="store_true")
    parser.add_argument("hex_bytes", nargs="*", metavar="H")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.help:
        print_help = _load_print_help()
        print_help()
        return 0

    if args.version:
        from ._version import get_version

        print(get_version())
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if (args.binary or args.file) and args.hex_bytes:
        parser.error("hex bytes on the command line cannot be used with -b or -f.")

    try:
        data = _read_input(args)
    except (OSError, ValueError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1

    if not data:
        print("No bytes to decode.", file=sys.stderr)
        return 1
    logger.debug("decoding %d bytes", len(data))

    from .config import DecodeOptions
    from .services import SenseDecoder

    options = DecodeOptions.from_env(raw=args.raw, verbose=args.verbose)
    decoder = SenseDecoder(options)
    if args.vpd:
        sys.stdout.write(decoder.render_device_id(data))
    else:
        sys.stdout.write(decoder.render(data))
    return 0


def run() -> None:
    exit_code = 0
    try:
        exit_code = main()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        exit_code = 130
    except SystemExit as e:
        if isinstance(e.code, int):
            exit_code = e.code
        else:
            exit_code = 0 if e.code is None else 1
    except Exception as e:
        log_path = _write_startup_error_log(e)
        print(f"\nAn unexpected error occurred: {e}", file=sys.stderr)
        if log_path:
            print(f"Full traceback saved to: {log_path}", file=sys.stderr)
        traceback.print_exc()
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
