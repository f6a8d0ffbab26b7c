#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Share bio pages as self-contained links: encode page documents into a short
Base64 token carried in the `data` query parameter, and open such links back
into page JSON.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Dict, List, Optional

from page_link_codec import compress_to_base64, decompress_from_base64
from pageshare.document import EXPORT_FILENAME, PageFormatError, page_title
from pageshare.storage import RuntimeLog, export_page, import_page, load_config
from pageshare_utils import (
    DEFAULT_BASE_URL,
    MAX_SHARE_URL_CHARS,
    build_share_url,
    load_shared_page,
    share_link_stats,
    share_url_length_ok,
)

VERSION = "0.3.0"

DEFAULTS: Dict[str, object] = {
    "base_url": DEFAULT_BASE_URL,
    "max_url_chars": MAX_SHARE_URL_CHARS,
    "runtime_log": "",
}


def _read_text(path: Optional[str]) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _resolve(args_value: object, cfg: Dict[str, object], key: str) -> object:
    if args_value is not None:
        return args_value
    if key in cfg and cfg[key] not in (None, ""):
        return cfg[key]
    return DEFAULTS[key]


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="pageShare.py",
        description="Encode bio pages into share links and open them back.",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    ap.add_argument("--config", default=None, help="JSON config file (keys: base_url, max_url_chars, runtime_log).")
    ap.add_argument("--log-file", dest="log_file", default=None, help="append diagnostics to this file (default: off).")
    ap.add_argument("--quiet", action="store_true", help="less terminal output.")
    ap.add_argument("--clear-log", dest="clear_log", action="store_true", help="truncate the runtime log before this run.")

    sub = ap.add_subparsers(dest="command")
    sub.required = True

    p_enc = sub.add_parser("encode", help="text (file or stdin) -> share token")
    p_enc.add_argument("file", nargs="?", default=None, help="input file (default: stdin).")

    p_dec = sub.add_parser("decode", help="share token -> original text")
    p_dec.add_argument("token")

    p_share = sub.add_parser("share", help="page JSON file -> share URL")
    p_share.add_argument("page")
    p_share.add_argument("--base-url", dest="base_url", default=None, help=f"page URL (default: {DEFAULT_BASE_URL}).")
    p_share.add_argument("--max-url-chars", dest="max_url_chars", type=int, default=None, help=f"advisory URL limit (default: {MAX_SHARE_URL_CHARS}).")

    p_open = sub.add_parser("open", help="share URL -> page JSON")
    p_open.add_argument("url")
    p_open.add_argument("--out", default=None, help=f"write page JSON here instead of stdout (a directory gets {EXPORT_FILENAME}).")

    p_stats = sub.add_parser("stats", help="compare share token size with zlib/zstd")
    p_stats.add_argument("file", nargs="?", default=None, help="input file (default: stdin).")
    return ap


def _cmd_encode(args: argparse.Namespace, log: RuntimeLog) -> int:
    text = _read_text(args.file)
    token = compress_to_base64(text)
    log.append(f"ENCODE: chars={len(text)} token={len(token)}")
    print(token)
    return 0


def _cmd_decode(args: argparse.Namespace, log: RuntimeLog) -> int:
    text = decompress_from_base64(args.token)
    if text is None:
        log.append(f"DECODE: corrupt token len={len(args.token)}")
        print("error: token is corrupt", file=sys.stderr)
        return 1
    if text == "":
        log.append(f"DECODE: empty or truncated token len={len(args.token)}")
        print("error: token is empty or truncated", file=sys.stderr)
        return 1
    log.append(f"DECODE: token={len(args.token)} chars={len(text)}")
    sys.stdout.write(text)
    if not text.endswith("\n"):
        sys.stdout.write("\n")
    return 0


def _cmd_share(args: argparse.Namespace, cfg: Dict[str, object], log: RuntimeLog) -> int:
    try:
        page = import_page(args.page)
    except PageFormatError as e:
        print(f"error: {args.page}: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: {args.page}: {e.strerror or e}", file=sys.stderr)
        return 1
    base_url = str(_resolve(args.base_url, cfg, "base_url"))
    limit = int(_resolve(args.max_url_chars, cfg, "max_url_chars"))  # type: ignore[arg-type]
    url = build_share_url(base_url, page)
    log.append(f"SHARE: title={page_title(page)!r} url_chars={len(url)}")
    if not share_url_length_ok(url, limit) and not args.quiet:
        print(f"warning: share URL is {len(url)} chars (advisory limit {limit})", file=sys.stderr)
    print(url)
    return 0


def _cmd_open(args: argparse.Namespace, log: RuntimeLog) -> int:
    page, ok = load_shared_page(args.url)
    if not ok:
        log.append("OPEN: link could not be loaded")
        print("error: link does not hold a valid page", file=sys.stderr)
        return 1
    log.append(f"OPEN: title={page_title(page)!r} blocks={len(page.blocks)}")
    if not args.quiet:
        kinds = ", ".join(page.block_types()) or "none"
        print(f"{page_title(page)} (blocks: {kinds})", file=sys.stderr)
    if args.out:
        out_path = args.out
        if os.path.isdir(out_path):
            out_path = os.path.join(out_path, EXPORT_FILENAME)
        export_page(out_path, page)
        return 0
    print(json.dumps(page.to_json_obj(), ensure_ascii=False, indent=2))
    return 0


def _cmd_stats(args: argparse.Namespace, log: RuntimeLog) -> int:
    text = _read_text(args.file)
    stats = share_link_stats(text)
    log.append("STATS: " + dump_stats_line(stats))
    for key, value in stats.items():
        if isinstance(value, float):
            print(f"{key}: {value:.1f}")
        else:
            print(f"{key}: {value}")
    return 0


def dump_stats_line(stats: Dict[str, object]) -> str:
    return " ".join(f"{k}={v:.1f}" if isinstance(v, float) else f"{k}={v}" for k, v in stats.items())


def main(argv: Optional[List[str]] = None) -> int:
    ap = _build_parser()
    args = ap.parse_args(argv)

    cfg = load_config(args.config)
    log_path = str(_resolve(args.log_file, cfg, "runtime_log") or "")
    log = RuntimeLog(os.path.expanduser(log_path) if log_path else None)
    if args.clear_log:
        log.clear()
    log.append(f"START: v{VERSION} command={args.command}")

    if args.command == "encode":
        return _cmd_encode(args, log)
    if args.command == "decode":
        return _cmd_decode(args, log)
    if args.command == "share":
        return _cmd_share(args, cfg, log)
    if args.command == "open":
        return _cmd_open(args, log)
    if args.command == "stats":
        return _cmd_stats(args, log)
    ap.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
