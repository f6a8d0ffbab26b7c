#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import base64
import json
import zlib
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qs, urlsplit, urlunsplit

import zstandard

from page_link_codec import compress_to_base64, decompress_from_base64
from pageshare.document import PageData, PageFormatError, default_page

SHARE_QUERY_PARAM = "data"
MAX_SHARE_URL_CHARS = 2000
DEFAULT_BASE_URL = "http://localhost:5173/"


def dump_page_json(page: PageData) -> str:
    return json.dumps(page.to_json_obj(), ensure_ascii=False, separators=(",", ":"))


def encode_page_text(page: PageData) -> str:
    return compress_to_base64(dump_page_json(page))


def decode_page_text(token: Optional[str]) -> Optional[PageData]:
    """Share token -> page, or None when the token does not hold a valid page."""
    text = decompress_from_base64(token)
    if not text:
        return None
    try:
        obj = json.loads(text)
    except (ValueError, RecursionError):
        return None
    try:
        return PageData.from_json_obj(obj)
    except PageFormatError:
        return None


def build_share_url(base_url: str, page: PageData) -> str:
    parts = urlsplit(base_url)
    base = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    return f"{base}?{SHARE_QUERY_PARAM}={encode_page_text(page)}"


def extract_share_token(url: str) -> Optional[str]:
    """Raw `data` query value. `+` arrives as a space here; the codec maps it back."""
    if not isinstance(url, str):
        return None
    query = urlsplit(url).query
    if not query:
        return None
    values = parse_qs(query, keep_blank_values=True).get(SHARE_QUERY_PARAM)
    if not values:
        return None
    return values[0]


def load_shared_page(url: str, fallback: Optional[PageData] = None) -> Tuple[PageData, bool]:
    """Return (page, True) for a loadable link, else (fallback, False)."""
    token = extract_share_token(url)
    page = decode_page_text(token) if token else None
    if page is not None:
        return page, True
    if fallback is None:
        fallback = default_page()
    return fallback, False


def share_url_length_ok(url: str, limit: int = MAX_SHARE_URL_CHARS) -> bool:
    return len(url) <= int(limit)


def share_link_stats(text: str) -> Dict[str, object]:
    """Size telemetry for a share token compared with generic binary codecs.

    Purely diagnostic; the wire format is not affected.
    """
    if not isinstance(text, str):
        text = str(text)
    raw = text.encode("utf-8")
    token = compress_to_base64(text)
    zlib_b64 = base64.b64encode(zlib.compress(raw, level=9))
    zstd_b64 = base64.b64encode(zstandard.ZstdCompressor(level=10).compress(raw))
    plain_bytes = len(raw)
    gain_pct: float
    if plain_bytes > 0:
        gain_pct = ((plain_bytes - len(token)) / float(plain_bytes)) * 100.0
    else:
        gain_pct = 0.0
    return {
        "chars": len(text),
        "plain_bytes": plain_bytes,
        "token_chars": len(token),
        "zlib_b64_chars": len(zlib_b64),
        "zstd_b64_chars": len(zstd_b64),
        "gain_pct": gain_pct,
    }
