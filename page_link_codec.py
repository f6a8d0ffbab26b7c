#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""LZ-style share-link codec.

Turns an arbitrary text (a serialized page document) into a short Base64
token that can ride in a URL query string, and back.

Two layers:
- `compress` / `decompress`: dictionary coder over UTF-16 code units with
  variable-width codes, producing a string of 16-bit words.
- `compress_to_base64` / `decompress_from_base64`: frames those words as
  big-endian bytes in the standard Base64 alphabet.

The decoder never raises: `None` means a structurally corrupt stream, `""`
means the stream ended before its terminator.
"""

from __future__ import annotations

import base64
from typing import Dict, List, Optional, Set

KEY_STR_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/="
PAD_CHAR = "="

CODE_LITERAL_8 = 0
CODE_LITERAL_16 = 1
CODE_END = 2

WORD_BITS = 16
WORD_TOP_BIT = 1 << (WORD_BITS - 1)

_BASE64_VALUES: Dict[str, int] = {ch: i for i, ch in enumerate(KEY_STR_BASE64[:64])}


def _to_code_units(text: str) -> str:
    """Split astral code points into UTF-16 surrogate pairs (one char per unit)."""
    out: List[str] = []
    for ch in text:
        cp = ord(ch)
        if cp > 0xFFFF:
            cp -= 0x10000
            out.append(chr(0xD800 + (cp >> 10)))
            out.append(chr(0xDC00 + (cp & 0x3FF)))
        else:
            out.append(ch)
    return "".join(out)


def _from_code_units(units: str) -> str:
    """Join surrogate pairs back into code points; lone surrogates pass through."""
    out: List[str] = []
    i = 0
    n = len(units)
    while i < n:
        hi = ord(units[i])
        if 0xD800 <= hi < 0xDC00 and i + 1 < n:
            lo = ord(units[i + 1])
            if 0xDC00 <= lo < 0xE000:
                out.append(chr(0x10000 + ((hi - 0xD800) << 10) + (lo - 0xDC00)))
                i += 2
                continue
        out.append(units[i])
        i += 1
    return "".join(out)


class _CodeWidth:
    """Code width with its countdown to the next widening.

    Both directions must call `tick` at exactly the same points of the stream.
    """

    def __init__(self, bits: int, enlarge_in: int) -> None:
        self.bits = bits
        self.enlarge_in = enlarge_in

    def tick(self) -> None:
        self.enlarge_in -= 1
        if self.enlarge_in == 0:
            self.enlarge_in = 1 << self.bits
            self.bits += 1


class _BitWriter:
    """Collects values LSB-first into 16-bit words filled from the top bit down."""

    def __init__(self) -> None:
        self._words: List[str] = []
        self._acc = 0
        self._bits = 0

    def write(self, value: int, width: int) -> None:
        for _ in range(width):
            self._acc = (self._acc << 1) | (value & 1)
            value >>= 1
            self._bits += 1
            if self._bits == WORD_BITS:
                self._words.append(chr(self._acc))
                self._acc = 0
                self._bits = 0

    def finish(self) -> str:
        # Always closes one more word; an aligned stream gets a zero word.
        self._words.append(chr(self._acc << (WORD_BITS - self._bits)))
        self._acc = 0
        self._bits = 0
        return "".join(self._words)


class _BitReader:
    """Reads values LSB-first; bits past the last word read as zero."""

    def __init__(self, words: str) -> None:
        self._words = words
        self._val = ord(words[0]) if words else 0
        self._mask = WORD_TOP_BIT
        self._index = 1

    @property
    def exhausted(self) -> bool:
        return self._index > len(self._words)

    def read(self, width: int) -> int:
        bits = 0
        for i in range(width):
            if self._val & self._mask:
                bits |= 1 << i
            self._mask >>= 1
            if self._mask == 0:
                self._mask = WORD_TOP_BIT
                if self._index < len(self._words):
                    self._val = ord(self._words[self._index])
                else:
                    self._val = 0
                self._index += 1
        return bits


def _emit(
    w: str,
    dictionary: Dict[str, int],
    pending: Set[str],
    width: _CodeWidth,
    bw: _BitWriter,
) -> None:
    if w in pending:
        value = ord(w[0])
        if value < 256:
            bw.write(CODE_LITERAL_8, width.bits)
            bw.write(value, 8)
        else:
            bw.write(CODE_LITERAL_16, width.bits)
            bw.write(value, 16)
        # The literal's own dictionary slot counts as one code.
        width.tick()
        pending.discard(w)
    else:
        bw.write(dictionary[w], width.bits)
    width.tick()


def compress(text: Optional[str]) -> str:
    """Compress `text` into a string of 16-bit words."""
    if text is None:
        return ""
    units = _to_code_units(text)
    dictionary: Dict[str, int] = {}
    pending: Set[str] = set()
    dict_size = 3
    width = _CodeWidth(bits=2, enlarge_in=2)
    bw = _BitWriter()
    w = ""

    for c in units:
        if c not in dictionary:
            dictionary[c] = dict_size
            dict_size += 1
            pending.add(c)
        wc = w + c
        if wc in dictionary:
            w = wc
            continue
        _emit(w, dictionary, pending, width, bw)
        dictionary[wc] = dict_size
        dict_size += 1
        w = c

    if w:
        _emit(w, dictionary, pending, width, bw)
    bw.write(CODE_END, width.bits)
    return bw.finish()


def decompress(data: Optional[str]) -> Optional[str]:
    """Inverse of `compress`.

    Returns None for a corrupt stream and "" for a truncated one.
    """
    if data is None:
        return ""
    if data == "":
        return None

    br = _BitReader(data)
    head = br.read(2)
    if head == CODE_END:
        return ""
    if head == CODE_LITERAL_8:
        first = chr(br.read(8))
    elif head == CODE_LITERAL_16:
        first = chr(br.read(16))
    else:
        return None

    # Slots 0..2 are the control codes and never looked up.
    dictionary: List[str] = ["", "", "", first]
    width = _CodeWidth(bits=3, enlarge_in=4)
    w = first
    result: List[str] = [first]

    while True:
        if br.exhausted:
            return ""
        code = br.read(width.bits)
        if code == CODE_END:
            return _from_code_units("".join(result))
        if code == CODE_LITERAL_8 or code == CODE_LITERAL_16:
            dictionary.append(chr(br.read(8 if code == CODE_LITERAL_8 else 16)))
            code = len(dictionary) - 1
            width.tick()

        if code < len(dictionary):
            entry = dictionary[code]
        elif code == len(dictionary):
            entry = w + w[0]
        else:
            return None

        result.append(entry)
        dictionary.append(w + entry[0])
        width.tick()
        w = entry


def _words_to_bytes(words: str) -> bytes:
    out = bytearray()
    for ch in words:
        v = ord(ch)
        out.append((v >> 8) & 0xFF)
        out.append(v & 0xFF)
    return bytes(out)


def _bytes_to_words(raw: bytes) -> str:
    out: List[str] = []
    for i in range(0, len(raw), 2):
        hi = raw[i]
        lo = raw[i + 1] if i + 1 < len(raw) else 0
        out.append(chr((hi << 8) | lo))
    return "".join(out)


def compress_to_base64(text: Optional[str]) -> str:
    """Compress `text` into a Base64 token (`[A-Za-z0-9+/]*={0,2}`)."""
    if text is None:
        return ""
    return base64.b64encode(_words_to_bytes(compress(text))).decode("ascii")


def _symbol_value(symbols: str, pos: int) -> Optional[int]:
    """Base64 value at `pos`; None for the `=` group terminator.

    A short final group reads its missing symbols as value 0.
    """
    if pos >= len(symbols):
        return 0
    ch = symbols[pos]
    if ch == PAD_CHAR:
        return None
    return _BASE64_VALUES[ch]


def _unpack_base64(symbols: str) -> bytes:
    out = bytearray()
    for i in range(0, len(symbols), 4):
        e1 = _symbol_value(symbols, i) or 0
        e2 = _symbol_value(symbols, i + 1) or 0
        e3 = _symbol_value(symbols, i + 2)
        e4 = _symbol_value(symbols, i + 3)
        out.append(((e1 << 2) | (e2 >> 4)) & 0xFF)
        if e3 is None:
            continue
        out.append((((e2 & 15) << 4) | (e3 >> 2)) & 0xFF)
        if e4 is None:
            continue
        out.append((((e3 & 3) << 6) | e4) & 0xFF)
    return bytes(out)


def sanitize_base64(text: str) -> str:
    """Undo `+` -> space damage and drop every non-alphabet character."""
    text = text.replace(" ", "+")
    return "".join(ch for ch in text if ch in _BASE64_VALUES or ch == PAD_CHAR)


def decompress_from_base64(text: Optional[str]) -> Optional[str]:
    """Decode a token produced by `compress_to_base64`.

    None -> "", "" -> None; garbage yields None or "" and never raises.
    """
    if text is None:
        return ""
    if text == "":
        return None
    symbols = sanitize_base64(text)
    return decompress(_bytes_to_words(_unpack_base64(symbols)))
