#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import json
import os
import sys
import threading
import time
from typing import Dict, Optional

from pageshare.document import PageData, PageFormatError


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def harden_file(path: str) -> None:
    if not path:
        return
    if sys.platform.startswith("win"):
        return
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


def export_page(path: str, page: PageData) -> None:
    """Write `page` as pretty JSON; the file is replaced atomically."""
    tmp = path + ".tmp"
    _ensure_parent(path)
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(page.to_json_obj(), f, ensure_ascii=False, indent=2)
            f.write("\n")
        os.replace(tmp, path)
    except Exception:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise
    harden_file(path)


def import_page(path: str) -> PageData:
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    try:
        obj = json.loads(text)
    except ValueError as e:
        raise PageFormatError(f"not a JSON file: {e}") from e
    except RecursionError as e:
        raise PageFormatError("not a JSON file: nesting too deep") from e
    return PageData.from_json_obj(obj)


def load_config(path: Optional[str]) -> Dict[str, object]:
    if not path or not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.loads(f.read())
    except (OSError, ValueError, RecursionError):
        return {}
    if isinstance(data, dict):
        return data
    return {}


class RuntimeLog:
    """Append-only timestamped diagnostics log.

    Disabled when no path is set. Write failures are dropped so logging never
    breaks the command that is running.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or ""
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.path)

    def append(self, msg: str) -> None:
        if not msg or not self.enabled:
            return
        ts = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
        try:
            _ensure_parent(self.path)
            with self._lock:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(f"{ts} {msg}\n")
            harden_file(self.path)
        except OSError:
            pass

    def clear(self) -> None:
        if not self.enabled:
            return
        try:
            with self._lock:
                with open(self.path, "w", encoding="utf-8") as f:
                    f.write("")
        except OSError:
            pass
