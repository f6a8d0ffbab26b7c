#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
pageshare package

Internal modules for pageShare.py: the page document envelope and file
storage (export/import, config, runtime log). The share-link codec itself
lives in page_link_codec.py.
"""

from __future__ import annotations

