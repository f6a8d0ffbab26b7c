#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional

EXPORT_FILENAME = "bio-page-data.json"
DEFAULT_TITLE = "Bio Page"

_REQUIRED_KEYS = ("profile", "blocks", "seoConfig")


class PageShareError(ValueError):
    pass


class PageFormatError(PageShareError):
    pass


@dataclass
class PageData:
    """Page-configuration document as exchanged through share links and exports.

    Block and profile payloads are kept as plain JSON objects; the renderer owns
    their schema. Only the envelope is validated here.
    """

    profile: Dict[str, object]
    blocks: List[Dict[str, object]]
    seo_config: Dict[str, object]
    chatbot_profile: Optional[Dict[str, object]] = None
    chatbot_enabled: bool = False

    def to_json_obj(self) -> Dict[str, object]:
        # Key order matches the editor's export so tokens stay comparable.
        return {
            "profile": self.profile,
            "blocks": self.blocks,
            "chatbotProfile": self.chatbot_profile,
            "chatbotEnabled": bool(self.chatbot_enabled),
            "seoConfig": self.seo_config,
        }

    @classmethod
    def from_json_obj(cls, obj: object) -> "PageData":
        if not isinstance(obj, dict):
            raise PageFormatError("page document must be a JSON object")
        for key in _REQUIRED_KEYS:
            if key not in obj or obj[key] is None:
                raise PageFormatError(f"page document is missing {key!r}")
        profile = obj["profile"]
        blocks = obj["blocks"]
        seo = obj["seoConfig"]
        if not isinstance(profile, dict):
            raise PageFormatError("profile must be an object")
        if not isinstance(blocks, list):
            raise PageFormatError("blocks must be an array")
        if not isinstance(seo, dict):
            raise PageFormatError("seoConfig must be an object")
        chatbot = obj.get("chatbotProfile")
        if chatbot is not None and not isinstance(chatbot, dict):
            raise PageFormatError("chatbotProfile must be an object or null")
        return cls(
            profile=profile,
            blocks=blocks,
            seo_config=seo,
            chatbot_profile=chatbot,
            chatbot_enabled=bool(obj.get("chatbotEnabled", False)),
        )

    def block_types(self) -> List[str]:
        out: List[str] = []
        for block in self.blocks:
            if isinstance(block, dict):
                out.append(str(block.get("type", "")))
        return out


_DEFAULT_PAGE: Dict[str, object] = {
    "profile": {
        "avatarUrl": "https://picsum.photos/128",
        "username": "@username",
        "bio": "Welcome! All my links and projects are below.",
        "handle": "username",
    },
    "blocks": [
        {
            "id": "text-1",
            "type": "text",
            "content": "This page has no content yet.",
        },
    ],
    "chatbotProfile": None,
    "chatbotEnabled": False,
    "seoConfig": {
        "title": DEFAULT_TITLE,
        "description": "",
        "keywords": [],
    },
}


def default_page() -> PageData:
    """Fresh copy of the fallback page shown when a shared link cannot be loaded."""
    return PageData.from_json_obj(copy.deepcopy(_DEFAULT_PAGE))


def page_title(page: PageData) -> str:
    title = page.seo_config.get("title")
    if isinstance(title, str) and title:
        return title
    return DEFAULT_TITLE
