# core/text_cleaning.py

from __future__ import annotations

import re
from typing import Iterable, List, Union

MAX_KEYWORDS = 13


def clean_title(title: str) -> str:
    """
    清洗标题：
    - 去除换行符和多余空格
    """
    if not title:
        return ""
    return re.sub(r"\s+", " ", title).strip()


def parse_keywords(keywords: Union[str, Iterable[str], None], max_count: int = MAX_KEYWORDS) -> List[str]:
    """
    Turn "waterproof, long battery ,  ,Waterproof" into
    ["waterproof", "long battery"].

    - 逗号分隔
    - 去空、去重（不区分大小写），保留第一次出现的写法
    - 最多 max_count 个
    """
    if not keywords:
        return []

    if isinstance(keywords, str):
        raw = keywords.split(",")
    else:
        raw = list(keywords)

    cleaned: List[str] = []
    seen = set()
    for kw in raw:
        kw = clean_title(kw)
        if kw and kw.lower() not in seen:
            cleaned.append(kw)
            seen.add(kw.lower())
            if len(cleaned) >= max_count:
                break
    return cleaned
