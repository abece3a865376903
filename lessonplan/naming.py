"""
Document Naming

Builds the title used for the printed plan and exported files,
e.g. "02.PU1 U7L1 Teaching Plan".
"""

import re

from lessonplan.schema import TeachingPlan

TITLE_PREFIX = "02."
TITLE_SUFFIX = "Teaching Plan"


def format_part(value: str, prefix: str) -> str:
    """
    Prefix a title component unless the user already typed the prefix.

    >>> format_part("1", "PU")
    'PU1'
    >>> format_part("pu1", "PU")
    'pu1'
    >>> format_part("  ", "U")
    ''
    """
    clean = (value or "").strip()
    if not clean:
        return ""
    if clean.upper().startswith(prefix.upper()):
        return clean
    return f"{prefix}{clean}"


def document_title(doc: TeachingPlan) -> str:
    level = format_part(doc.basic.level, "PU")
    unit = format_part(doc.basic.unit, "U")
    lesson = format_part(doc.basic.lesson_no, "L")
    title = f"{TITLE_PREFIX}{level} {unit}{lesson} {TITLE_SUFFIX}"
    return re.sub(r"\s+", " ", title).strip()
