"""
Extraction Module

Reads uploaded lesson plans with an LLM and returns untrusted JSON.
"""

from lessonplan.extraction.agent import PlanExtractor, parse_json_reply
from lessonplan.extraction.sources import ExtractionSource, load_source

__all__ = ["PlanExtractor", "parse_json_reply", "ExtractionSource", "load_source"]
