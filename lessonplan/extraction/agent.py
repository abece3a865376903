"""
Plan Extractor - reads an uploaded lesson plan with Gemini and returns the
model's JSON guess at the TeachingPlan shape.

The reply is NOT trusted: callers pass it through ``reconcile`` before use.
"""

import base64
import json
import logging
import re
from typing import Any, Optional

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import HumanMessage, SystemMessage

from lessonplan.errors import ExtractionError
from lessonplan.settings import settings
from lessonplan.extraction.prompts import EXTRACTION_SYSTEM_PROMPT, build_instruction
from lessonplan.extraction.sources import ExtractionSource

logger = logging.getLogger(__name__)


def extract_text_content(content) -> str:
    """Extract text content from various response formats."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        text_parts = []
        for part in content:
            if isinstance(part, str):
                text_parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text" and "text" in part:
                text_parts.append(part["text"])
        return "".join(text_parts)
    return str(content)


def parse_json_reply(reply: str) -> Any:
    """
    Parse the model reply as JSON.

    Markdown code fences are stripped first; if the reply still has text
    around the object, the outermost {...} block is tried.

    Raises:
        ExtractionError: If no JSON value can be read from the reply
    """
    cleaned = (reply or "").strip()
    if not cleaned:
        raise ExtractionError("Extraction service returned an empty reply")

    if cleaned.startswith("```"):
        cleaned = re.sub(r'^```(?:json)?\s*', '', cleaned)
        cleaned = re.sub(r'\s*```$', '', cleaned)

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass
    except RecursionError as e:
        raise ExtractionError("Extraction service returned JSON nested too deeply") from e

    json_match = re.search(r'\{[\s\S]*\}', cleaned)
    if json_match:
        try:
            return json.loads(json_match.group())
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Extraction service returned malformed JSON: {e}") from e
        except RecursionError as e:
            raise ExtractionError("Extraction service returned JSON nested too deeply") from e

    raise ExtractionError("Extraction service did not return JSON")


class PlanExtractor:
    """
    Extraction collaborator backed by Gemini.

    The chat model is created on first use so the service can start (and be
    tested) without an API key.
    """

    def __init__(self, model_name: Optional[str] = None, llm=None, api_key: Optional[str] = None):
        """
        Args:
            model_name: Gemini model (default: settings.EXTRACTION_MODEL)
            llm: Pre-built chat model, mainly for tests
            api_key: Overrides settings.GEMINI_API_KEY
        """
        self.model_name = model_name or settings.EXTRACTION_MODEL
        self._api_key = api_key
        self._llm = llm

    @property
    def llm(self):
        if self._llm is None:
            api_key = self._api_key or settings.GEMINI_API_KEY
            if not api_key:
                raise ExtractionError("GEMINI_API_KEY is not set; plan import is unavailable")
            self._llm = ChatGoogleGenerativeAI(
                model=self.model_name,
                temperature=0.1,  # Low temperature for faithful copying
                google_api_key=api_key,
            )
        return self._llm

    def build_messages(self, source: ExtractionSource) -> list:
        instruction = build_instruction()

        if source.is_binary:
            encoded = base64.b64encode(source.data).decode("ascii")
            block_type = "image" if source.mime_type.startswith("image/") else "file"
            content = [
                {"type": "text", "text": f"{instruction}\n\n## SOURCE DOCUMENT: {source.filename}"},
                {
                    "type": block_type,
                    "source_type": "base64",
                    "data": encoded,
                    "mime_type": source.mime_type,
                },
            ]
        else:
            content = f"{instruction}\n\n## SOURCE DOCUMENT: {source.filename}\n\n{source.text}"

        return [
            SystemMessage(content=EXTRACTION_SYSTEM_PROMPT),
            HumanMessage(content=content),
        ]

    async def extract(self, source: ExtractionSource) -> Any:
        """
        Ask the model to read ``source``.

        Returns:
            The parsed JSON value of the reply (any JSON type)

        Raises:
            ExtractionError: If the call fails or the reply is not JSON
        """
        messages = self.build_messages(source)
        logger.info("Extracting plan from %s with %s", source.filename, self.model_name)

        try:
            response = await self.llm.ainvoke(messages)
        except ExtractionError:
            raise
        except Exception as e:
            logger.error("Extraction call failed for %s: %s", source.filename, e)
            raise ExtractionError(f"Extraction service call failed: {e}") from e

        reply = extract_text_content(response.content)
        return parse_json_reply(reply)
