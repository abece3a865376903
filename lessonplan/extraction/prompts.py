# =============================================================================
# PROMPTS
# =============================================================================

import json
from typing import get_args, get_origin

from pydantic import BaseModel

from lessonplan.schema import TeachingPlan


EXTRACTION_SYSTEM_PROMPT = """You are the Lesson Plan Extractor for a children's English teaching plan editor.

Your job is to read an existing lesson plan (typed, scanned or photographed) and copy its content into a fixed JSON structure that the editor can load.

### RULES:
1. **Copy, do not invent** - Only fill a field when the source document contains that information. Leave it as an empty string "" otherwise.
2. **Every value is a string** - Numbers, times and dates are written as text (e.g. "40", "5 min", "2024-09-01").
3. **Keep the original language** - Do not translate Chinese or English content.
4. **Lists** - `games` and `steps` are arrays. Add one object per game or teaching stage found in the source, in the order they appear.
5. **Multi-line content** - Keep line breaks inside a field as "\\n".

### OUTPUT:
Respond with a single JSON object only. No markdown, no commentary, no code fences."""


EXTRACTION_INSTRUCTION = """Extract the lesson plan from the source document below into this JSON structure.
Each leaf shows what the field holds; replace it with the extracted text or "".

```json
{shape}
```"""


def shape_of(model_cls) -> dict:
    """Describe a model as a JSON skeleton whose leaves are field descriptions."""
    shape = {}
    for attribute, field in model_cls.model_fields.items():
        name = field.alias or attribute
        annotation = field.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            shape[name] = shape_of(annotation)
        elif get_origin(annotation) is tuple:
            shape[name] = [shape_of(get_args(annotation)[0])]
        else:
            shape[name] = field.description or name
    return shape


def build_instruction() -> str:
    shape = json.dumps(shape_of(TeachingPlan), indent=2, ensure_ascii=False)
    return EXTRACTION_INSTRUCTION.replace("{shape}", shape)
