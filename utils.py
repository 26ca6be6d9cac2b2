import re
import json
from typing import Dict, List, Optional

from errors import GenerationError

SECTION_COUNT = 3

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_HEADING_MARKER = re.compile(r"^\s*(#+|\*\*)\s*|\s*\*\*\s*$")

def parse_llm_json(text: Optional[str]) -> Dict:
    """Parse a JSON object out of an LLM reply, tolerating code fences and chatter."""
    cleaned = _FENCE.sub("", text or "").strip().strip("`").strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        start = cleaned.find("{")
        end = cleaned.rfind("}") + 1
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end])
            except json.JSONDecodeError:
                pass
        raise GenerationError(f"LLM did not return valid JSON. Error: {e}")

def clean_heading(heading: str) -> str:
    return _HEADING_MARKER.sub("", heading or "").strip()

def normalize_sections(payload: Dict) -> List[Dict]:
    """
    Turn the generator's ``{"sections": [...]}`` payload into section dicts
    with ``section_number``, ``heading``, ``body`` and ``image_prompt``.
    """
    raw_sections = payload.get("sections") if isinstance(payload, dict) else None
    if not isinstance(raw_sections, list):
        raise GenerationError("LLM response is missing the 'sections' list")

    sections = []
    for item in raw_sections[:SECTION_COUNT]:
        if not isinstance(item, dict):
            continue
        heading = clean_heading(str(item.get("heading") or item.get("title") or ""))
        body = str(item.get("body") or item.get("content") or "").strip()
        if not heading or not body:
            continue
        image_prompt = str(item.get("image_prompt") or item.get("imagePrompt") or "").strip()
        sections.append({
            "section_number": len(sections) + 1,
            "heading": heading,
            "body": body,
            "image_prompt": image_prompt or f"Professional editorial photograph illustrating: {heading}",
        })

    if len(sections) != SECTION_COUNT:
        raise GenerationError(
            f"Expected {SECTION_COUNT} newsletter sections, got {len(sections)} usable ones"
        )

    return sections

def split_paragraphs(text: Optional[str]) -> List[str]:
    return [line.strip() for line in (text or "").split("\n") if line.strip()]
