"""Uniform result envelope shared by every transport."""

import json
from typing import Any, Dict, List

from mcp.types import TextContent


def render_text(result: Any) -> str:
    """Render a handler result as readable text; structures become indented JSON."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


def build_envelope(*results: Any) -> Dict[str, List[Dict[str, str]]]:
    """Wrap one or more results as ``{"content": [{"type": "text", "text": ...}]}``."""
    return {"content": [{"type": "text", "text": render_text(result)} for result in results]}


def to_text_content(envelope: Dict[str, List[Dict[str, str]]]) -> List[TextContent]:
    return [TextContent(type="text", text=block["text"]) for block in envelope["content"]]
