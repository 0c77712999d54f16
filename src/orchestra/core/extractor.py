"""Text extractor: isolates JSON (or Mermaid) payloads in raw model output.

Models wrap their answers in prose, code fences or both. The inline
fallback takes everything from the first opening bracket to the last closing
one, which can over-match when string values contain braces.
A failed parse gets exactly one stricter re-scan before giving up.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from rich.console import Console

from .errors import MalformedJson, NoDiagramFound, NoJsonFound

console = Console(stderr=True)

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_FENCED_PLAIN = re.compile(r"```[ \t]*\r?\n([\s\S]*?)\s*```")
_INLINE_SPAN = re.compile(r"\{[\s\S]*\}|\[[\s\S]*\]")
_STRICT_OBJECT = re.compile(r"\{[\s\S]*?\}")

_FENCED_MERMAID = re.compile(r"```mermaid[ \t]*\r?\n([\s\S]*?)\r?\n\s*```", re.IGNORECASE)
_RAW_GRAPH = re.compile(r"graph (?:TD|LR|RL|BT)[\s\S]*")


def _fenced_payload(text: str) -> Optional[str]:
    """Return the interior of the first JSON-looking fenced block."""
    for pattern in (_FENCED_JSON, _FENCED_PLAIN):
        m = pattern.search(text)
        if m:
            interior = m.group(1).strip()
            if interior.startswith(("{", "[")):
                return interior
    return None


def find_json_candidate(raw_text: str) -> str:
    """Locate the JSON payload in model output without parsing it.

    Priority: whole trimmed text when it is a bare object, then a fenced
    block, then the first inline object or array span.
    """
    text = (raw_text or "").strip()

    if text.startswith("{") and text.endswith("}"):
        return text

    fenced = _fenced_payload(text)
    if fenced is not None:
        return fenced

    m = _INLINE_SPAN.search(text)
    if m:
        return m.group(0)

    raise NoJsonFound()


def extract_json(raw_text: str) -> Any:
    """Extract and parse the JSON payload from model output.

    Raises NoJsonFound when nothing JSON-like is present and MalformedJson
    when the candidate (and its one strict re-scan) fail to parse.
    """
    candidate = find_json_candidate(raw_text)

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        first_error = e

    strict = _STRICT_OBJECT.search(candidate)
    if strict and strict.group(0) != candidate:
        console.print(
            f"  [yellow]WARN[/yellow] JSON parse failed ({first_error.msg}), "
            "retrying with stricter extraction"
        )
        try:
            return json.loads(strict.group(0))
        except json.JSONDecodeError:
            pass

    raise MalformedJson(str(first_error))


def extract_mermaid(raw_text: str) -> str:
    """Extract Mermaid diagram source from model output."""
    text = raw_text or ""

    m = _FENCED_MERMAID.search(text) or re.search(r"```\r?\n([\s\S]*?)\r?\n```", text)
    if m:
        return m.group(1).strip()

    m = _RAW_GRAPH.search(text)
    if m:
        return m.group(0).strip()

    if "->" in text and ("graph" in text or "flowchart" in text):
        return text.strip()

    raise NoDiagramFound()
