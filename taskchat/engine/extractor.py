"""
TASKCHAT - Response Extractor

Pulls the structured payload out of an assistant's free-text reply.

Lookup order:
1. a ```json fenced block
2. the first balanced {...} substring that parses as a payload

A reply with no payload, or with a payload that does not parse, is a
plain text answer: the text is passed through untouched and no
operations are returned.
"""

import json
import logging
import re
from typing import Any, Dict, Iterator, Optional, Tuple

from taskchat.constants import FENCED_PAYLOAD_PATTERN
from taskchat.engine.operations import (
    Extraction,
    operations_from_payload,
    suggestions_from_payload,
)

logger = logging.getLogger(__name__)

_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def extract_response(text: Optional[str]) -> Extraction:
    """Split an assistant reply into clean prose and list operations."""
    if not text or not text.strip():
        return Extraction(reply=text or "")

    for (start, end), candidate in _payload_candidates(text):
        payload = _load_payload(candidate)
        if payload is None:
            continue

        reply = _clean_reply(text[:start] + text[end:])
        confirmation = payload.get("confirmationMessage")
        extraction = Extraction(
            reply=reply,
            operations=operations_from_payload(payload),
            suggestions=suggestions_from_payload(payload),
            confirmation_message=confirmation.strip() if isinstance(confirmation, str) and confirmation.strip() else None,
            has_payload=True,
        )
        logger.debug(
            f"Extracted payload: {len(extraction.operations)} operations, "
            f"{len(extraction.suggestions)} suggestions"
        )
        return extraction

    logger.debug("No usable payload in assistant reply, treating as text-only")
    return Extraction(reply=text)


def _payload_candidates(text: str) -> Iterator[Tuple[Tuple[int, int], str]]:
    for match in re.finditer(FENCED_PAYLOAD_PATTERN, text, re.DOTALL | re.IGNORECASE):
        yield match.span(), match.group(1).strip()

    position = 0
    while True:
        start = text.find("{", position)
        if start == -1:
            return
        end = _balanced_end(text, start)
        if end is None:
            # stray brace in the prose, e.g. an emoticon
            position = start + 1
            continue
        yield (start, end), text[start:end]
        position = end


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Index just past the brace closing the one at `start`, ignoring braces inside strings."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def _load_payload(candidate: str) -> Optional[Dict[str, Any]]:
    for source in (candidate, _TRAILING_COMMA.sub(r"\1", candidate)):
        try:
            parsed = json.loads(source)
        except json.JSONDecodeError as e:
            logger.debug(f"Payload candidate is not valid JSON: {e}")
            continue
        if _is_payload(parsed):
            return parsed
        return None
    return None


def _is_payload(parsed: Any) -> bool:
    if not isinstance(parsed, dict):
        return False
    return isinstance(parsed.get("taskLists"), list) or isinstance(parsed.get("suggestions"), list)


def _clean_reply(text: str) -> str:
    return re.sub(r"\n{3,}", "\n\n", text).strip()
