"""Coerce a model reply into a valid ``AdvisoryResponse``.

Models are asked for strict JSON but often wrap it in markdown fences, put prose
around it, or break it outright. ``normalize_advisory`` runs a fixed list of
extraction strategies in order; each one takes the raw text and returns a dict
or ``None`` when it does not apply. The first dict wins and is backfilled from
the language tables so title, text and steps are never empty.
"""
import json
import logging
import re
from typing import Callable, Optional

from krushi_sathi.core.errors import AIParseError
from krushi_sathi.models.advisory import AdvisoryResponse
from krushi_sathi.utils.advisory_templates import default_steps, default_text, default_title

logger = logging.getLogger(__name__)

MIN_USEFUL_TEXT_CHARS = 20

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*")
_TEXT_FIELD_RE = re.compile(r'"text"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)
_TITLE_FIELD_RE = re.compile(r'"title"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)
_KEY_LABEL_RE = re.compile(r'"?\b(?:title|text|steps|lang|source)\b"?\s*:', re.IGNORECASE)
_STRUCTURAL_RE = re.compile(r'[{}\[\]"]')
_STEP_MARKER_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)]|step\s*\d+\s*[:.)-])(?=\s|$)\s*", re.IGNORECASE)

Strategy = Callable[[str], Optional[dict]]


def _loads_object(text: str) -> Optional[dict]:
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _unescape(fragment: str) -> str:
    try:
        return json.loads(f'"{fragment}"')
    except (json.JSONDecodeError, ValueError):
        return fragment.replace('\\"', '"').replace("\\n", "\n")


def strip_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw).replace("```", "").strip()


# --- Strategies ---

def parse_direct(raw: str) -> Optional[dict]:
    """The reply is already a clean JSON object."""
    return _loads_object(raw.strip())


def parse_fenced(raw: str) -> Optional[dict]:
    """Drop markdown fences, keep everything between the first '{' and the last '}'."""
    cleaned = strip_fences(raw)
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end <= start:
        return None
    return _loads_object(cleaned[start:end + 1])


def first_object_span(text: str) -> Optional[str]:
    """First balanced top-level ``{...}`` span, skipping braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth, in_string, escaped = 0, False, False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from here on; try the next opening brace
        start = text.find("{", start + 1)
    return None


def parse_first_object(raw: str) -> Optional[dict]:
    """Isolate the first complete object when several fragments are present."""
    span = first_object_span(strip_fences(raw))
    return _loads_object(span) if span else None


def extract_text_field(raw: str) -> Optional[dict]:
    """Pull ``"text": "..."`` (and a title, if any) out of broken JSON."""
    match = _TEXT_FIELD_RE.search(raw)
    if not match:
        return None
    extracted = {"text": _unescape(match.group(1))}
    title_match = _TITLE_FIELD_RE.search(raw)
    if title_match:
        extracted["title"] = _unescape(title_match.group(1))
    return extracted


def strip_structure(raw: str) -> Optional[dict]:
    """Last resort: the reply minus fences, key labels and JSON punctuation."""
    cleaned = _KEY_LABEL_RE.sub(" ", strip_fences(raw))
    cleaned = _STRUCTURAL_RE.sub(" ", cleaned)
    cleaned = re.sub(r"[ \t]*,[ \t]*$", "", cleaned, flags=re.MULTILINE) # separators left at line ends
    cleaned = re.sub(r"[ \t]+", " ", cleaned)
    cleaned = re.sub(r" *\n[\s]*", "\n", cleaned).strip()
    return {"text": cleaned} if cleaned else None


PARSE_STRATEGIES: list[Strategy] = [parse_direct, parse_fenced, parse_first_object]
SALVAGE_STRATEGIES: list[Strategy] = [extract_text_field, strip_structure]


# --- Field coercion ---

def _clean_str(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def coerce_steps(value) -> list[str]:
    if isinstance(value, str):
        items = value.splitlines()
    elif isinstance(value, (list, tuple)):
        items = []
        for item in value:
            if isinstance(item, dict):
                # {"step": "..."} / {"text": "..."} shapes
                item = next((v for v in item.values() if isinstance(v, str)), "")
            elif item is not None and not isinstance(item, str):
                item = str(item)
            items.append(item or "")
    else:
        return []
    steps = [_STEP_MARKER_RE.sub("", s).strip() for s in items]
    return [s for s in steps if s]


def is_useful_text(text: str) -> bool:
    stripped = text.strip()
    return len(stripped) >= MIN_USEFUL_TEXT_CHARS and any(ch.isalpha() for ch in stripped)


def has_advisory_content(data: dict) -> bool:
    """A parsed object counts only if it carries a title, text or steps."""
    return bool(_clean_str(data.get("title")) or _clean_str(data.get("text")) or coerce_steps(data.get("steps")))


def build_response(data: dict, lang: str, question: str | None = None) -> AdvisoryResponse:
    """Backfill missing fields; ``lang`` and ``source`` never come from the model."""
    steps = coerce_steps(data.get("steps"))
    return AdvisoryResponse(
        title=_clean_str(data.get("title")) or default_title(lang),
        text=_clean_str(data.get("text")) or default_text(lang, question),
        steps=steps or default_steps(lang),
        lang=lang,
        source="ai",
    )


def normalize_advisory(raw_text: str, lang: str, question: str | None = None) -> AdvisoryResponse:
    """Turn raw model output into an advisory, or raise ``AIParseError``."""
    raw_text = raw_text or ""
    logger.debug(f"Raw model output ({len(raw_text)} chars): {raw_text[:1000]}")

    for strategy in PARSE_STRATEGIES:
        parsed = strategy(raw_text)
        if parsed is not None and has_advisory_content(parsed):
            logger.debug(f"Model output parsed by '{strategy.__name__}': {json.dumps(parsed, ensure_ascii=False)[:1000]}")
            return build_response(parsed, lang, question)

    for strategy in SALVAGE_STRATEGIES:
        salvaged = strategy(raw_text)
        if salvaged is None:
            continue
        if is_useful_text(salvaged.get("text", "")):
            logger.warning(f"Model output was not valid JSON; salvaged text with '{strategy.__name__}'.")
            logger.debug(f"Cleaned model output: {salvaged['text'][:1000]}")
            return build_response(salvaged, lang, question)
        logger.debug(f"Strategy '{strategy.__name__}' produced no useful text.")

    logger.error("Model output could not be parsed into an advisory.")
    raise AIParseError()
