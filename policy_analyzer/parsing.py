"""
Schema-validated decoding of LLM output.

decode() never raises on malformed input. It returns a ParseResult tagged
success / partial / failure:
  * success — the JSON object parsed directly and every item validated
  * partial — the JSON needed repair (trailing commas, truncation)
              or some list items failed validation and were dropped
  * failure — nothing usable
"""

import json
import logging
import re
import typing
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_CLOSERS = {"{": "}", "[": "]"}
_MAX_CUT_ATTEMPTS = 200


@dataclass
class ParseResult:
    status: str
    data: Optional[BaseModel] = None
    errors: list[str] = field(default_factory=list)
    repaired: bool = False

    @property
    def ok(self) -> bool:
        return self.status != "failure"


def _scan(text: str) -> tuple[list[str], bool, list[int]]:
    """Return (open bracket stack, inside-string flag, comma positions outside strings)."""
    stack: list[str] = []
    commas: list[int] = []
    in_string = False
    escaped = False
    for pos, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in ("}", "]"):
            if stack:
                stack.pop()
        elif ch == ",":
            commas.append(pos)
    return stack, in_string, commas


def _close(text: str) -> str:
    stack, in_string, _ = _scan(text)
    if in_string:
        text += '"'
    text = text.rstrip()
    while text.endswith(","):
        text = text[:-1].rstrip()
    return text + "".join(_CLOSERS[ch] for ch in reversed(stack))


def repair_json(text: str) -> Any:
    """
    Parse JSON that may be truncated: close open strings, brackets and braces,
    and if that is not enough, cut back to the last complete element.

    Raises ValueError when no prefix of the text can be repaired.
    """
    text = _TRAILING_COMMA_RE.sub(r"\1", text.strip())
    try:
        return json.loads(_close(text))
    except json.JSONDecodeError:
        pass

    _, _, commas = _scan(text)
    for pos in list(reversed(commas))[:_MAX_CUT_ATTEMPTS]:
        try:
            return json.loads(_close(text[:pos]))
        except json.JSONDecodeError:
            continue
    raise ValueError("JSON could not be repaired")


def extract_json(raw: str) -> tuple[Any, bool]:
    """
    Pull the first JSON object out of an LLM response.

    Returns (parsed, repaired). Raises ValueError if no object can be recovered.
    """
    cleaned = _FENCE_RE.sub("", raw).strip()
    start = cleaned.find("{")
    if start < 0:
        raise ValueError("No JSON object found in LLM response")

    end = cleaned.rfind("}") + 1
    if end > start:
        try:
            return json.loads(cleaned[start:end]), False
        except json.JSONDecodeError:
            pass

    # A response that does not end on "}" was cut off: repair from the full tail
    # first so the last partial element can still be recovered.
    candidates = [cleaned[start:end], cleaned[start:]] if end > start else [cleaned[start:]]
    if not cleaned.endswith("}"):
        candidates.reverse()

    for candidate in candidates:
        try:
            return repair_json(candidate), True
        except ValueError:
            continue
    raise ValueError("JSON could not be repaired")


def _list_item_model(annotation) -> Optional[type]:
    if typing.get_origin(annotation) is not list:
        return None
    args = typing.get_args(annotation)
    if args and isinstance(args[0], type) and issubclass(args[0], BaseModel):
        return args[0]
    return None


def _drop_invalid_items(obj: dict, model_cls: type[BaseModel]) -> tuple[dict, list[str]]:
    cleaned = dict(obj)
    errors: list[str] = []
    for name, info in model_cls.model_fields.items():
        item_cls = _list_item_model(info.annotation)
        if item_cls is None:
            continue
        for key in {info.alias or name, name}:
            items = cleaned.get(key)
            if not isinstance(items, list):
                continue
            kept = []
            for index, item in enumerate(items):
                try:
                    item_cls.model_validate(item)
                except ValidationError as exc:
                    first = exc.errors()[0]
                    loc = ".".join(str(p) for p in first.get("loc", ()))
                    errors.append(f"{key}[{index}].{loc}: {first.get('msg')}")
                    continue
                kept.append(item)
            cleaned[key] = kept
    return cleaned, errors


def decode(raw: Optional[str], model_cls: type[BaseModel]) -> ParseResult:
    """Decode raw LLM text into model_cls. Never raises on bad input."""
    if not raw or not raw.strip():
        return ParseResult("failure", errors=["Empty response"])

    try:
        obj, repaired = extract_json(raw)
    except ValueError as exc:
        logger.warning("JSON parse failed: %s", exc)
        return ParseResult("failure", errors=[str(exc)])

    if repaired:
        logger.info("Repaired malformed JSON from LLM response")

    if not isinstance(obj, dict):
        return ParseResult("failure", errors=["Top-level JSON value is not an object"], repaired=repaired)

    cleaned, errors = _drop_invalid_items(obj, model_cls)
    try:
        data = model_cls.model_validate(cleaned)
    except ValidationError as exc:
        logger.warning("LLM response failed schema validation: %s", exc)
        return ParseResult("failure", errors=errors + [str(exc)], repaired=repaired)

    if errors:
        logger.warning("Dropped %d invalid item(s) from LLM response", len(errors))
    status = "partial" if (errors or repaired) else "success"
    return ParseResult(status, data=data, errors=errors, repaired=repaired)
