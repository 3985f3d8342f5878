"""pagehand Intent Resolver — Turns a user utterance into a structured action.

Resolution runs in two stages:

1. **Structured match** against a static intent taxonomy (category -> intent
   name -> fields + actions), loaded from YAML or JSON.  Keyword overlap
   produces a score; low-confidence matches fall through.
2. **Heuristic fallback** over the free text: an action verb is classified by
   keyword family and the target description is normalized.

Field extraction for structured intents uses a ``fieldname: token`` pattern
and therefore only captures the first whitespace-delimited token of a value
(``name: John Doe`` yields ``John``).  This is a known limitation.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from pagehand.models import INTENT_HIGH_SCORE, INTENT_MEDIUM_SCORE

logger = logging.getLogger("pagehand.engine.intents")

# Configured field types -> accepted Python types
_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "number": (int, float),
    "boolean": (bool,),
    "object": (dict, list),
}


@dataclasses.dataclass(frozen=True)
class IntentField:
    type: str = "string"
    required: bool = False


@dataclasses.dataclass(frozen=True)
class IntentAction:
    description: str = ""
    parameters: dict[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class IntentDefinition:
    """One configured intent: its fields and the actions it permits."""

    fields: dict[str, IntentField] = dataclasses.field(default_factory=dict)
    actions: dict[str, IntentAction] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IntentDefinition:
        fields = {
            str(name): IntentField(
                type=str((spec or {}).get("type", "string")),
                required=bool((spec or {}).get("required", False)),
            )
            for name, spec in (data.get("fields") or {}).items()
        }
        actions = {
            str(name): IntentAction(
                description=str((spec or {}).get("description", "")),
                parameters={str(k): str(v) for k, v in ((spec or {}).get("parameters") or {}).items()},
            )
            for name, spec in (data.get("actions") or {}).items()
        }
        return cls(fields=fields, actions=actions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": {k: dataclasses.asdict(v) for k, v in self.fields.items()},
            "actions": {k: dataclasses.asdict(v) for k, v in self.actions.items()},
        }


@dataclasses.dataclass
class IntentValidation:
    valid: bool
    errors: list[str] = dataclasses.field(default_factory=list)
    missing_fields: list[str] = dataclasses.field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": self.errors or None,
            "missingFields": self.missing_fields or None,
        }


@dataclasses.dataclass
class IntentMatch:
    category: str
    intent_name: str
    score: int
    confidence: str  # high, medium, low
    definition: IntentDefinition


class IntentCatalog:
    """Read-only intent taxonomy: ``{category: {intent_name: IntentDefinition}}``."""

    def __init__(self, intents: dict[str, dict[str, IntentDefinition]] | None = None) -> None:
        self._intents = intents or {}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IntentCatalog:
        """Build a catalog from the ``{"intents": {...}}`` document shape.

        Raises ValueError when the document or any level under ``intents``
        is not a mapping.
        """
        if not isinstance(data or {}, dict):
            raise ValueError(f"Intent taxonomy must be a mapping, got {type(data).__name__}")
        raw = (data or {}).get("intents") or {}
        if not isinstance(raw, dict):
            raise ValueError("'intents' must map category names to intents")
        intents: dict[str, dict[str, IntentDefinition]] = {}
        for category, entries in raw.items():
            if not isinstance(entries or {}, dict):
                raise ValueError(f"Category {category!r} must map intent names to definitions")
            category_intents: dict[str, IntentDefinition] = {}
            for name, defn in (entries or {}).items():
                if not isinstance(defn or {}, dict):
                    raise ValueError(f"Intent {category}/{name} must be a mapping")
                try:
                    category_intents[str(name)] = IntentDefinition.from_dict(defn or {})
                except AttributeError as exc:
                    raise ValueError(f"Intent {category}/{name} has a malformed field or action: {exc}") from exc
            intents[str(category)] = category_intents
        return cls(intents)

    @classmethod
    def from_file(cls, path: Path) -> IntentCatalog:
        """Load a taxonomy from a ``.json`` or YAML file."""
        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
        catalog = cls.from_dict(data or {})
        logger.info("Loaded %d intent categories from %s", len(catalog.categories()), path)
        return catalog

    # -- Lookups -------------------------------------------------------------

    def categories(self) -> list[str]:
        return list(self._intents)

    def category_intents(self, category: str) -> dict[str, IntentDefinition] | None:
        return self._intents.get(category)

    def get(self, category: str, intent_name: str) -> IntentDefinition | None:
        return self._intents.get(category, {}).get(intent_name)

    def actions_for(self, category: str, intent_name: str) -> dict[str, IntentAction] | None:
        definition = self.get(category, intent_name)
        return definition.actions if definition else None

    # -- Validation ----------------------------------------------------------

    def validate(self, category: str, intent_name: str, data: dict[str, Any]) -> IntentValidation:
        """Check extracted data against the intent's field schema.

        Never raises; problems are reported in the returned validation.
        """
        definition = self.get(category, intent_name)
        if definition is None:
            return IntentValidation(
                valid=False,
                errors=[f"Intent '{intent_name}' not found in category '{category}'"],
            )

        errors: list[str] = []
        missing: list[str] = []
        for field_name, schema in definition.fields.items():
            value = data.get(field_name)
            if schema.required and not value:
                missing.append(field_name)
                errors.append(f"Missing required field: {field_name}")

            if value is not None:
                expected = schema.type.lower()
                accepted = _FIELD_TYPES.get(expected)
                # bool is an int subclass; keep "number" strict about it
                mismatched = accepted is not None and (
                    not isinstance(value, accepted) or (expected == "number" and isinstance(value, bool))
                )
                if mismatched:
                    errors.append(
                        f"Field '{field_name}' should be type '{expected}' but got '{type(value).__name__}'"
                    )

        return IntentValidation(valid=not errors, errors=errors, missing_fields=missing)

    # -- Matching ------------------------------------------------------------

    def match(self, user_request: str, category: str | None = None) -> IntentMatch | None:
        """Score every intent (or those in *category*) against the request."""
        request_lower = user_request.lower()
        categories = [category] if category else self.categories()

        best: IntentMatch | None = None
        for cat in categories:
            intents = self._intents.get(cat)
            if not intents:
                continue
            for intent_name, definition in intents.items():
                score = _score_intent(request_lower, intent_name, definition)
                if score > 0 and (best is None or score > best.score):
                    best = IntentMatch(
                        category=cat,
                        intent_name=intent_name,
                        score=score,
                        confidence=_intent_confidence(score),
                        definition=definition,
                    )
        return best

    def format_for_display(self, category: str, intent_name: str) -> str:
        definition = self.get(category, intent_name)
        if definition is None:
            return "Intent not found"

        lines = [f"Intent: {category}/{intent_name}", "Fields:"]
        for field_name, schema in definition.fields.items():
            flag = "required" if schema.required else "optional"
            lines.append(f"  - {field_name}: {schema.type} ({flag})")
        lines.append("Actions:")
        for action_name, action in definition.actions.items():
            lines.append(f"  - {action_name}: {action.description}")
        return "\n".join(lines)


def _score_intent(request_lower: str, intent_name: str, definition: IntentDefinition) -> int:
    score = 0
    for word in intent_name.split("-"):
        if word and word.lower() in request_lower:
            score += 30
    for field_name in definition.fields:
        if field_name.lower() in request_lower:
            score += 20
    for action in definition.actions.values():
        for word in action.description.lower().split():
            if len(word) > 3 and word in request_lower:
                score += 10
    return score


def _intent_confidence(score: int) -> str:
    if score >= INTENT_HIGH_SCORE:
        return "high"
    if score >= INTENT_MEDIUM_SCORE:
        return "medium"
    return "low"


def extract_fields(user_request: str, definition: IntentDefinition) -> dict[str, str | None]:
    """Pull ``fieldname: value`` tokens out of the request.

    Only the first token of each value is captured (see module docstring).
    """
    extracted: dict[str, str | None] = {}
    for field_name in definition.fields:
        m = re.search(rf"{re.escape(field_name)}[:\s]+([^\s,]+)", user_request, re.I)
        extracted[field_name] = m.group(1).strip() if m else None
    return extracted


# ---------------------------------------------------------------------------
# Resolved intents
# ---------------------------------------------------------------------------


@dataclasses.dataclass
class StructuredIntent:
    category: str
    intent_name: str
    confidence: str
    fields: dict[str, str | None]
    validation: IntentValidation
    actions: dict[str, IntentAction]
    original_request: str

    @property
    def missing_fields(self) -> list[str]:
        return self.validation.missing_fields


@dataclasses.dataclass
class NaturalLanguageIntent:
    action: str
    target: str
    confidence: str
    original_request: str
    text: str | None = None


@dataclasses.dataclass
class NoMatch:
    reason: str
    suggestion: str = ""


_ARTICLE_RE = re.compile(r"^(the|a|an)\s+", re.I)
_GENERIC_NOUN_RE = re.compile(r"\s+(button|link|field|input|element)$", re.I)
_QUOTED_RE = re.compile(r"[\"“]([^\"”]+)[\"”]")


def normalize_target(target: str) -> str:
    """Collapse whitespace, drop a leading article and a trailing generic noun."""
    target = re.sub(r"\s+", " ", target).strip()
    target = _ARTICLE_RE.sub("", target)
    target = _GENERIC_NOUN_RE.sub("", target)
    return target.strip()


def _has_word(request: str, *words: str) -> bool:
    return any(re.search(rf"\b{w}\b", request) for w in words)


def parse_natural_language(user_request: str) -> tuple[str, str, str | None]:
    """Classify the action verb and pull out target and literal text.

    Returns ``(action, normalized_target, text)``.
    """
    original = user_request.strip()
    request = original.lower()
    target = ""
    text: str | None = None

    if _has_word(request, "click", "press", "tap"):
        action = "click"
        m = re.search(r"(?:click|press|tap)\s+(?:on\s+)?(?:the\s+)?(.+)$", request)
        if m:
            target = m.group(1)
    elif _has_word(request, "type", "enter", "input", "fill"):
        action = "type"
        quoted = _QUOTED_RE.search(original)
        m = re.search(r"(?:type|enter|input|fill)\s+(.+?)\s+(?:in|into|to)\s+(?:the\s+)?(.+)", request)
        if m:
            target = m.group(2)
            # Keep the caller's casing for the literal text
            start, end = m.span(1)
            text = original[start:end].strip()
        else:
            m = re.search(r"(?:type|enter|input|fill)\s+(?:in|into|to)\s+(?:the\s+)?(.+)", request)
            if m:
                target = m.group(1)
        if quoted:
            text = quoted.group(1)
        elif text:
            text = text.strip("\"“”")
    elif _has_word(request, "clear", "empty", "delete"):
        action = "clear"
        m = re.search(r"(?:clear|empty|delete)\s+(?:the\s+)?(.+)", request)
        if m:
            target = m.group(1)
    elif _has_word(request, "focus", "select"):
        action = "focus"
        m = re.search(r"(?:focus|select)\s+(?:on\s+)?(?:the\s+)?(.+)", request)
        if m:
            target = m.group(1)
    elif "scroll" in request:
        if _has_word(request, "top"):
            action, target = "scrollToTop", "top of page"
        elif _has_word(request, "bottom"):
            action, target = "scrollToBottom", "bottom of page"
        elif re.search(r"scroll\s+to\s+\S", request):
            action = "scrollTo"
            m = re.search(r"scroll\s+to\s+(?:the\s+)?(.+)", request)
            target = m.group(1) if m else ""
        elif _has_word(request, "down"):
            action, target = "scrollBy", "down"
        elif _has_word(request, "up"):
            action, target = "scrollBy", "up"
        else:
            action, target = "scrollTo", "page"
    elif _has_word(request, "wait", "find"):
        action = "waitForElement"
        m = re.search(r"(?:wait\s+for|find)\s+(?:the\s+)?(.+)", request)
        if m:
            target = m.group(1)
    else:
        action = "click"
        target = request

    return action, normalize_target(target), text


class IntentResolver:
    """Resolves a user request against a catalog, falling back to heuristics."""

    def __init__(self, catalog: IntentCatalog | None = None) -> None:
        self._catalog = catalog or IntentCatalog()

    @property
    def catalog(self) -> IntentCatalog:
        return self._catalog

    def resolve(
        self, user_request: str, category: str | None = None
    ) -> StructuredIntent | NaturalLanguageIntent | NoMatch:
        if not user_request or not user_request.strip():
            return NoMatch(reason="empty request", suggestion="Describe what you want to do on the page")

        match = self._catalog.match(user_request, category)
        if match is not None and match.confidence != "low":
            fields = extract_fields(user_request, match.definition)
            validation = self._catalog.validate(match.category, match.intent_name, fields)
            if validation.missing_fields:
                logger.info(
                    "Intent %s/%s is missing required fields: %s",
                    match.category,
                    match.intent_name,
                    ", ".join(validation.missing_fields),
                )
            return StructuredIntent(
                category=match.category,
                intent_name=match.intent_name,
                confidence=match.confidence,
                fields=fields,
                validation=validation,
                actions=dict(match.definition.actions),
                original_request=user_request,
            )

        if match is not None:
            logger.debug("Structured match %s/%s too weak (score %d)", match.category, match.intent_name, match.score)

        action, target, text = parse_natural_language(user_request)
        return NaturalLanguageIntent(
            action=action,
            target=target,
            text=text,
            confidence="high" if target else "medium",
            original_request=user_request,
        )
