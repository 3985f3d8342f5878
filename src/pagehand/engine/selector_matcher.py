"""pagehand Selector Matcher — Binds a target description to one affordance.

A deliberately simple lexical scorer.  The weights below are fixed so that
matching is reproducible:

    exact name (case-insensitive)     100
    name substring, either direction   80
    tag substring, either direction    60
    otherwise, per shared token       +20
    action/tag compatibility bonus    +10

The highest score wins; among equal scores the first affordance in document
order is kept.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Mapping, Sequence, Union

from pagehand.engine.affordances import Affordance
from pagehand.models import MATCH_HIGH_SCORE, MATCH_MEDIUM_SCORE

logger = logging.getLogger("pagehand.engine.selector_matcher")

CLICK_LIKE_TAGS = ("button", "a", "input")
TYPE_LIKE_TAGS = ("input", "textarea")

NO_MATCH_SUGGESTION = (
    "Try being more specific about the element you want to interact with, "
    "or check if the element exists on the page"
)

Candidate = Union[Affordance, Mapping[str, Any]]


@dataclasses.dataclass
class MatchedElement:
    name: str
    tag: str
    selector: str


@dataclasses.dataclass
class SelectorMatch:
    element: MatchedElement
    score: int
    confidence: str  # high, medium, low
    index: int  # position in the candidate list


@dataclasses.dataclass
class NoMatch:
    target: str
    suggestion: str = NO_MATCH_SUGGESTION


def _as_element(candidate: Candidate) -> MatchedElement:
    if isinstance(candidate, Affordance):
        return MatchedElement(name=candidate.label, tag=candidate.tag, selector=candidate.selector)
    return MatchedElement(
        name=str(candidate.get("name") or ""),
        tag=str(candidate.get("tag") or ""),
        selector=str(candidate.get("selector") or ""),
    )


def match_confidence(score: int) -> str:
    if score >= MATCH_HIGH_SCORE:
        return "high"
    if score >= MATCH_MEDIUM_SCORE:
        return "medium"
    return "low"


def score_element(target: str, action: str, element: MatchedElement) -> int:
    """Score one element against a target description."""
    target_lower = target.lower().strip()
    name_lower = element.name.lower().strip()
    tag_lower = element.tag.lower().strip()
    if not target_lower:
        return 0

    score = 0
    if name_lower and name_lower == target_lower:
        score = 100
    elif name_lower and (target_lower in name_lower or name_lower in target_lower):
        score = 80
    elif tag_lower and (tag_lower in target_lower or target_lower in tag_lower):
        score = 60
    else:
        for keyword in target_lower.split():
            if keyword in name_lower or keyword in tag_lower:
                score += 20

    # Tag compatibility alone never produces a match
    if score > 0:
        if action == "click" and tag_lower in CLICK_LIKE_TAGS:
            score += 10
        elif action in ("type", "typeFast") and tag_lower in TYPE_LIKE_TAGS:
            score += 10

    return score


def match_selector(target: str, action: str, candidates: Sequence[Candidate]) -> SelectorMatch | NoMatch:
    """Return the best-scoring candidate for *target*, or NoMatch."""
    best: SelectorMatch | None = None
    for index, candidate in enumerate(candidates):
        element = _as_element(candidate)
        score = score_element(target, action, element)
        if score > 0 and (best is None or score > best.score):
            best = SelectorMatch(element=element, score=score, confidence=match_confidence(score), index=index)

    if best is None:
        logger.info("No element matched target %r among %d candidates", target, len(candidates))
        return NoMatch(target=target)

    logger.debug("Matched %r -> %s (score %d)", target, best.element.selector, best.score)
    return best
