"""pagehand Affordance Collector — Inventories the interactive elements on a live page.

Runs a single synchronous scan inside the page (via Playwright's
``page.evaluate``) over a fixed CSS query, in document order, and normalizes
each match into an :class:`Affordance`.  Every matched element is stamped
with a persistent identity attribute so that repeated scans return the same
id for the same DOM node, and the authoritative selector handed to consumers
is always the identity-attribute selector.

Bounding boxes, visibility and enabled flags are time-of-scan facts.  They
go stale as soon as the DOM changes and must not be cached across an action.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import TYPE_CHECKING, Any

from pagehand.models import (
    ALLOWED_ATTRS,
    DEFAULT_MAX_AFFORDANCES,
    HASH_TEXT_TRUNCATE,
    IDENTITY_ATTR,
    TEXT_TRUNCATE,
)

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger("pagehand.engine.affordances")

AFFORDANCE_QUERY = ",".join(
    [
        "a",
        "button",
        "[role=button]",
        "[role=link]",
        "input",
        "textarea",
        "select",
        "[contenteditable=true]",
        "[role=tab]",
        "[role=menuitem]",
        "[role=option]",
        "[role=treeitem]",
    ]
)

# In-page scan.  Per-element failures are skipped, never thrown, so one
# odd node cannot abort the whole inventory.
_COLLECT_JS = r"""
({ query, attr, max, allowed, textLimit, hashLimit }) => {
    const els = Array.from(document.querySelectorAll(query));
    const seenIds = new Set();

    const hashString = (input) => {
        let hash = 0;
        for (let i = 0; i < input.length; i += 1) {
            hash = (hash << 5) - hash + input.charCodeAt(i);
            hash |= 0;
        }
        return Math.abs(hash).toString(36);
    };

    const ensureId = (el) => {
        const existing = el.getAttribute(attr);
        // A cloned node carries its source's id; only the first in document order keeps it.
        if (existing && !seenIds.has(existing)) {
            seenIds.add(existing);
            return existing;
        }
        const base = hashString([
            el.tagName,
            el.getAttribute('id') || '',
            el.getAttribute('name') || '',
            el.getAttribute('aria-label') || '',
            (el.textContent || '').slice(0, hashLimit),
            typeof el.className === 'string' ? el.className : (el.getAttribute('class') || ''),
        ].join('|'));
        let candidate = base;
        let counter = 1;
        while (seenIds.has(candidate) || document.querySelector(`[${attr}="${candidate}"]`)) {
            candidate = `${base}-${counter}`;
            counter += 1;
        }
        el.setAttribute(attr, candidate);
        seenIds.add(candidate);
        return candidate;
    };

    const isVisible = (el) => {
        const r = el.getBoundingClientRect();
        const s = getComputedStyle(el);
        return r.width > 0 && r.height > 0 && s.visibility !== 'hidden' && s.display !== 'none';
    };

    const accName = (el) => {
        const aria = el.getAttribute('aria-label');
        if (aria) return aria;
        const labelledBy = el.getAttribute('aria-labelledby');
        if (labelledBy) {
            const ref = document.getElementById(labelledBy);
            const refText = ref && ref.textContent ? ref.textContent.trim() : '';
            return refText || labelledBy;
        }
        const lbl = el.id ? document.querySelector(`label[for="${CSS.escape(el.id)}"]`) : null;
        if (lbl && lbl.textContent && lbl.textContent.trim()) return lbl.textContent.trim();
        if (el.tagName === 'IMG') return el.alt || null;
        const txt = el.textContent ? el.textContent.trim() : '';
        return txt ? txt : null;
    };

    const bestCss = (el) => {
        const tag = el.tagName.toLowerCase();
        const id = el.getAttribute('id');
        if (id && !/\b[a-f0-9]{6,}\b/i.test(id)) return `#${CSS.escape(id)}`;
        const name = el.getAttribute('name');
        if (name) return `${tag}[name="${name}"]`;
        const placeholder = el.getAttribute('placeholder');
        if (placeholder) return `${tag}[placeholder="${placeholder}"]`;
        const cls = (el.getAttribute('class') || '').split(/\s+/).find((c) => c.length > 2);
        const parentEl = el.parentElement;
        const parent = parentEl && parentEl.tagName !== 'BODY' ? parentEl.tagName.toLowerCase() : 'body';
        const nth = Array.from(parentEl ? parentEl.children : [])
            .filter((e) => e.tagName === el.tagName)
            .indexOf(el) + 1;
        return `${parent} ${tag}${cls ? '.' + cls : ''}:nth-of-type(${nth})`;
    };

    const items = [];
    for (const el of els) {
        if (items.length >= max) break;
        try {
            const rect = el.getBoundingClientRect();
            const id = ensureId(el);
            const attrs = {};
            for (const k of allowed) {
                const v = el.getAttribute(k);
                if (v) attrs[k] = v;
            }
            const text = el.textContent ? el.textContent.trim().slice(0, textLimit) : '';
            items.push({
                id,
                role: el.getAttribute('role') || (el.tagName === 'A' ? 'link' : null),
                tag: el.tagName,
                name: accName(el),
                text: text || null,
                href: el.href || null,
                attrs,
                rels: { forId: el.getAttribute('for') || null },
                bbox: { x: rect.x, y: rect.y, w: rect.width, h: rect.height },
                visible: isVisible(el),
                enabled: !el.disabled,
                cssPath: bestCss(el),
                selector: `[${attr}="${id}"]`,
            });
        } catch (err) {
            continue;
        }
    }
    return items;
}
"""

# "- Submit (BUTTON) - [data-pagehand-id="x1"]"
_CONTEXT_LINE_RE = re.compile(r"^- (.+?) \((.+?)\) - (.+)$")


@dataclasses.dataclass
class BoundingBox:
    """Viewport-relative box captured at scan time."""

    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0


@dataclasses.dataclass
class Affordance:
    """Snapshot of one interactive page element."""

    id: str
    tag: str
    selector: str
    role: str | None = None
    name: str | None = None
    text: str | None = None
    href: str | None = None
    attrs: dict[str, str] = dataclasses.field(default_factory=dict)
    rels: dict[str, str | None] = dataclasses.field(default_factory=dict)
    bbox: BoundingBox = dataclasses.field(default_factory=BoundingBox)
    visible: bool = False
    enabled: bool = True
    css_path: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Affordance:
        """Build an Affordance from the camelCase wire shape.

        Raises KeyError/ValueError when the identity fields are missing.
        """
        bbox = data.get("bbox") or {}
        return cls(
            id=str(data["id"]),
            tag=str(data["tag"]),
            selector=str(data["selector"]),
            role=data.get("role") or None,
            name=data.get("name") or None,
            text=data.get("text") or None,
            href=data.get("href") or None,
            attrs={str(k): str(v) for k, v in (data.get("attrs") or {}).items() if v},
            rels=dict(data.get("rels") or {}),
            bbox=BoundingBox(
                x=float(bbox.get("x", 0.0)),
                y=float(bbox.get("y", 0.0)),
                w=float(bbox.get("w", 0.0)),
                h=float(bbox.get("h", 0.0)),
            ),
            visible=bool(data.get("visible", False)),
            enabled=bool(data.get("enabled", True)),
            css_path=str(data.get("cssPath", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape embedded in model context."""
        return {
            "id": self.id,
            "role": self.role,
            "tag": self.tag,
            "name": self.name,
            "text": self.text,
            "href": self.href,
            "attrs": dict(self.attrs),
            "rels": dict(self.rels),
            "bbox": dataclasses.asdict(self.bbox),
            "visible": self.visible,
            "enabled": self.enabled,
            "cssPath": self.css_path,
            "selector": self.selector,
        }

    @property
    def label(self) -> str:
        """Best human-readable label: accessible name, then text, then tag."""
        return self.name or self.text or self.tag.lower()


def identity_selector(affordance_id: str, attr: str = IDENTITY_ATTR) -> str:
    """Return the unique attribute selector for an affordance id."""
    return f'[{attr}="{affordance_id}"]'


class AffordanceCollector:
    """Scans a Playwright page for interactive elements."""

    def __init__(self, page: Page, identity_attr: str = IDENTITY_ATTR) -> None:
        self._page = page
        self._attr = identity_attr

    def collect(self, max_count: int = DEFAULT_MAX_AFFORDANCES) -> list[Affordance]:
        """Rescan the page from scratch and return affordances in document order.

        Writes the identity attribute onto matched elements that lack one.
        Existing identities are never overwritten.
        """
        if max_count <= 0:
            return []

        raw = self._page.evaluate(
            _COLLECT_JS,
            {
                "query": AFFORDANCE_QUERY,
                "attr": self._attr,
                "max": max_count,
                "allowed": list(ALLOWED_ATTRS),
                "textLimit": TEXT_TRUNCATE,
                "hashLimit": HASH_TEXT_TRUNCATE,
            },
        )

        affordances: list[Affordance] = []
        for item in raw or []:
            try:
                affordances.append(Affordance.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.debug("Skipping malformed affordance %r: %s", item, exc)
                continue
            if len(affordances) >= max_count:
                break

        logger.info("Collected %d affordances (max %d)", len(affordances), max_count)
        return affordances


def format_affordance_context(affordances: list[Affordance], include_hidden: bool = False) -> str:
    """Render affordances as the ``- Name (TAG) - selector`` lines used in model context."""
    lines: list[str] = []
    for aff in affordances:
        if not aff.visible and not include_hidden:
            continue
        label = " ".join(aff.label.split())
        lines.append(f"- {label} ({aff.tag}) - {aff.selector}")
    return "\n".join(lines)


def parse_affordance_context(context: str) -> list[dict[str, str]]:
    """Parse ``- Name (TAG) - selector`` lines back into name/tag/selector mappings.

    Lines that do not follow the format are ignored.
    """
    parsed: list[dict[str, str]] = []
    for line in context.split("\n"):
        line = line.strip()
        if not line.startswith("-"):
            continue
        m = _CONTEXT_LINE_RE.match(line)
        if m:
            parsed.append({"name": m.group(1), "tag": m.group(2), "selector": m.group(3)})
    return parsed
