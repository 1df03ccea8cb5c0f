"""
renderer.py

Responsibility: Render document templates by resolving digest placeholders.

Rules:
- A placeholder has the exact form `<SHA256_OF_{filename}>`.
- Substitution is literal, global and case-sensitive on the evidence basename.
- Without a context, all other text passes through byte-identical.
- With a context (metadata opt-in), templates holding Jinja2 markers are first
  rendered with it (StrictUndefined), then digests are substituted.
- Placeholders without a matching evidence file are left in place and logged;
  with `strict=True` they raise UnresolvedPlaceholderError instead.

This module intentionally does NOT write files or know about git/GitHub.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

from jinja2 import Environment, StrictUndefined

from proofpack.digest import EvidenceFile, collect_evidence

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "<SHA256_OF_"
_PLACEHOLDER_RE = re.compile(r"<SHA256_OF_[^<>\r\n]+>")


class RenderError(RuntimeError):
    pass


class UnresolvedPlaceholderError(RenderError):
    def __init__(self, document: str, placeholders: Sequence[str]) -> None:
        self.document = document
        self.placeholders = tuple(placeholders)
        super().__init__(f"Unresolved placeholders in {document}: {', '.join(self.placeholders)}")


@dataclass(frozen=True)
class DocumentTemplate:
    name: str
    text: str


@dataclass(frozen=True)
class RenderedDocument:
    name: str
    text: str
    unresolved: tuple[str, ...] = ()


def placeholder(filename: str) -> str:
    return f"{PLACEHOLDER_PREFIX}{filename}>"


def find_placeholders(text: str) -> list[str]:
    """Distinct placeholder tokens in order of first appearance."""
    return list(dict.fromkeys(_PLACEHOLDER_RE.findall(text)))


def substitute_digests(text: str, evidence: Iterable[EvidenceFile]) -> str:
    for ev in evidence:
        text = text.replace(placeholder(ev.name), ev.sha256)
    return text


def load_templates(template_dir: str | Path) -> list[DocumentTemplate]:
    """
    Load every file under template_dir as a UTF-8 document template,
    in deterministic relative-path order.
    """
    tpl_dir = Path(template_dir).resolve()
    if not tpl_dir.exists() or not tpl_dir.is_dir():
        raise RenderError(f"Template directory not found: {tpl_dir}")

    paths: list[Path] = []
    for root, _dirs, filenames in os.walk(tpl_dir):
        root_path = Path(root)
        for name in filenames:
            paths.append(root_path / name)
    paths.sort(key=lambda p: p.relative_to(tpl_dir).as_posix())

    templates: list[DocumentTemplate] = []
    for path in paths:
        rel = path.relative_to(tpl_dir).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise RenderError(f"Template is not UTF-8 text: {rel}") from e
        templates.append(DocumentTemplate(name=rel, text=text))

    if not templates:
        raise RenderError(f"Template directory is empty: {tpl_dir}")
    return templates


def _has_jinja_markers(text: str) -> bool:
    return ("{{" in text) or ("{%" in text) or ("{#" in text)


def render_documents(
    templates: Sequence[DocumentTemplate],
    evidence: Sequence[EvidenceFile],
    *,
    context: dict[str, Any] | None = None,
    strict: bool = False,
) -> list[RenderedDocument]:
    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    ctx = None if context is None else {**context, "evidence": list(evidence)}

    out: list[RenderedDocument] = []
    for tpl in templates:
        text = tpl.text
        if ctx is not None and _has_jinja_markers(text):
            try:
                text = env.from_string(text).render(**ctx)
            except Exception as e:  # noqa: BLE001 - surface as RenderError
                raise RenderError(f"Failed rendering template: {tpl.name}") from e

        text = substitute_digests(text, evidence)

        unresolved = find_placeholders(text)
        if unresolved:
            if strict:
                raise UnresolvedPlaceholderError(tpl.name, unresolved)
            logger.warning("%s: leaving unresolved placeholders %s", tpl.name, ", ".join(unresolved))

        out.append(RenderedDocument(name=tpl.name, text=text, unresolved=tuple(unresolved)))
    return out


def render(
    templates: Sequence[DocumentTemplate],
    evidence_dir: str | Path,
    *,
    context: dict[str, Any] | None = None,
    strict: bool = False,
) -> list[RenderedDocument]:
    """
    Digest every file directly under evidence_dir and render each template.
    Only `<SHA256_OF_...>` tokens are touched unless a metadata context is given.

    A missing or empty evidence_dir raises EvidenceError before any file is read.
    """
    evidence = collect_evidence(evidence_dir)
    return render_documents(templates, evidence, context=context, strict=strict)
