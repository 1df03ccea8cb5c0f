import logging
from pathlib import Path

import pytest

from proofpack import digest
from proofpack.cli import BUNDLED_TEMPLATES_DIR
from proofpack.digest import EvidenceError, collect_evidence
from proofpack.renderer import (
    DocumentTemplate,
    RenderError,
    UnresolvedPlaceholderError,
    find_placeholders,
    load_templates,
    placeholder,
    render,
    render_documents,
)

HELLO_SHA256 = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"


def test_hello_scenario(evidence_dir: Path) -> None:
    docs = render([DocumentTemplate("doc.md", "hash: <SHA256_OF_a.png>")], evidence_dir)
    assert len(docs) == 1
    assert docs[0].text == f"hash: {HELLO_SHA256}"
    assert docs[0].unresolved == ()


def test_every_occurrence_replaced_rest_untouched(evidence_dir: Path) -> None:
    text = "A <SHA256_OF_a.png>\n  B <SHA256_OF_a.png> C\n<sha256_of_a.png> <SHA256_OF_A.png>\n"
    [doc] = render([DocumentTemplate("doc.md", text)], evidence_dir)
    assert doc.text == (
        f"A {HELLO_SHA256}\n  B {HELLO_SHA256} C\n<sha256_of_a.png> <SHA256_OF_A.png>\n"
    )
    # Case differs from the file name, so it is not a match.
    assert doc.unresolved == ("<SHA256_OF_A.png>",)


def test_unmatched_placeholder_passes_through(evidence_dir: Path, caplog: pytest.LogCaptureFixture) -> None:
    text = "x <SHA256_OF_missing.png> y"
    with caplog.at_level(logging.WARNING, logger="proofpack.renderer"):
        [doc] = render([DocumentTemplate("doc.md", text)], evidence_dir)
    assert doc.text == text
    assert doc.unresolved == ("<SHA256_OF_missing.png>",)
    assert "missing.png" in caplog.text


def test_unmatched_placeholder_strict_raises(evidence_dir: Path) -> None:
    with pytest.raises(UnresolvedPlaceholderError) as exc:
        render([DocumentTemplate("doc.md", "<SHA256_OF_missing.png>")], evidence_dir, strict=True)
    assert exc.value.document == "doc.md"
    assert exc.value.placeholders == ("<SHA256_OF_missing.png>",)


def test_render_is_idempotent(screenshots_dir: Path) -> None:
    templates = [
        DocumentTemplate("one.md", "".join(f"{placeholder(f'screenshot-00{i}.png')}\n" for i in range(1, 4))),
        DocumentTemplate("two.md", "static only\n"),
    ]
    assert render(templates, screenshots_dir) == render(templates, screenshots_dir)


def test_all_placeholders_resolved_when_files_match(screenshots_dir: Path) -> None:
    text = " | ".join(placeholder(f"screenshot-00{i}.png") for i in range(1, 4))
    [doc] = render([DocumentTemplate("doc.md", text)], screenshots_dir)
    assert "<SHA256_OF_" not in doc.text
    assert doc.unresolved == ()


def test_missing_evidence_dir_fails_before_digest(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom(path):
        raise AssertionError("digest must not be computed")

    monkeypatch.setattr(digest, "sha256_file", _boom)
    with pytest.raises(EvidenceError):
        render([DocumentTemplate("doc.md", "<SHA256_OF_a.png>")], tmp_path / "missing")


def test_unreadable_file_aborts_render(evidence_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _denied(path):
        raise PermissionError(f"denied: {path}")

    monkeypatch.setattr(digest, "sha256_file", _denied)
    with pytest.raises(PermissionError):
        render([DocumentTemplate("doc.md", "<SHA256_OF_a.png>")], evidence_dir)


def test_brace_text_passes_through_without_context(evidence_dir: Path) -> None:
    texts = [
        "## Evidence {#evidence}\nhash: <SHA256_OF_a.png>\n",
        "Use `{{ .Sha }}` in Go\n{% raw %} stays\nhash: <SHA256_OF_a.png>\n",
    ]
    for text in texts:
        [doc] = render([DocumentTemplate("doc.md", text)], evidence_dir)
        assert doc.text == text.replace("<SHA256_OF_a.png>", HELLO_SHA256)


def test_jinja_metadata_then_digests(screenshots_dir: Path) -> None:
    text = (
        "Device: {{ device }}\n"
        "{% for f in evidence %}- {{ f.name }}: <SHA256_OF_{{ f.name }}>\n{% endfor %}"
    )
    evidence = collect_evidence(screenshots_dir)
    [doc] = render_documents([DocumentTemplate("doc.md", text)], evidence, context={"device": "Pixel 8"})
    lines = doc.text.splitlines()
    assert lines[0] == "Device: Pixel 8"
    assert lines[1:] == [f"- {f.name}: {f.sha256}" for f in evidence]


def test_jinja_undefined_variable_raises(evidence_dir: Path) -> None:
    with pytest.raises(RenderError, match="doc.md"):
        render([DocumentTemplate("doc.md", "{{ nope }}")], evidence_dir, context={})


def test_find_placeholders_distinct_in_order() -> None:
    text = "<SHA256_OF_b.png> <SHA256_OF_a.png> <SHA256_OF_b.png> <DEVICE_MODEL>"
    assert find_placeholders(text) == ["<SHA256_OF_b.png>", "<SHA256_OF_a.png>"]


def test_load_templates_sorted(tmp_path: Path) -> None:
    (tmp_path / "b.md").write_text("B", encoding="utf-8")
    (tmp_path / "a.md").write_text("A", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.md").write_text("C", encoding="utf-8")
    assert [t.name for t in load_templates(tmp_path)] == ["a.md", "b.md", "sub/c.md"]


def test_load_templates_missing_dir(tmp_path: Path) -> None:
    with pytest.raises(RenderError, match="not found"):
        load_templates(tmp_path / "missing")


def test_bundled_proof_templates(screenshots_dir: Path) -> None:
    templates = load_templates(BUNDLED_TEMPLATES_DIR / "proof")
    assert [t.name for t in templates] == ["PROOF_CABAL.md", "THE_EXECUTION_OF_THE_FIRS_OS.md"]

    docs = render(templates, screenshots_dir, context={})
    evidence = collect_evidence(screenshots_dir)
    for doc in docs:
        assert "<SHA256_OF_" not in doc.text
        for f in evidence:
            assert f"{f.name}" in doc.text
            assert f.sha256 in doc.text

    cabal = {d.name: d for d in docs}["PROOF_CABAL.md"]
    assert f"  - evidence/screenshot-001.png — SHA256: {evidence[0].sha256}\n" in cabal.text
    execution = {d.name: d for d in docs}["THE_EXECUTION_OF_THE_FIRS_OS.md"]
    assert "- Device: <DEVICE_MODEL>\n" in execution.text
    assert f"  - screenshot-003.png: {evidence[2].sha256}\n" in execution.text
