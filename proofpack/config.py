"""
config.py

Responsibility: Load and parse a proof config file into a deterministic, typed model.

This implementation intentionally stays conservative:
- It prefers YAML frontmatter at the top of the markdown file.
- It can fall back to a tiny "key: value" parser (best-effort).
- Every field has a default, so a config file is optional.

The CLI layers its own overrides on top of the parsed result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_REPO_NAME = "pure-os"
DEFAULT_TEMPLATE = "proof"
DEFAULT_DESCRIPTION = "Proof artifacts for Oura OS activation (The Execution of the Firs OS)"
DEFAULT_BRANCH_PREFIX = "proof/the-execution-of-the-firs-os"
DEFAULT_COMMIT_MESSAGE = (
    "chore(proof): add evidence and documentation (THE_EXECUTION_OF_THE_FIRS_OS.md + PROOF_CABAL.md)"
)
DEFAULT_PR_TITLE = (
    "feat(proof): add THE_EXECUTION_OF_THE_FIRS_OS.md + PROOF_CABAL.md — evidence of Oura OS activation"
)
DEFAULT_PR_BODY = (
    "This PR adds conclusive proof artifacts (screenshots and documentation) demonstrating the observed "
    "activation of the architecture called 'Oura OS'. See THE_EXECUTION_OF_THE_FIRS_OS.md and "
    "PROOF_CABAL.md for metadata and verification steps."
)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class GitHubConfig:
    """GitHub-related configuration parsed from the config file."""

    owner: str | None = None
    private: bool = False


@dataclass(frozen=True)
class PullRequestConfig:
    title: str = DEFAULT_PR_TITLE
    body: str = DEFAULT_PR_BODY


@dataclass(frozen=True)
class ProofConfig:
    """Parsed config used to render the proof documents and publish the repo."""

    repo_name: str = DEFAULT_REPO_NAME
    description: str = DEFAULT_DESCRIPTION
    template: str = DEFAULT_TEMPLATE
    evidence_dir: str = "evidence"
    main_branch: str = "main"
    branch: str | None = None
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    github: GitHubConfig = field(default_factory=GitHubConfig)
    pull_request: PullRequestConfig = field(default_factory=PullRequestConfig)
    variables: dict[str, Any] = field(default_factory=dict)


def _parse_yaml_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """
    If the markdown begins with YAML frontmatter delimited by '---', parse it.
    Returns (frontmatter_dict_or_none, remaining_markdown_text).
    """
    if not text.startswith("---\n"):
        return None, text

    end = text.find("\n---\n", 4)
    if end == -1:
        raise ConfigError("YAML frontmatter starts with '---' but no closing '---' was found.")

    fm_text = text[4:end]
    rest = text[end + len("\n---\n") :]
    try:
        data = yaml.safe_load(fm_text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("YAML frontmatter must be a mapping/object at the top level.")
    return data, rest


def _best_effort_kv_parse(text: str) -> dict[str, Any]:
    """
    Very small fallback parser:
    - Reads lines like `key: value` (ignores markdown headings and empty lines)
    - Stops at the first blank line after having found at least one key/value pair
    """
    out: dict[str, Any] = {}
    found_any = False
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            if found_any and not line:
                break
            continue
        if ":" not in line:
            continue
        k, v = line.split(":", 1)
        k = k.strip()
        v = v.strip()
        if not k:
            continue
        found_any = True
        out[k] = v
    return out


def _mapping(data: dict[str, Any], key: str) -> dict[str, Any]:
    raw = data.get(key) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"`{key}` must be an object/mapping when provided.")
    return raw


def _str(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    if value is None:
        return default
    return str(value).strip() or default


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on", "private"}
    return bool(value)


def config_from_mapping(data: dict[str, Any]) -> ProofConfig:
    gh_raw = _mapping(data, "github")
    owner = gh_raw.get("owner")
    if owner is not None:
        owner = str(owner).strip() or None

    if "private" in gh_raw:
        private = _bool(gh_raw["private"])
    else:
        private = str(data.get("visibility") or "public").strip().lower() == "private"

    pr_raw = _mapping(data, "pull_request")
    pull_request = PullRequestConfig(
        title=_str(pr_raw, "title", DEFAULT_PR_TITLE),
        body=_str(pr_raw, "body", DEFAULT_PR_BODY),
    )

    vars_raw = _mapping(data, "variables")
    # Stable key order at the boundary.
    variables = dict(sorted(vars_raw.items(), key=lambda kv: str(kv[0])))

    branch = data.get("branch")
    if branch is not None:
        branch = str(branch).strip() or None

    return ProofConfig(
        repo_name=_str(data, "repo_name", _str(data, "name", DEFAULT_REPO_NAME)),
        description=_str(data, "description", DEFAULT_DESCRIPTION),
        template=_str(data, "template", DEFAULT_TEMPLATE),
        evidence_dir=_str(data, "evidence_dir", "evidence"),
        main_branch=_str(data, "main_branch", "main"),
        branch=branch,
        commit_message=_str(data, "commit_message", DEFAULT_COMMIT_MESSAGE),
        github=GitHubConfig(owner=owner, private=private),
        pull_request=pull_request,
        variables=variables,
    )


def parse_config(config_path: str | Path) -> ProofConfig:
    """
    Parse a markdown config file into a `ProofConfig`.

    Recognised YAML frontmatter keys:
    - repo_name, description, template, evidence_dir: str
    - main_branch, branch, commit_message: str
    - github.owner: str, github.private: bool (or top-level `visibility`)
    - pull_request.title, pull_request.body: str
    - variables: dict (metadata values for the document templates)
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file does not exist: {path}")
    text = path.read_text(encoding="utf-8")

    frontmatter, _rest = _parse_yaml_frontmatter(text)
    data = frontmatter if frontmatter is not None else _best_effort_kv_parse(text)
    return config_from_mapping(data)
