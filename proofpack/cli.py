"""
cli.py

Responsibility: CLI entrypoint for proofpack.

High-level flow (single command `build`):
1) Load config (optional markdown/YAML file) and apply CLI overrides
2) Digest evidence + render document templates
3) Stage documents and evidence into the workdir, commit on `main`
4) (Optional) Create GitHub repo, push `main`, push proof branch, open PR

This module should orchestrate behavior but keep concerns isolated:
- Config parsing: `config.py`
- Digests / rendering: `digest.py`, `renderer.py`
- Staging / publish flow: `packager.py`
- git / GitHub: `git.py`, `github_client.py`
"""

from __future__ import annotations

import argparse
import logging
import os
import shutil
from datetime import date
from pathlib import Path

from proofpack.config import DEFAULT_BRANCH_PREFIX, ConfigError, ProofConfig, parse_config
from proofpack.digest import EvidenceError, collect_evidence
from proofpack.git import GitError, GitRepository
from proofpack.github_client import GitHubClient, GitHubError
from proofpack.packager import PublishPlan, StageError, commit, publish, stage
from proofpack.renderer import RenderError, load_templates, render_documents

logger = logging.getLogger("proofpack")

BUNDLED_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


class CLIError(RuntimeError):
    pass


def default_branch_name(today: date | None = None) -> str:
    day = today or date.today()
    return f"{DEFAULT_BRANCH_PREFIX}-{day.strftime('%Y%m%d')}"


def _build_context(config: ProofConfig) -> dict[str, object]:
    # Templates reference these keys directly; `evidence` is added by the renderer.
    return {
        "repo_name": config.repo_name,
        "description": config.description,
        "variables": config.variables,
        **config.variables,
    }


def _split_repo_arg(value: str) -> tuple[str | None, str]:
    """Accept `name` or `owner/name`."""
    if "/" in value:
        owner, name = value.split("/", 1)
        return owner.strip() or None, name.strip()
    return None, value.strip()


def _check_prerequisites() -> None:
    if shutil.which("git") is None:
        raise CLIError("git required.")


def build_cmd(args: argparse.Namespace) -> int:
    config = parse_config(args.config_path) if args.config_path else ProofConfig()

    # CLI overrides
    repo_name = config.repo_name
    github_owner = args.github_owner or config.github.owner
    if args.repo_name:
        owner_part, repo_name = _split_repo_arg(args.repo_name)
        github_owner = owner_part or github_owner
    private = config.github.private if args.private is None else bool(args.private)
    template_name = args.template or config.template
    evidence_dir = Path(args.evidence_dir or config.evidence_dir).resolve()
    branch = args.branch or config.branch or default_branch_name()

    templates_dir = Path(args.templates_dir).resolve() if args.templates_dir else BUNDLED_TEMPLATES_DIR
    templates = load_templates(templates_dir / template_name)

    # One scan: the files that get staged are exactly the ones that were digested.
    evidence = collect_evidence(evidence_dir)
    documents = render_documents(
        templates,
        evidence,
        context=_build_context(config),
        strict=bool(args.strict),
    )

    if not args.skip_git:
        _check_prerequisites()

    workdir = Path(args.workdir or Path("generated") / repo_name).resolve()
    stage(workdir, evidence, documents, overwrite=bool(args.overwrite))

    if args.skip_git:
        logger.info("Rendered proof tree in %s (git skipped)", workdir)
        return 0

    vcs = GitRepository(workdir, deterministic=bool(args.deterministic_git))
    commit(vcs, main_branch=config.main_branch, message=config.commit_message)

    if args.skip_github:
        return 0

    if not github_owner:
        raise CLIError("--github-owner is required unless --skip-github is set")
    token = args.github_token or os.environ.get("GITHUB_TOKEN") or ""
    if not token:
        raise CLIError("GitHub token is required (use --github-token or set GITHUB_TOKEN)")

    plan = PublishPlan(
        owner=github_owner,
        repo_name=repo_name,
        private=private,
        description=config.description,
        main_branch=config.main_branch,
        branch=branch,
        pr_title=config.pull_request.title,
        pr_body=config.pull_request.body,
        push=not bool(args.skip_push),
    )
    result = publish(vcs, GitHubClient(token), plan)

    if result.pull_request is not None:
        print(
            f"Repository created as: {github_owner}/{repo_name}. "
            f"PR opened from {branch} -> {config.main_branch}: {result.pull_request.html_url}"
        )
    elif result.repo is not None:
        print(f"Repository ready at {result.repo.html_url} (push skipped)")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="proofpack", description="Package evidence files into a checksummed proof repo")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="Render proof documents, commit, create repo, push, open PR")
    b.add_argument("config_path", nargs="?", default=None, help="Optional config markdown file (YAML frontmatter)")
    b.add_argument("--evidence-dir", default=None, help="Directory holding evidence files (default: evidence)")
    b.add_argument("--templates-dir", default=None, help="Templates directory (default: bundled templates)")
    b.add_argument("--template", default=None, help="Template name (overrides config template)")
    b.add_argument("--workdir", default=None, help="Directory to stage into and run git operations")
    b.add_argument("--overwrite", action="store_true", help="Allow non-empty workdir")
    b.add_argument("--strict", action="store_true", help="Fail when a digest placeholder has no evidence file")

    b.add_argument("--repo-name", default=None, help="Repository name or owner/name (overrides config)")
    b.add_argument("--branch", default=None, help="Proof branch name (default: dated proof branch)")

    b.add_argument("--skip-git", action="store_true", help="Only render and stage files; no git or GitHub")
    b.add_argument("--skip-github", action="store_true", help="Do not create/lookup GitHub repo")
    b.add_argument("--skip-push", action="store_true", help="Do not push or open a PR (still commits locally)")

    b.add_argument("--github-owner", default=None, help="GitHub owner (user or org)")
    b.add_argument("--github-token", default=None, help="GitHub token (or set env GITHUB_TOKEN)")
    b.add_argument("--private", dest="private", action="store_true", default=None, help="Create a private repo")
    b.add_argument("--public", dest="private", action="store_false", default=None, help="Create a public repo")

    b.add_argument(
        "--deterministic-git",
        action="store_true",
        default=True,
        help="Use deterministic git author/commit timestamps (default: enabled)",
    )
    b.add_argument(
        "--no-deterministic-git",
        dest="deterministic_git",
        action="store_false",
        help="Disable deterministic git commit timestamps",
    )

    b.set_defaults(func=build_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (CLIError, ConfigError, EvidenceError, RenderError, StageError, GitError, GitHubError, OSError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
