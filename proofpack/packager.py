"""
packager.py

Responsibility: Put rendered documents and evidence into a working tree, then
hand that tree to the version-control and repository-host collaborators.

The collaborators are described as Protocols so the flow can be exercised with
in-memory fakes; `git.GitRepository` and `github_client.GitHubClient` are the
real implementations.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from proofpack.digest import EvidenceFile
from proofpack.github_client import PullRequestInfo, RepoInfo
from proofpack.renderer import RenderedDocument

logger = logging.getLogger(__name__)

EVIDENCE_SUBDIR = "evidence"


class StageError(RuntimeError):
    pass


class VersionControl(Protocol):
    def init(self, branch: str) -> None: ...

    def commit_all(self, message: str, *, allow_empty: bool = False) -> None: ...

    def create_branch(self, name: str) -> None: ...

    def add_remote(self, name: str, url: str) -> None: ...

    def push(self, branch: str, *, remote: str = "origin") -> None: ...

    def head(self) -> str: ...


class RepoHost(Protocol):
    def ensure_repo(self, *, owner: str, name: str, private: bool, description: str = "") -> RepoInfo: ...

    def remote_url(self, repo: RepoInfo) -> str: ...

    def create_pull_request(
        self, *, owner: str, name: str, head: str, base: str, title: str, body: str = ""
    ) -> PullRequestInfo: ...


@dataclass(frozen=True)
class StageResult:
    documents: tuple[Path, ...]
    evidence: tuple[Path, ...]


@dataclass(frozen=True)
class PublishPlan:
    owner: str
    repo_name: str
    private: bool
    description: str
    main_branch: str
    branch: str
    pr_title: str
    pr_body: str
    push: bool = True


@dataclass(frozen=True)
class PublishResult:
    repo: RepoInfo | None = None
    pull_request: PullRequestInfo | None = None


def ensure_empty_dir(path: Path, *, overwrite: bool) -> None:
    path.mkdir(parents=True, exist_ok=True)
    if not overwrite and any(path.iterdir()):
        raise StageError(f"Workdir is not empty: {path} (use --overwrite to allow)")


def stage(
    workdir: str | Path,
    evidence: Sequence[EvidenceFile],
    documents: Sequence[RenderedDocument],
    *,
    overwrite: bool = False,
) -> StageResult:
    """
    Copy the already-digested evidence files into `workdir/evidence/`
    byte-for-byte and write each rendered document at `workdir/<name>`.

    Refuses a non-empty workdir unless `overwrite`.
    """
    root = Path(workdir)
    ensure_empty_dir(root, overwrite=overwrite)
    evidence_dst = root / EVIDENCE_SUBDIR
    evidence_dst.mkdir(parents=True, exist_ok=True)

    copied: list[Path] = []
    for ev in evidence:
        dst = evidence_dst / ev.name
        shutil.copy2(ev.path, dst)
        copied.append(dst)

    written: list[Path] = []
    for doc in documents:
        dst = root / doc.name
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.write_text(doc.text, encoding="utf-8", newline="\n")
        written.append(dst)

    logger.info("Staged %d document(s) and %d evidence file(s) in %s", len(written), len(copied), root)
    return StageResult(documents=tuple(written), evidence=tuple(copied))


def commit(vcs: VersionControl, *, main_branch: str, message: str) -> str:
    """Init (or reuse) the repo on main_branch, commit everything, return HEAD."""
    vcs.init(main_branch)
    vcs.commit_all(message)
    sha = vcs.head()
    logger.info("Committed %s on %s", sha[:12], main_branch)
    return sha


def publish(vcs: VersionControl, host: RepoHost, plan: PublishPlan) -> PublishResult:
    """
    Create (or reuse) the remote repo, push the main branch, then push a proof
    branch and open a pull request from it. Assumes `commit` already ran.
    """
    repo = host.ensure_repo(
        owner=plan.owner,
        name=plan.repo_name,
        private=plan.private,
        description=plan.description,
    )
    vcs.add_remote("origin", host.remote_url(repo))
    if not plan.push:
        return PublishResult(repo=repo)

    vcs.push(plan.main_branch)

    vcs.create_branch(plan.branch)
    # The pull request needs at least one commit beyond main.
    vcs.commit_all(f"chore(proof): open {plan.branch}", allow_empty=True)
    vcs.push(plan.branch)

    pr = host.create_pull_request(
        owner=plan.owner,
        name=plan.repo_name,
        head=plan.branch,
        base=plan.main_branch,
        title=plan.pr_title,
        body=plan.pr_body,
    )
    logger.info("Opened pull request #%d %s", pr.number, pr.html_url)
    return PublishResult(repo=repo, pull_request=pr)
