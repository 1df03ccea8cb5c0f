"""
git.py

Responsibility: Local git operations for the proof working tree.

Every call shells out to the `git` binary via subprocess; failures raise
GitError carrying the command's combined output.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class GitError(RuntimeError):
    pass


def deterministic_git_env(base_env: dict[str, str]) -> dict[str, str]:
    """
    Fixed author/committer metadata so identical inputs yield identical commits.
    Values already present in base_env win.
    """
    env = dict(base_env)
    env.setdefault("GIT_AUTHOR_NAME", "proofpack")
    env.setdefault("GIT_AUTHOR_EMAIL", "proofpack@example.invalid")
    env.setdefault("GIT_COMMITTER_NAME", "proofpack")
    env.setdefault("GIT_COMMITTER_EMAIL", "proofpack@example.invalid")
    env.setdefault("GIT_AUTHOR_DATE", "1970-01-01T00:00:00Z")
    env.setdefault("GIT_COMMITTER_DATE", "1970-01-01T00:00:00Z")
    return env


class GitRepository:
    """`VersionControl` implementation backed by the git CLI."""

    def __init__(self, workdir: str | Path, *, deterministic: bool = True) -> None:
        self.workdir = Path(workdir)
        base_env = os.environ.copy()
        self._env = deterministic_git_env(base_env) if deterministic else base_env

    def _run(self, *args: str) -> str:
        cmd = ["git", *args]
        logger.debug("$ %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(self.workdir),
                env=self._env,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            raise GitError(f"Command failed: {' '.join(cmd)}\n\n{e.stdout}") from e
        return proc.stdout

    def init(self, branch: str) -> None:
        if not (self.workdir / ".git").exists():
            self._run("init")
        self._run("checkout", "-B", branch)

    def commit_all(self, message: str, *, allow_empty: bool = False) -> None:
        self._run("add", "-A")
        args = ["commit", "-m", message]
        if allow_empty:
            args.append("--allow-empty")
        self._run(*args)

    def create_branch(self, name: str) -> None:
        self._run("checkout", "-b", name)

    def add_remote(self, name: str, url: str) -> None:
        self._run("remote", "add", name, url)

    def push(self, branch: str, *, remote: str = "origin") -> None:
        self._run("push", "-u", remote, branch)

    def head(self) -> str:
        return self._run("rev-parse", "HEAD").strip()
