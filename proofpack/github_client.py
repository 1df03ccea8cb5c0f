"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads

Everything else (rendering, git commands, CLI behavior) should use this client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)


class GitHubError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    clone_url: str
    default_branch: str


@dataclass(frozen=True)
class PullRequestInfo:
    number: int
    html_url: str
    head: str
    base: str


def _repo_info(owner: str, name: str, data: dict[str, Any]) -> RepoInfo:
    return RepoInfo(
        owner=owner,
        name=name,
        html_url=data["html_url"],
        clone_url=data["clone_url"],
        default_branch=data.get("default_branch") or "main",
    )


def tokenized_https_remote(clone_url: str, token: str) -> str:
    """
    Convert https://github.com/owner/name.git into an HTTPS URL containing a token.

    Note: this stores the token in `.git/config` once set as a remote.
    """
    # GitHub supports x-access-token in the username position.
    return clone_url.replace("https://", f"https://x-access-token:{token}@", 1)


class GitHubClient:
    """`RepoHost` implementation backed by the GitHub REST API."""

    def __init__(self, token: str, api_base: str = "https://api.github.com") -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "proofpack",
        }

    def _request(self, method: str, path: str, *, json_body: dict[str, Any] | None = None) -> Any:
        url = f"{self._api_base}{path}"
        logger.debug("%s %s", method, path)
        r = requests.request(method, url, headers=self._headers(), json=json_body, timeout=30)
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            message = payload.get("message", payload) if isinstance(payload, dict) else payload
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {message}", r.status_code)
        if r.status_code == 204:
            return None
        return r.json()

    def remote_url(self, repo: RepoInfo) -> str:
        return tokenized_https_remote(repo.clone_url, self._token)

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        """
        Return RepoInfo if the repo exists and is accessible; otherwise None.
        """
        try:
            data = self._request("GET", f"/repos/{owner}/{name}")
        except GitHubError as e:
            if e.status_code == 404:
                return None
            raise
        return _repo_info(owner, name, data)

    def create_repo(
        self,
        *,
        owner: str,
        name: str,
        private: bool,
        description: str = "",
    ) -> RepoInfo:
        """
        Create a new repository under either:
        - the authenticated user (if owner matches the viewer login), OR
        - an organization (if owner is an org).
        """
        viewer = self._request("GET", "/user")
        viewer_login = str(viewer.get("login") or "")

        body = {
            "name": name,
            "private": private,
            "description": description,
            "auto_init": False,
            "has_issues": True,
            "has_projects": False,
            "has_wiki": False,
        }

        if owner == viewer_login:
            data = self._request("POST", "/user/repos", json_body=body)
        else:
            data = self._request("POST", f"/orgs/{owner}/repos", json_body=body)

        return _repo_info(owner, name, data)

    def ensure_repo(self, *, owner: str, name: str, private: bool, description: str = "") -> RepoInfo:
        existing = self.get_repo(owner, name)
        if existing is not None:
            logger.info("Using existing repository %s", existing.html_url)
            return existing
        repo = self.create_repo(owner=owner, name=name, private=private, description=description)
        logger.info("Created repository %s", repo.html_url)
        return repo

    def create_pull_request(
        self,
        *,
        owner: str,
        name: str,
        head: str,
        base: str,
        title: str,
        body: str = "",
    ) -> PullRequestInfo:
        data = self._request(
            "POST",
            f"/repos/{owner}/{name}/pulls",
            json_body={"title": title, "head": head, "base": base, "body": body},
        )
        return PullRequestInfo(
            number=int(data["number"]),
            html_url=data["html_url"],
            head=head,
            base=base,
        )
