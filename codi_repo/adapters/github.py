"""GitHub API adapter."""

import logging
from typing import Any, Dict, List

import requests

from codi_repo.adapters.base import ForgeAdapter, ForgeError
from codi_repo.models import CombinedStatus, PRState, PullRequest, Review, StatusCheck

LOG = logging.getLogger("codi_repo.adapters.github")


def _pr_from_api(data: Dict[str, Any]) -> PullRequest:
    head = data.get("head") or {}
    base = data.get("base") or {}
    return PullRequest(
        number=data["number"],
        url=data.get("html_url") or "",
        title=data.get("title") or "",
        body=data.get("body") or "",
        state=PRState.from_forge(data.get("state", "open"), bool(data.get("merged"))),
        mergeable=data.get("mergeable"),
        head_ref=head.get("ref", ""),
        head_sha=head.get("sha", ""),
        base_ref=base.get("ref", ""),
    )


def _review_from_api(data: Dict[str, Any]) -> Review:
    user = data.get("user") or {}
    return Review(state=data.get("state", ""), user=user.get("login", "unknown"))


def _combined_status_from_api(data: Dict[str, Any]) -> CombinedStatus:
    statuses = [
        StatusCheck(context=s.get("context", ""), state=s.get("state", ""))
        for s in (data.get("statuses") or [])
    ]
    return CombinedStatus(state=data.get("state", "pending"), statuses=statuses)


class GitHubAdapter(ForgeAdapter):
    """GitHub REST API implementation."""

    def __init__(self, token: str, api_url: str = "https://api.github.com", timeout: float = 30.0) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"token {token}"
        self._session.headers["Accept"] = "application/vnd.github.v3+json"

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> requests.Response:
        if path.startswith(("http://", "https://")):
            url = path
        elif path.startswith("/"):
            url = f"{self._api_url}{path}"
        else:
            url = f"{self._api_url}/{path}"
        LOG.debug("%s %s", method, path)
        try:
            resp = self._session.request(method, url, params=params, json=json, timeout=self._timeout)
        except requests.RequestException as e:
            raise ForgeError(f"{method} {path}: {e}") from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("message", msg)
            except ValueError:
                pass
            raise ForgeError(f"{resp.status_code}: {msg}", status_code=resp.status_code)
        return resp

    def create_pr(
        self,
        owner: str,
        repo: str,
        head: str,
        base: str,
        title: str,
        body: str,
        draft: bool = False,
    ) -> PullRequest:
        resp = self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls",
            json={"title": title, "body": body, "head": head, "base": base, "draft": draft},
        )
        return _pr_from_api(resp.json())

    def get_pr(self, owner: str, repo: str, number: int) -> PullRequest:
        resp = self._request("GET", f"/repos/{owner}/{repo}/pulls/{number}")
        return _pr_from_api(resp.json())

    def update_pr_body(self, owner: str, repo: str, number: int, body: str) -> None:
        self._request("PATCH", f"/repos/{owner}/{repo}/pulls/{number}", json={"body": body})

    def list_reviews(self, owner: str, repo: str, number: int) -> List[Review]:
        """Every review of the PR, following Link: next across pages."""
        reviews: List[Review] = []
        path = f"/repos/{owner}/{repo}/pulls/{number}/reviews"
        params: Dict[str, Any] | None = {"per_page": 100}
        while path:
            resp = self._request("GET", path, params=params)
            reviews.extend(_review_from_api(d) for d in (resp.json() or []))
            # next URL already carries the query string
            path = (resp.links.get("next") or {}).get("url", "")
            params = None
        return reviews

    def get_combined_status(self, owner: str, repo: str, ref: str) -> CombinedStatus:
        resp = self._request("GET", f"/repos/{owner}/{repo}/commits/{ref}/status")
        return _combined_status_from_api(resp.json())

    def merge_pr(self, owner: str, repo: str, number: int, method: str = "merge") -> None:
        self._request(
            "PUT",
            f"/repos/{owner}/{repo}/pulls/{number}/merge",
            json={"merge_method": method},
        )

    def delete_branch(self, owner: str, repo: str, branch: str) -> None:
        self._request("DELETE", f"/repos/{owner}/{repo}/git/refs/heads/{branch}")

    def find_open_pr_by_branch(self, owner: str, repo: str, branch: str) -> PullRequest | None:
        resp = self._request(
            "GET",
            f"/repos/{owner}/{repo}/pulls",
            params={"head": f"{owner}:{branch}", "state": "open"},
        )
        data = resp.json() or []
        if not data:
            return None
        return _pr_from_api(data[0])
