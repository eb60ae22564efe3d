from typing import List, Dict, Optional
import requests
import urllib3
from tenacity import Retrying, wait_exponential, stop_after_attempt

PAGE_SIZE = 5000
API_PATH = "/rest/api/1.0"


def api_root(base_url: str) -> str:
    base = base_url.rstrip("/")
    if base.endswith(API_PATH):
        return base
    return f"{base}{API_PATH}"


class BitbucketServerClient:
    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        verify: bool = False,
        ca_cert: Optional[str] = None,
        page_size: int = PAGE_SIZE,
        retries: int = 1,
        timeout: int = 30,
    ) -> None:
        self.api = api_root(base_url)
        self.session = requests.Session()
        self.session.auth = (username, password)
        self.session.headers["Accept"] = "application/json"
        self.verify = ca_cert or verify
        if self.verify is False:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        self.page_size = page_size
        self.timeout = timeout
        self._retrying = Retrying(
            wait=wait_exponential(min=1, max=10),
            stop=stop_after_attempt(max(1, retries)),
            reraise=True,
        )

    def _request(self, url: str, params: dict = None) -> requests.Response:
        return self.session.get(url, params=params or {}, timeout=self.timeout, verify=self.verify)

    def _get(self, url: str, params: dict = None) -> requests.Response:
        def attempt():
            r = self._request(url, params)
            r.raise_for_status()
            return r
        return self._retrying(attempt)

    def _get_optional(self, url: str, params: dict = None) -> Optional[requests.Response]:
        """Same as _get, but 404 and empty bodies yield None."""
        def attempt():
            r = self._request(url, params)
            if r.status_code == 404:
                return None
            r.raise_for_status()
            return r if r.content else None
        return self._retrying(attempt)

    def _paged(self, url: str) -> List[Dict]:
        values: List[Dict] = []
        start = 0
        while True:
            resp = self._get(url, params={"start": start, "limit": self.page_size}).json()
            values.extend(resp.get("values", []))
            if resp.get("isLastPage", True):
                break
            next_start = resp.get("nextPageStart")
            if next_start is None or next_start <= start:
                break
            start = next_start
        return values

    def list_project_keys(self) -> List[str]:
        return [it["key"] for it in self._paged(f"{self.api}/projects")]

    def list_repositories(self, project_key: str) -> List[Dict]:
        """Return a list of repositories with fields: name, slug, clone_ssh, clone_http"""
        results: List[Dict] = []
        for it in self._paged(f"{self.api}/projects/{project_key}/repos"):
            clone_http, clone_ssh = None, None
            for link in it.get("links", {}).get("clone", []):
                if link.get("name") == "http":
                    clone_http = link.get("href")
                elif link.get("name") == "ssh":
                    clone_ssh = link.get("href")
            results.append({
                "name": it.get("name") or it.get("slug"),
                "slug": it.get("slug"),
                "clone_ssh": clone_ssh,
                "clone_http": clone_http,
            })
        return results

    def get_default_branch(self, project_key: str, repo_slug: str) -> Optional[str]:
        """displayId of the default branch, None for empty repositories"""
        url = f"{self.api}/projects/{project_key}/repos/{repo_slug}/branches/default"
        r = self._get_optional(url, params={"start": 0, "limit": self.page_size})
        if r is None:
            return None
        return r.json().get("displayId") or None
