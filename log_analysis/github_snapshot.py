# log_analysis/github_snapshot.py
import base64
import binascii
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import requests

from .errors import ConfigError, UpstreamError
from .models import AppSettings

logger = logging.getLogger(__name__)

# Skip common binary and unnecessary files
SKIP_EXTENSIONS = (
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".pdf",
    ".zip", ".tar", ".gz", ".exe", ".dll", ".so",
    ".lock", ".sum",
)
SKIP_PATHS = (".git/", "node_modules/", "vendor/", ".terraform/")

SNAPSHOT_HEADER = "# Repository Code\n\n"


def should_skip_file(path: str) -> bool:
    """True if `path` is a binary/lock file or lives in a VCS, vendor or infra-state directory."""
    if path.endswith(SKIP_EXTENSIONS):
        return True
    return any(skip_path in path for skip_path in SKIP_PATHS)


def parse_repository(repository: Optional[str]) -> Tuple[str, str]:
    """Splits an "owner/name" identifier, raising ConfigError if it is malformed."""
    parts = (repository or "").split("/")
    if len(parts) != 2 or not all(parts):
        raise ConfigError("invalid GITHUB_REPOSITORY format, expected owner/repo")
    return parts[0], parts[1]


class GitHubSnapshotFetcher:
    """
    Concatenates every text file of the configured repository's branch into a
    single markdown document, one `## File:` section per file.

    The whole repository is held in memory and nothing is cached, so a large
    repository costs one request per file and its full size in RAM on every run.
    """

    def __init__(self, settings: AppSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def fetch_snapshot(self) -> str:
        token = self.settings.github_token
        if not token or not self.settings.github_repository:
            raise ConfigError("GITHUB_TOKEN or GITHUB_REPOSITORY not set")
        owner, repo = parse_repository(self.settings.github_repository)

        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28",
        })

        tree = self._get_tree(owner, repo, self.settings.github_branch)
        if tree.get("truncated"):
            logger.warning(f"Tree listing for {owner}/{repo} was truncated by GitHub; snapshot is partial.")

        sections = [SNAPSHOT_HEADER]
        for entry in tree.get("tree", []):
            # "blob" entries are files, "tree" entries are directories
            if entry.get("type") != "blob":
                continue
            path = entry.get("path", "")
            if should_skip_file(path):
                continue

            content = self._get_file_content(owner, repo, path)
            if content is not None:
                sections.append(f"\n## File: {path}\n```\n{content}\n```\n")

        return "".join(sections)

    def _get_tree(self, owner: str, repo: str, branch: str) -> Dict[str, Any]:
        url = f"{self._repo_url(owner, repo)}/git/trees/{quote(branch, safe='')}"
        try:
            response = self.session.get(url, params={"recursive": "1"}, timeout=self.settings.http_timeout_seconds)
            response.raise_for_status()
            tree = response.json()
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"github tree request for {owner}/{repo}@{branch} failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"github tree response for {owner}/{repo} is not JSON: {e}") from e

        if not isinstance(tree, dict):
            raise UpstreamError(f"unexpected github tree response for {owner}/{repo}: {tree!r}")
        return tree

    def _get_file_content(self, owner: str, repo: str, path: str) -> Optional[str]:
        """Returns the decoded file text, or None after logging why the file was skipped."""
        url = f"{self._repo_url(owner, repo)}/contents/{quote(path)}"
        try:
            response = self.session.get(url, timeout=self.settings.http_timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning(f"Error getting file {path}: {e}")
            return None

        # A list means the path resolved to a directory or submodule listing
        if not isinstance(data, dict):
            logger.warning(f"Skipping {path}: contents API returned a listing")
            return None

        try:
            return self._decode_content(data)
        except (binascii.Error, ValueError) as e:
            logger.warning(f"Error decoding file {path}: {e}")
            return None

    @staticmethod
    def _decode_content(data: Dict[str, Any]) -> str:
        encoding = data.get("encoding", "")
        content = data.get("content") or ""
        if encoding == "base64":
            # GitHub wraps base64 payloads at 60 columns
            return base64.b64decode(content).decode("utf-8", errors="replace")
        if encoding == "":
            return content
        raise ValueError(f"unsupported content encoding {encoding!r}")

    def _repo_url(self, owner: str, repo: str) -> str:
        return f"{self.settings.github_api_url.rstrip('/')}/repos/{owner}/{repo}"
