"""GitHub API client for the pull request operations the merger needs."""

import os
import logging
from typing import Dict, List, Optional, Callable
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .models import parse_pull_request_url

DEFAULT_API_URL = 'https://api.github.com'


class GitHubAPIClient:
    """Handles GitHub API requests with retry logic and pagination."""

    def __init__(self, token: str = None, api_url: str = DEFAULT_API_URL):
        """Initialize the GitHub API client.

        Args:
            token: GitHub personal access token for authentication
            api_url: Base URL of the REST API
        """
        # Use provided token or fall back to environment variable
        self.token = token or os.environ.get('GITHUB_TOKEN')
        self.api_url = api_url.rstrip('/')
        self.session = requests.Session()

        adapter = HTTPAdapter(
            max_retries=Retry(
                total=3,
                backoff_factor=0.3,
                status_forcelist=[500, 502, 503, 504]
            )
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

        self.session.headers.update({'Accept': 'application/vnd.github.v3+json'})
        if self.token:
            self.session.headers.update({'Authorization': f'token {self.token}'})
            logging.info("Initialized GitHub API client with token")
        else:
            logging.warning("No GitHub token provided. Merging and branch deletion will be rejected.")
            logging.warning("Set GITHUB_TOKEN environment variable or pass token as argument.")

    def _check(self, response: requests.Response) -> requests.Response:
        """Raise for error responses, logging rate limit exhaustion first."""
        if response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0':
            logging.error(f"Rate limit exceeded for {response.url}")
        response.raise_for_status()
        return response

    def get_paginated(self, url: str, params: Dict = None,
                      should_continue: Optional[Callable[[List[Dict]], bool]] = None) -> List[Dict]:
        """Fetch all pages of a paginated GitHub API endpoint.

        Args:
            url: The API endpoint URL
            params: Query parameters
            should_continue: Optional callback function that takes a page of results and returns
                           False to stop pagination early, True to continue

        Returns:
            List of all items from all pages
        """
        results = []
        page = 1
        per_page = 100

        params = dict(params or {})
        params['per_page'] = per_page

        while True:
            params['page'] = page
            logging.debug(f"Fetching page {page} from {url}")
            data = self._check(self.session.get(url, params=params)).json()

            if not data:
                break

            results.extend(data)

            if should_continue and not should_continue(data):
                logging.debug(f"Early termination triggered at page {page}")
                break

            if len(data) < per_page:
                break

            page += 1

        logging.debug(f"Fetched {len(results)} total items from {url}")
        return results

    def get_pull_request(self, pr_url: str) -> Dict:
        """Fetch a single pull request, including its mergeable flag.

        Args:
            pr_url: Pull request API URL

        Returns:
            Pull request JSON
        """
        return self._check(self.session.get(pr_url)).json()

    def list_open_pull_requests(self, owner: str, repo: str,
                                should_continue: Optional[Callable[[List[Dict]], bool]] = None) -> List[Dict]:
        """List all open pull requests of a repository."""
        url = f"{self.api_url}/repos/{owner}/{repo}/pulls"
        return self.get_paginated(url, {'state': 'open'}, should_continue)

    def find_pull_request_by_head(self, owner: str, repo: str, sha: str) -> Optional[str]:
        """Find the open pull request whose head is the given commit.

        Args:
            owner: Repository owner
            repo: Repository name
            sha: Head commit SHA

        Returns:
            API URL of the matching pull request, or None if no open PR has that head
        """
        def not_found_yet(page: List[Dict]) -> bool:
            return not any(pr.get('head', {}).get('sha') == sha for pr in page)

        for pr in self.list_open_pull_requests(owner, repo, should_continue=not_found_yet):
            if pr.get('head', {}).get('sha') == sha:
                return pr['url']
        return None

    def list_reviews(self, pr_url: str) -> List[Dict]:
        """List every review submitted on a pull request."""
        return self.get_paginated(f"{pr_url}/reviews")

    def merge_pull_request(self, pr_url: str, sha: str):
        """Merge a pull request, provided its head is still the given commit.

        Args:
            pr_url: Pull request API URL
            sha: Head commit SHA the merge was decided for

        Raises:
            requests.exceptions.HTTPError: If GitHub refuses the merge (e.g. 405, 409)
        """
        # The body is not read: a 2xx status is the merge of record
        self._check(self.session.put(f"{pr_url}/merge", json={'sha': sha}))

    def delete_branch(self, pr_url: str, branch: str):
        """Delete a branch in the repository the pull request belongs to.

        Args:
            pr_url: Pull request API URL, used to locate the repository
            branch: Branch name without the refs/heads/ prefix
        """
        ref = parse_pull_request_url(pr_url)
        url = f"{ref.api_base}/repos/{ref.owner}/{ref.repo}/git/refs/heads/{branch}"
        self._check(self.session.delete(url))
