"""
Unit tests for API client functionality
"""

import pytest
import requests
from unittest.mock import Mock
from automerge.api_client import GitHubAPIClient
from conftest import PR_URL


def response(data=None, status_code=200, headers=None):
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.headers = headers or {}
    mock_response.url = 'https://api.github.com/test'
    mock_response.json.return_value = data
    if status_code >= 400:
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return mock_response


class TestClientSetup:
    """Test cases for client initialization."""

    def test_token_header(self):
        client = GitHubAPIClient(token='test_token')
        assert client.session.headers['Authorization'] == 'token test_token'

    def test_without_token(self, monkeypatch):
        monkeypatch.delenv('GITHUB_TOKEN', raising=False)
        client = GitHubAPIClient()
        assert client.token is None
        assert 'Authorization' not in client.session.headers

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv('GITHUB_TOKEN', 'env_token')
        assert GitHubAPIClient().token == 'env_token'

    def test_api_url_trailing_slash(self):
        client = GitHubAPIClient(token='t', api_url='https://ghe.example.com/api/v3/')
        assert client.api_url == 'https://ghe.example.com/api/v3'


class TestAPIErrorHandling:
    """Test cases for API error handling."""

    @pytest.fixture
    def client(self):
        client = GitHubAPIClient(token='test_token')
        client.session = Mock()
        return client

    def test_404_error_handling(self, client):
        client.session.get.return_value = response(status_code=404)

        with pytest.raises(requests.exceptions.HTTPError):
            client.get_pull_request(PR_URL)

    def test_rate_limit_is_logged(self, client, caplog):
        client.session.get.return_value = response(status_code=403, headers={'X-RateLimit-Remaining': '0'})

        with pytest.raises(requests.exceptions.HTTPError):
            client.get_paginated('https://api.github.com/test')
        assert "Rate limit exceeded" in caplog.text

    def test_network_error_handling(self, client):
        client.session.get.side_effect = requests.exceptions.ConnectionError("Network error")

        with pytest.raises(requests.exceptions.ConnectionError):
            client.list_reviews(PR_URL)


class TestPagination:
    """Test cases for paginated requests."""

    @pytest.fixture
    def client(self):
        client = GitHubAPIClient(token='test_token')
        client.session = Mock()
        return client

    def test_follows_full_pages(self, client):
        first = [{'id': i} for i in range(100)]
        second = [{'id': 100}]
        client.session.get.side_effect = [response(first), response(second)]

        results = client.get_paginated('https://api.github.com/test')

        assert len(results) == 101
        assert client.session.get.call_count == 2
        assert client.session.get.call_args.kwargs['params']['page'] == 2

    def test_stops_on_empty_page(self, client):
        client.session.get.return_value = response([])
        assert client.get_paginated('https://api.github.com/test') == []

    def test_does_not_mutate_params(self, client):
        params = {'state': 'open'}
        client.session.get.return_value = response([])

        client.get_paginated('https://api.github.com/test', params)

        assert params == {'state': 'open'}


class TestPullRequestOperations:
    """Test cases for the pull request endpoints."""

    @pytest.fixture
    def client(self):
        client = GitHubAPIClient(token='test_token')
        client.session = Mock()
        return client

    def test_get_pull_request(self, client):
        client.session.get.return_value = response({'mergeable': True})

        assert client.get_pull_request(PR_URL) == {'mergeable': True}
        client.session.get.assert_called_once_with(PR_URL)

    def test_list_open_pull_requests(self, client):
        client.session.get.return_value = response([{'url': PR_URL}])

        assert client.list_open_pull_requests('octo', 'widgets') == [{'url': PR_URL}]
        url = client.session.get.call_args.args[0]
        params = client.session.get.call_args.kwargs['params']
        assert url == 'https://api.github.com/repos/octo/widgets/pulls'
        assert params['state'] == 'open'

    def test_find_pull_request_by_head(self, client):
        client.session.get.return_value = response([
            {'url': 'https://api.github.com/repos/octo/widgets/pulls/4', 'head': {'sha': 'other'}},
            {'url': PR_URL, 'head': {'sha': 'sha1'}},
        ])

        assert client.find_pull_request_by_head('octo', 'widgets', 'sha1') == PR_URL

    def test_find_pull_request_stops_paging_when_found(self, client):
        page = [{'url': PR_URL, 'head': {'sha': 'sha1'}}] + [
            {'url': f'https://api.github.com/repos/octo/widgets/pulls/{n}', 'head': {'sha': f'x{n}'}}
            for n in range(99)
        ]
        client.session.get.return_value = response(page)

        assert client.find_pull_request_by_head('octo', 'widgets', 'sha1') == PR_URL
        assert client.session.get.call_count == 1

    def test_find_pull_request_not_found(self, client):
        client.session.get.return_value = response([{'url': PR_URL, 'head': {'sha': 'other'}}])
        assert client.find_pull_request_by_head('octo', 'widgets', 'sha1') is None

    def test_list_reviews(self, client):
        client.session.get.return_value = response([{'id': 1, 'state': 'APPROVED'}])

        assert client.list_reviews(PR_URL) == [{'id': 1, 'state': 'APPROVED'}]
        assert client.session.get.call_args.args[0] == f"{PR_URL}/reviews"

    def test_merge_sends_expected_sha(self, client):
        client.session.put.return_value = response({'merged': True})

        client.merge_pull_request(PR_URL, 'sha1')
        client.session.put.assert_called_once_with(f"{PR_URL}/merge", json={'sha': 'sha1'})

    def test_merge_ignores_unreadable_body(self, client):
        """A successful merge is not turned into a failure by its response body."""
        merged = response(status_code=200)
        merged.json.side_effect = ValueError("Expecting value")
        client.session.put.return_value = merged

        client.merge_pull_request(PR_URL, 'sha1')

        assert not merged.json.called

    def test_merge_refused(self, client):
        client.session.put.return_value = response(status_code=409)

        with pytest.raises(requests.exceptions.HTTPError):
            client.merge_pull_request(PR_URL, 'stale')

    def test_delete_branch(self, client):
        client.session.delete.return_value = response(status_code=204)

        client.delete_branch(PR_URL, 'feature')

        client.session.delete.assert_called_once_with(
            'https://api.github.com/repos/octo/widgets/git/refs/heads/feature'
        )

    def test_delete_branch_invalid_pr_url(self, client):
        with pytest.raises(ValueError):
            client.delete_branch('https://github.com/octo/widgets/pull/5', 'feature')
        assert not client.session.delete.called


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
