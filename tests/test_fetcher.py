"""Tests for the fetcher module."""

import json

import httpx
import pytest
import respx

from gitstack.fetcher import GitHubFetcher

API = "https://api.github.com"


@pytest.fixture
def github_fetcher():
    return GitHubFetcher(token="test-token")


class TestGitHubFetcher:
    def test_init_with_token(self):
        fetcher = GitHubFetcher(token="my-token")
        assert fetcher.token == "my-token"
        assert fetcher.headers["Authorization"] == "Bearer my-token"

    def test_init_without_token(self):
        fetcher = GitHubFetcher()
        assert fetcher.token is None
        assert "Authorization" not in fetcher.headers

    def test_headers_include_api_version(self, github_fetcher):
        assert github_fetcher.headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert github_fetcher.headers["Accept"] == "application/vnd.github+json"

    def test_custom_base_url_strips_slash(self):
        fetcher = GitHubFetcher(token="t", base_url="https://ghe.example.com/api/v3/")
        assert fetcher.base_url == "https://ghe.example.com/api/v3"

    @pytest.mark.asyncio
    @respx.mock
    async def test_list_repositories_sends_paging(self, github_fetcher):
        route = respx.get(f"{API}/user/repos").mock(
            return_value=httpx.Response(200, json=[{"name": "hello"}])
        )
        repos = await github_fetcher.list_repositories(page=2, per_page=10)
        await github_fetcher.close()

        assert repos == [{"name": "hello"}]
        params = route.calls.last.request.url.params
        assert params["page"] == "2"
        assert params["per_page"] == "10"
        assert params["sort"] == "updated"
        assert params["direction"] == "desc"
        assert route.calls.last.request.headers["Authorization"] == "Bearer test-token"

    @pytest.mark.asyncio
    @respx.mock
    async def test_none_params_are_dropped(self, github_fetcher):
        route = respx.get(f"{API}/repos/owner/repo/commits").mock(
            return_value=httpx.Response(200, json=[])
        )
        await github_fetcher.list_commits("owner", "repo", sha=None)
        await github_fetcher.close()

        assert "sha" not in route.calls.last.request.url.params

    @pytest.mark.asyncio
    @respx.mock
    async def test_contents_with_ref(self, github_fetcher):
        route = respx.get(f"{API}/repos/owner/repo/contents/src/app.py").mock(
            return_value=httpx.Response(200, json={"name": "app.py", "type": "file"})
        )
        data = await github_fetcher.get_contents("owner", "repo", "/src/app.py", ref="dev")
        await github_fetcher.close()

        assert data["name"] == "app.py"
        assert route.calls.last.request.url.params["ref"] == "dev"

    @pytest.mark.asyncio
    @respx.mock
    async def test_label_is_encoded_as_one_segment(self, github_fetcher):
        route = respx.route(method="DELETE", host="api.github.com").mock(return_value=httpx.Response(200, json=[]))
        await github_fetcher.remove_label("owner", "repo", 1, "needs info?")
        await github_fetcher.close()

        request = route.calls.last.request
        assert request.url.raw_path == b"/repos/owner/repo/issues/1/labels/needs%20info%3F"
        assert not request.url.query

    @pytest.mark.asyncio
    @respx.mock
    async def test_label_with_slash_and_hash(self, github_fetcher):
        route = respx.route(method="DELETE", host="api.github.com").mock(return_value=httpx.Response(200, json=[]))
        await github_fetcher.remove_label("owner", "repo", 1, "area/ui #2")
        await github_fetcher.close()

        assert route.calls.last.request.url.raw_path == b"/repos/owner/repo/issues/1/labels/area%2Fui%20%232"

    @pytest.mark.asyncio
    @respx.mock
    async def test_contents_path_keeps_slashes(self, github_fetcher):
        route = respx.route(method="GET", host="api.github.com").mock(
            return_value=httpx.Response(200, json={"name": "read me?.md"})
        )
        await github_fetcher.get_contents("owner", "repo", "docs/read me?.md")
        await github_fetcher.close()

        assert route.calls.last.request.url.raw_path == b"/repos/owner/repo/contents/docs/read%20me%3F.md"

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_issue_omits_missing_fields(self, github_fetcher):
        route = respx.post(f"{API}/repos/owner/repo/issues").mock(
            return_value=httpx.Response(201, json={"number": 7})
        )
        issue = await github_fetcher.create_issue("owner", "repo", title="Bug", body=None, labels=["bug"])
        await github_fetcher.close()

        assert issue["number"] == 7
        sent = json.loads(route.calls.last.request.content)
        assert sent == {"title": "Bug", "labels": ["bug"]}

    @pytest.mark.asyncio
    @respx.mock
    async def test_remove_assignees_sends_body_with_delete(self, github_fetcher):
        route = respx.delete(f"{API}/repos/owner/repo/issues/3/assignees").mock(
            return_value=httpx.Response(200, json={"number": 3, "assignees": []})
        )
        await github_fetcher.remove_assignees("owner", "repo", 3, ["octocat"])
        await github_fetcher.close()

        assert json.loads(route.calls.last.request.content) == {"assignees": ["octocat"]}

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_response_returns_none(self, github_fetcher):
        respx.put(f"{API}/user/starred/owner/repo").mock(return_value=httpx.Response(204))
        result = await github_fetcher._request("PUT", "/user/starred/owner/repo")
        await github_fetcher.close()

        assert result is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_status_raises(self, github_fetcher):
        respx.get(f"{API}/repos/owner/missing").mock(
            return_value=httpx.Response(404, json={"message": "Not Found"})
        )
        with pytest.raises(httpx.HTTPStatusError):
            await github_fetcher.get_repository("owner", "missing")
        await github_fetcher.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_rate_limit_error_has_hint(self, github_fetcher):
        respx.get(f"{API}/user").mock(
            return_value=httpx.Response(
                403,
                json={"message": "API rate limit exceeded for user."},
                headers={"x-ratelimit-remaining": "0"},
            )
        )
        with pytest.raises(httpx.HTTPStatusError, match="rate limit exceeded"):
            await github_fetcher.get_authenticated_user()
        await github_fetcher.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_is_pull_merged(self, github_fetcher):
        respx.get(f"{API}/repos/owner/repo/pulls/1/merge").mock(return_value=httpx.Response(204))
        respx.get(f"{API}/repos/owner/repo/pulls/2/merge").mock(return_value=httpx.Response(404))

        assert await github_fetcher.is_pull_merged("owner", "repo", 1) is True
        assert await github_fetcher.is_pull_merged("owner", "repo", 2) is False
        await github_fetcher.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_is_pull_merged_raises_on_server_error(self, github_fetcher):
        respx.get(f"{API}/repos/owner/repo/pulls/1/merge").mock(return_value=httpx.Response(502))
        with pytest.raises(httpx.HTTPStatusError):
            await github_fetcher.is_pull_merged("owner", "repo", 1)
        await github_fetcher.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_merge_pull(self, github_fetcher):
        route = respx.put(f"{API}/repos/owner/repo/pulls/5/merge").mock(
            return_value=httpx.Response(200, json={"merged": True, "sha": "abc"})
        )
        result = await github_fetcher.merge_pull("owner", "repo", 5, commit_title="Ship it")
        await github_fetcher.close()

        assert result["merged"] is True
        assert json.loads(route.calls.last.request.content) == {"commit_title": "Ship it"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_users(self, github_fetcher):
        route = respx.get(f"{API}/search/users").mock(
            return_value=httpx.Response(200, json={"total_count": 1, "items": [{"login": "octocat"}]})
        )
        result = await github_fetcher.search_users("octo")
        await github_fetcher.close()

        assert result["items"][0]["login"] == "octocat"
        assert route.calls.last.request.url.params["q"] == "octo"

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, github_fetcher):
        await github_fetcher._client_instance()
        await github_fetcher.close()
        await github_fetcher.close()
        assert github_fetcher._client is None
