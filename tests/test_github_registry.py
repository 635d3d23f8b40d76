"""Tests for the GitHub registry using httpx.MockTransport."""

import asyncio
import base64
import io
import json
import zipfile

import httpx
import pytest

from utility_tool.api.exceptions import TransportError
from utility_tool.registry.github import GitHubRegistry


async def token_for(owner):
    return f"token-{owner}"


class FakeGitHub:
    """Routes requests by (method, path) and records them"""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        status, body = route
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def paths(self, method=None):
        return [r.url.path for r in self.requests if method is None or r.method == method]

    def body(self, method, path):
        for r in self.requests:
            if r.method == method and r.url.path == path:
                return json.loads(r.content)
        raise AssertionError(f"no {method} {path}")


def run(fake, operation):
    async def main():
        registry = GitHubRegistry({"api_url": "https://api.test"}, token_callback=token_for,
                                  transport=httpx.MockTransport(fake))
        async with registry:
            return await operation(registry)

    return asyncio.run(main())


# --- Read Tests ---


def test_list_versions_paginates_and_authenticates():
    first_page = [{"name": f"0.0.{i}"} for i in range(100)]
    second_page = [{"name": "main"}, {"name": "1.0.0"}]

    def branches(request):
        page = int(request.url.params["page"])
        return httpx.Response(200, json=first_page if page == 1 else second_page)

    fake = FakeGitHub({("GET", "/repos/acme/alpha-util/branches"): branches})

    versions = run(fake, lambda r: r.list_versions("acme", "alpha-util"))

    assert len(versions) == 101
    assert versions[-1].raw == "1.0.0"
    assert versions[0].raw == "0.0.0"
    assert len(fake.requests) == 2
    assert fake.requests[0].headers["Authorization"] == "Bearer token-acme"
    assert fake.requests[0].headers["X-GitHub-Api-Version"]


def test_missing_repository_has_no_versions():
    assert run(FakeGitHub(), lambda r: r.list_versions("acme", "ghost-util")) == []


def test_get_descriptor_decodes_contents():
    descriptor = {"name": "alpha-util", "owner": "acme", "version": "1.0.0", "hash": "abc"}
    encoded = base64.b64encode(json.dumps(descriptor).encode()).decode()
    fake = FakeGitHub({
        ("GET", "/repos/acme/alpha-util/contents/utils.json"): (200, {"type": "file", "content": encoded}),
    })

    result = run(fake, lambda r: r.get_descriptor("acme", "alpha-util", "1.0.0"))

    assert result.hash == "abc"
    assert fake.requests[0].url.params["ref"] == "1.0.0"


def test_missing_file_is_none():
    assert run(FakeGitHub(), lambda r: r.get_file("acme", "alpha-util", "utils.json", "1.0.0")) is None


def test_unexpected_status_raises_transport_error():
    fake = FakeGitHub({("GET", "/repos/acme/alpha-util/branches"): (500, {"message": "boom"})})

    with pytest.raises(TransportError) as excinfo:
        run(fake, lambda r: r.list_branches("acme", "alpha-util"))

    assert excinfo.value.status_code == 500
    assert "boom" in str(excinfo.value)


def test_network_error_raises_transport_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        run(refuse, lambda r: r.list_branches("acme", "alpha-util"))


# --- Write Tests ---


def upload_routes():
    return {
        ("GET", "/repos/acme/alpha-util"): (200, {"name": "alpha-util"}),
        ("GET", "/repos/acme/alpha-util/git/ref/heads/main"): (200, {"object": {"sha": "base-sha"}}),
        ("POST", "/repos/acme/alpha-util/git/blobs"): (201, {"sha": "blob-sha"}),
        ("POST", "/repos/acme/alpha-util/git/trees"): (201, {"sha": "tree-sha"}),
        ("POST", "/repos/acme/alpha-util/git/commits"): (201, {"sha": "commit-sha"}),
        ("POST", "/repos/acme/alpha-util/git/refs"): (201, {"ref": "refs/heads/1.0.0"}),
        ("DELETE", "/repos/acme/alpha-util/git/refs/heads/1.0.0"): (204, b""),
    }


def make_utility(tmp_path):
    directory = tmp_path / "alpha-util"
    (directory / "lib").mkdir(parents=True)
    (directory / "index.js").write_text("export {}\n")
    (directory / "lib" / "a.js").write_text("// a\n")
    (directory / "utils.json").write_text('{"name": "alpha-util", "version": "1.0.0"}')
    return directory


def test_publish_directory_commits_files_as_new_branch(tmp_path):
    fake = FakeGitHub(upload_routes())
    directory = make_utility(tmp_path)

    commit = run(fake, lambda r: r.publish_directory("acme", "alpha-util", "1.0.0", directory))

    assert commit == "commit-sha"
    assert len(fake.paths("POST")) == 6
    tree = fake.body("POST", "/repos/acme/alpha-util/git/trees")["tree"]
    assert sorted(entry["path"] for entry in tree) == ["index.js", "lib/a.js", "utils.json"]
    assert "base_tree" not in fake.body("POST", "/repos/acme/alpha-util/git/trees")
    commit_body = fake.body("POST", "/repos/acme/alpha-util/git/commits")
    assert commit_body == {"message": "branch: 1.0.0", "tree": "tree-sha", "parents": ["base-sha"]}
    assert fake.body("POST", "/repos/acme/alpha-util/git/refs") == {
        "ref": "refs/heads/1.0.0", "sha": "commit-sha",
    }
    assert fake.paths("DELETE") == []


def test_publish_failure_deletes_branch(tmp_path):
    fake = FakeGitHub(upload_routes())
    fake.routes[("POST", "/repos/acme/alpha-util/git/commits")] = (500, {"message": "server error"})
    directory = make_utility(tmp_path)

    with pytest.raises(TransportError):
        run(fake, lambda r: r.publish_directory("acme", "alpha-util", "1.0.0", directory))

    assert fake.paths("DELETE") == ["/repos/acme/alpha-util/git/refs/heads/1.0.0"]
    assert "/repos/acme/alpha-util/git/refs" not in fake.paths("POST")


def test_failed_blob_cancels_remaining_blobs_before_rollback(tmp_path):
    state = {"in_flight": 0, "at_rollback": None}

    async def blobs(request):
        content = base64.b64decode(json.loads(request.content)["content"])
        if content == b"boom":
            return httpx.Response(500, json={"message": "blob rejected"})
        state["in_flight"] += 1
        try:
            await asyncio.sleep(30)
            return httpx.Response(201, json={"sha": "blob-sha"})
        finally:
            state["in_flight"] -= 1

    def rollback(request):
        state["at_rollback"] = state["in_flight"]
        return httpx.Response(204)

    fake = FakeGitHub(upload_routes())
    fake.routes[("POST", "/repos/acme/alpha-util/git/blobs")] = blobs
    fake.routes[("DELETE", "/repos/acme/alpha-util/git/refs/heads/1.0.0")] = rollback
    directory = tmp_path / "alpha-util"
    directory.mkdir()
    (directory / "bad.bin").write_bytes(b"boom")
    (directory / "slow.bin").write_bytes(b"slow")

    with pytest.raises(TransportError):
        run(fake, lambda r: r.publish_directory("acme", "alpha-util", "1.0.0", directory))

    assert state["at_rollback"] == 0
    assert state["in_flight"] == 0
    assert "/repos/acme/alpha-util/git/trees" not in fake.paths("POST")


def test_existing_ref_is_force_updated(tmp_path):
    fake = FakeGitHub(upload_routes())
    fake.routes[("POST", "/repos/acme/alpha-util/git/refs")] = (422, {"message": "Reference already exists"})
    fake.routes[("PATCH", "/repos/acme/alpha-util/git/refs/heads/1.0.0")] = (200, {"ref": "refs/heads/1.0.0"})
    directory = make_utility(tmp_path)

    run(fake, lambda r: r.publish_directory("acme", "alpha-util", "1.0.0", directory))

    assert fake.body("PATCH", "/repos/acme/alpha-util/git/refs/heads/1.0.0") == {
        "sha": "commit-sha", "force": True,
    }


def test_create_repository_falls_back_to_user():
    fake = FakeGitHub({("POST", "/user/repos"): (201, {"name": "alpha-util"})})

    run(fake, lambda r: r.create_repository("someone", "alpha-util", public=True))

    assert fake.paths("POST") == ["/orgs/someone/repos", "/user/repos"]
    assert fake.body("POST", "/user/repos") == {"name": "alpha-util", "private": False, "auto_init": True}


def test_delete_branch_reports_missing_branch():
    fake = FakeGitHub({("DELETE", "/repos/acme/alpha-util/git/refs/heads/1.0.0"): (422, {"message": "x"})})
    assert run(fake, lambda r: r.delete_branch("acme", "alpha-util", "1.0.0")) is False


def test_put_file_replaces_existing_file():
    fake = FakeGitHub({
        ("GET", "/repos/acme/alpha-util/contents/README.md"): (200, {"type": "file", "sha": "old-sha"}),
        ("PUT", "/repos/acme/alpha-util/contents/README.md"): (200, {}),
    })

    run(fake, lambda r: r.put_file("acme", "alpha-util", "README.md", b"# hi\n", "main", "update readme"))

    body = fake.body("PUT", "/repos/acme/alpha-util/contents/README.md")
    assert body["sha"] == "old-sha"
    assert base64.b64decode(body["content"]) == b"# hi\n"


# --- Token Tests ---


def test_verify_token_uses_given_token():
    def user(request):
        ok = request.headers["Authorization"] == "Bearer good"
        return httpx.Response(200 if ok else 401, json={})

    fake = FakeGitHub({("GET", "/user"): user})

    assert run(fake, lambda r: r.verify_token("acme", "good")) is True
    assert run(fake, lambda r: r.verify_token("acme", "bad")) is False


# --- Download Tests ---


def test_download_version_extracts_single_top_directory(tmp_path):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("acme-alpha-util-abc123/index.js", "export {}\n")
        zf.writestr("acme-alpha-util-abc123/utils.json", '{"name": "alpha-util"}')
    fake = FakeGitHub({("GET", "/repos/acme/alpha-util/zipball/1.0.0"): (200, buffer.getvalue())})

    destination = tmp_path / "utils" / "alpha-util"
    destination.mkdir(parents=True)
    (destination / "stale.js").write_text("old")

    run(fake, lambda r: r.download_version("acme", "alpha-util", "1.0.0", destination))

    assert sorted(p.name for p in destination.iterdir()) == ["index.js", "utils.json"]
    assert [p.name for p in (tmp_path / "utils").iterdir()] == ["alpha-util"]


def test_download_missing_version_raises(tmp_path):
    with pytest.raises(TransportError):
        run(FakeGitHub(), lambda r: r.download_version("acme", "alpha-util", "9.9.9", tmp_path / "x"))
    assert list(tmp_path.iterdir()) == []
