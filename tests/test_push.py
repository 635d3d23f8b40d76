"""Tests for the push engine against the in-memory registry."""

import asyncio
import json

from utility_tool.api import Pusher
from utility_tool.models.config import ToolConfig
from utility_tool.models.result import PushState
from utility_tool.models.utility import UtilityDescriptor
from utility_tool.registry.memory import MemoryRegistry
from utility_tool.services.push_service import PushService
from utility_tool.utils.hash_utils import calculate_directory_hash


def run_push(project, registry, identifier, prompter=None, **kwargs):
    session = project.session(registry, prompter)
    return asyncio.run(PushService(session).push(identifier, **kwargs))


def run_push_all(project, registry):
    session = project.session(registry)
    return asyncio.run(PushService(session).push_all())


def push_of(report, name):
    return next(r for r in report.pushes if r.name == name)


# --- Publish Tests ---


def test_first_push_creates_repository_and_branch(project, registry):
    path = project.add_utility("alpha-util", version="1.0.0")

    report = run_push(project, registry, "alpha-util")

    result = push_of(report, "alpha-util")
    assert result.state is PushState.PUBLISHED
    assert result.remote_version is None
    assert registry.calls_to("create_repository") == [("create_repository", "acme", "alpha-util", "private")]

    branch = registry.branches("acme", "alpha-util")["1.0.0"]
    assert sorted(branch) == ["README.md", "index.js", "utils.json"]
    published = UtilityDescriptor.from_json(branch["utils.json"].decode("utf-8"))
    assert published.hash == calculate_directory_hash(path)
    assert "main" in registry.branches("acme", "alpha-util")

    assert project.dependencies()["alpha-util"] == {
        "owner": "acme", "repo": "alpha-util", "updatePolicy": "minor", "version": "1.0.0",
    }


def test_push_refreshes_stale_hash_before_upload(project, registry):
    path = project.add_utility("alpha-util", version="1.0.0")
    (path / "index.js").write_text("// edited\n")

    run_push(project, registry, "alpha-util")

    expected = calculate_directory_hash(path)
    assert project.descriptor("alpha-util").hash == expected
    branch = registry.branches("acme", "alpha-util")["1.0.0"]
    assert json.loads(branch["utils.json"])["hash"] == expected


def test_newer_local_version_is_published(project):
    project.add_utility("alpha-util", version="1.1.0")
    registry = MemoryRegistry(repositories={"acme/alpha-util": {
        "main": {"README.md": b"# alpha-util\n"},
        "1.0.0": project.remote("alpha-util", "1.0.0"),
    }})

    report = run_push(project, registry, "alpha-util")

    result = push_of(report, "alpha-util")
    assert (result.state, result.remote_version) == (PushState.PUBLISHED, "1.0.0")
    assert registry.calls_to("create_repository") == []
    assert "1.1.0" in registry.branches("acme", "alpha-util")


def test_same_hash_is_up_to_date_without_upload(project):
    project.add_utility("alpha-util", version="1.0.0")
    registry = MemoryRegistry(repositories={"acme/alpha-util": {
        "1.0.0": project.remote("alpha-util", "1.0.0"),
    }})

    report = run_push(project, registry, "alpha-util")

    assert push_of(report, "alpha-util").state is PushState.UP_TO_DATE
    assert registry.calls_to("upload") == []
    assert registry.calls_to("create_branch") == []
    assert project.dependencies()["alpha-util"]["version"] == "1.0.0"


def test_changed_content_without_version_bump_is_rejected(project):
    project.add_utility("alpha-util", version="1.0.0", files={"index.js": "// changed\n"})
    registry = MemoryRegistry(repositories={"acme/alpha-util": {
        "1.0.0": project.remote("alpha-util", "1.0.0"),
    }})

    report = run_push(project, registry, "alpha-util")

    result = push_of(report, "alpha-util")
    assert result.state is PushState.VERSION_NOT_BUMPED
    assert "1.0.1" in result.message
    assert list(registry.branches("acme", "alpha-util")) == ["1.0.0"]
    assert registry.calls_to("upload") == []
    assert "alpha-util" not in project.dependencies()


def test_remote_ahead_is_rejected(project):
    project.add_utility("alpha-util", version="1.0.0")
    registry = MemoryRegistry(repositories={"acme/alpha-util": {
        "1.0.0": project.remote("alpha-util", "1.0.0"),
        "1.2.0": project.remote("alpha-util", "1.2.0"),
    }})

    report = run_push(project, registry, "alpha-util")

    result = push_of(report, "alpha-util")
    assert (result.state, result.remote_version) == (PushState.REMOTE_AHEAD, "1.2.0")
    assert registry.calls_to("upload") == []


def test_remote_without_descriptor_is_corrupt(project):
    project.add_utility("alpha-util", version="1.0.0")
    registry = MemoryRegistry(repositories={"acme/alpha-util": {
        "1.0.0": {"index.js": b"// alpha-util 1.0.0\n"},
    }})

    report = run_push(project, registry, "alpha-util")

    assert push_of(report, "alpha-util").state is PushState.REMOTE_CORRUPT
    assert registry.calls_to("upload") == []


# --- Failure Tests ---


def test_failure_after_branch_creation_deletes_branch(project):
    project.add_utility("alpha-util", version="1.1.0")
    registry = MemoryRegistry(
        repositories={"acme/alpha-util": {"1.0.0": project.remote("alpha-util", "1.0.0")}},
        fail_upload_at="after_ref",
    )

    report = run_push(project, registry, "alpha-util")

    assert push_of(report, "alpha-util").state is PushState.FAILED
    assert not report.is_success
    assert "1.1.0" not in registry.branches("acme", "alpha-util")
    assert registry.calls_to("delete_branch") == [("delete_branch", "acme", "alpha-util", "1.1.0")]
    assert "alpha-util" not in project.dependencies()


def test_failure_before_ref_leaves_no_branch(project):
    project.add_utility("alpha-util", version="1.1.0")
    registry = MemoryRegistry(
        repositories={"acme/alpha-util": {"1.0.0": project.remote("alpha-util", "1.0.0")}},
        fail_upload_at="tree",
    )

    report = run_push(project, registry, "alpha-util")

    assert push_of(report, "alpha-util").state is PushState.FAILED
    assert list(registry.branches("acme", "alpha-util")) == ["1.0.0"]


# --- Precondition Tests ---


def test_private_utility_is_not_pushed(project, registry):
    project.add_utility("alpha-util", private=True)

    report = run_push(project, registry, "alpha-util")

    assert push_of(report, "alpha-util").state is PushState.PRIVATE
    assert registry.calls == []


def test_unknown_utility_is_not_found(project, registry):
    report = run_push(project, registry, "ghost-util")
    assert push_of(report, "ghost-util").state is PushState.NOT_FOUND
    assert not report.is_success


def test_invalid_identifier(project, registry):
    report = run_push(project, registry, "no")
    assert report.pushes[0].state is PushState.INVALID


def test_invalid_local_version(project, registry):
    project.add_utility("alpha-util", version="1.0")

    report = run_push(project, registry, "alpha-util")

    assert push_of(report, "alpha-util").state is PushState.INVALID
    assert registry.calls_to("upload") == []


# --- Manifest Tests ---


def test_policy_argument_is_recorded(project, registry):
    project.add_utility("alpha-util", version="1.0.0")
    run_push(project, registry, "alpha-util", update_policy="batch")
    assert project.dependencies()["alpha-util"]["updatePolicy"] == "batch"


def test_existing_policy_is_kept(project):
    dep = project.dep
    project.add_utility("alpha-util", version="1.1.0")
    project.write_manifest(dependencies={"alpha-util": dep("acme", "alpha-util", "1.0.0", "major")})
    registry = MemoryRegistry(repositories={"acme/alpha-util": {
        "1.0.0": project.remote("alpha-util", "1.0.0"),
    }})

    run_push(project, registry, "alpha-util")

    assert project.dependencies()["alpha-util"] == {
        "owner": "acme", "repo": "alpha-util", "updatePolicy": "major", "version": "1.1.0",
    }


def test_manifest_keeps_foreign_keys(project, registry):
    project.write_manifest(scripts={"test": "jest"})
    project.add_utility("alpha-util", version="1.0.0")

    run_push(project, registry, "alpha-util")

    manifest = project.manifest()
    assert manifest["scripts"] == {"test": "jest"}
    assert manifest["name"] == "demo-app"


def test_push_all_records_declared_and_unreferenced_utilities(project, registry):
    dep = project.dep
    project.add_utility("alpha-util", deps={"beta-util": dep("acme", "beta-util", "1.0.0")})
    project.add_utility("beta-util")
    project.add_utility("gamma-util")
    project.write_manifest(dependencies={"alpha-util": dep("acme", "alpha-util", "0.9.0")})

    report = run_push_all(project, registry)

    mains = {r.name: r.main for r in report.pushes}
    assert mains == {"alpha-util": True, "beta-util": False, "gamma-util": True}
    assert all(r.state is PushState.PUBLISHED for r in report.pushes)
    assert sorted(project.dependencies()) == ["alpha-util", "gamma-util"]
    assert project.dependencies()["alpha-util"]["version"] == "1.0.0"


def test_owner_switch_updates_descriptor(project, registry, prompter):
    project.add_utility("alpha-util", owner="acme")
    prompter.confirms = [True]

    report = run_push(project, registry, "forked/alpha-util", prompter=prompter)

    assert push_of(report, "alpha-util").owner == "forked"
    assert project.descriptor("alpha-util").owner == "forked"
    assert "1.0.0" in registry.branches("forked", "alpha-util")


def test_declined_owner_switch_keeps_local_owner(project, registry, prompter):
    project.add_utility("alpha-util", owner="acme")
    prompter.confirms = [False]

    run_push(project, registry, "forked/alpha-util", prompter=prompter)

    assert project.descriptor("alpha-util").owner == "acme"
    assert "1.0.0" in registry.branches("acme", "alpha-util")
    assert registry.branches("forked", "alpha-util") == {}


# --- Facade Tests ---


def test_pusher_facade(project, registry, prompter):
    project.add_utility("alpha-util")
    pusher = Pusher(project_root=project.root, tool_config=ToolConfig(),
                    prompter=prompter, registry=registry)

    assert pusher.push("alpha-util").pushes[0].state is PushState.PUBLISHED
    assert pusher.push_all().pushes[0].state is PushState.UP_TO_DATE
