"""Tests for token stores and the token provider."""

import asyncio
import os
import stat

import pytest
import yaml

from conftest import ScriptedPrompter
from utility_tool.api.exceptions import ConfigError
from utility_tool.core.tokens import (
    ChainedTokenStore,
    EnvironmentTokenStore,
    FileTokenStore,
    TokenProvider,
)


class VerifierStub:
    """Accepts a fixed set of tokens and records what it was asked"""

    def __init__(self, valid=()):
        self.valid = set(valid)
        self.checked = []

    async def __call__(self, owner, token):
        self.checked.append((owner, token))
        return token in self.valid


# --- Store Tests ---


def test_environment_store_prefers_owner_variable():
    store = EnvironmentTokenStore({
        "UTILITY_TOOL_TOKEN_MY_ORG": "owner-token",
        "UTILITY_TOOL_TOKEN": "shared-token",
    })

    assert EnvironmentTokenStore.variable_for("my-org") == "UTILITY_TOOL_TOKEN_MY_ORG"
    assert store.get("my-org") == "owner-token"
    assert store.get("other") == "shared-token"
    assert store.put("my-org", "x") is False


def test_environment_store_without_tokens():
    assert EnvironmentTokenStore({}).get("acme") is None


def test_file_store_writes_private_file(tmp_path):
    path = tmp_path / "home" / "tokens.yaml"
    store = FileTokenStore(path)

    assert store.get("acme") is None
    assert store.put("acme", "secret-1") is True
    assert store.put("initech", "secret-2") is True

    assert yaml.safe_load(path.read_text()) == {"acme": "secret-1", "initech": "secret-2"}
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert FileTokenStore(path).get("initech") == "secret-2"


def test_file_store_rejects_malformed_file(tmp_path):
    path = tmp_path / "tokens.yaml"
    path.write_text("- not\n- a mapping\n")

    with pytest.raises(ConfigError):
        FileTokenStore(path).get("acme")


def test_chained_store(tmp_path):
    file_store = FileTokenStore(tmp_path / "tokens.yaml")
    store = ChainedTokenStore([EnvironmentTokenStore({"UTILITY_TOOL_TOKEN_ACME": "env"}), file_store])

    assert store.get("acme") == "env"
    assert store.get("initech") is None
    assert store.put("initech", "stored") is True
    assert file_store.get("initech") == "stored"


# --- Provider Tests ---


def test_provider_uses_store_without_prompting():
    store = EnvironmentTokenStore({"UTILITY_TOOL_TOKEN": "env-token"})
    verifier = VerifierStub()
    provider = TokenProvider(store, verifier, ScriptedPrompter())

    assert asyncio.run(provider.get_token("acme")) == "env-token"
    assert verifier.checked == []


def test_provider_prompts_once_and_stores(tmp_path):
    store = FileTokenStore(tmp_path / "tokens.yaml")
    prompter = ScriptedPrompter(answers=["good"], confirms=[True])
    provider = TokenProvider(store, VerifierStub(valid={"good"}), prompter)

    async def twice():
        return await provider.get_token("acme"), await provider.get_token("acme")

    assert asyncio.run(twice()) == ("good", "good")
    assert len(prompter.questions) == 2
    assert store.get("acme") == "good"


def test_provider_concurrent_requests_prompt_once(tmp_path):
    prompter = ScriptedPrompter(answers=["good"], confirms=[False])
    provider = TokenProvider(FileTokenStore(tmp_path / "tokens.yaml"), VerifierStub(valid={"good"}), prompter)

    async def concurrently():
        return await asyncio.gather(*[provider.get_token("acme") for _ in range(5)])

    assert asyncio.run(concurrently()) == ["good"] * 5
    assert not (tmp_path / "tokens.yaml").exists()


def test_provider_retries_rejected_tokens(tmp_path):
    prompter = ScriptedPrompter(answers=["bad", "worse", "good"], confirms=[False])
    verifier = VerifierStub(valid={"good"})
    provider = TokenProvider(FileTokenStore(tmp_path / "tokens.yaml"), verifier, prompter)

    assert asyncio.run(provider.get_token("acme")) == "good"
    assert [token for _, token in verifier.checked] == ["bad", "worse", "good"]


def test_provider_gives_up_after_max_attempts(tmp_path):
    prompter = ScriptedPrompter(answers=["a", "b", "c"])
    provider = TokenProvider(FileTokenStore(tmp_path / "tokens.yaml"), VerifierStub(), prompter)

    with pytest.raises(ConfigError, match="acme"):
        asyncio.run(provider.get_token("acme"))


def test_provider_with_read_only_store_keeps_token_in_session():
    prompter = ScriptedPrompter(answers=["good"], confirms=[True])
    provider = TokenProvider(EnvironmentTokenStore({}), VerifierStub(valid={"good"}), prompter)

    assert asyncio.run(provider.get_token("acme")) == "good"
    assert provider._cache == {"acme": "good"}
