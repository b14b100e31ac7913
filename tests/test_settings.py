from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.container import Container
from app.core.settings import Settings, SettingsValidationError, SignerType
from wallet import ConfigurationError, WalletHooks

from .conftest import TEST_PRIVATE_KEY, FakeEmitter


@pytest.fixture
def clean_env(monkeypatch):
    for k in (
        "SIGNER_TYPE",
        "PRIVATE_KEY",
        "KEYSTORE_PATH",
        "KEYSTORE_PASSWORD",
        "CHAIN_ID",
        "EVM_RPC_URL",
        "RPC_URL",
        "HTTP_TIMEOUT_SEC",
        "SIGNER_POLICY_ENABLED",
        "SIGNER_ALLOWED_TO_ADDRESSES",
        "HOOKED_WALLET_LOG_LEVEL",
    ):
        monkeypatch.delenv(k, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = Settings()
    assert s.SIGNER_TYPE is SignerType.ENV_PRIVATE_KEY
    assert s.CHAIN_ID is None
    assert s.EVM_RPC_URL is None
    assert s.HTTP_TIMEOUT_SEC == 10.0


def test_hex_chain_id(clean_env):
    clean_env.setenv("CHAIN_ID", "0x2105")
    assert Settings().CHAIN_ID == 8453


@pytest.mark.parametrize(
    "name,value",
    [
        ("CHAIN_ID", "-1"),
        ("EVM_RPC_URL", "ftp://node"),
        ("HOOKED_WALLET_LOG_LEVEL", "chatty"),
        ("SIGNER_TYPE", "hsm"),
    ],
)
def test_invalid_values_rejected(clean_env, name, value):
    clean_env.setenv(name, value)
    with pytest.raises(SettingsValidationError):
        Settings()


def test_keystore_requires_path_and_password(clean_env):
    clean_env.setenv("SIGNER_TYPE", "keystore")
    clean_env.setenv("KEYSTORE_PATH", "/tmp/key.json")
    with pytest.raises(SettingsValidationError):
        Settings()


def test_to_dict_redacts_secrets(clean_env):
    clean_env.setenv("PRIVATE_KEY", TEST_PRIVATE_KEY)
    d = Settings().to_dict()
    assert d["PRIVATE_KEY"] == "***REDACTED***"
    assert d["KEYSTORE_PASSWORD"] is None
    assert d["SIGNER_TYPE"] == "env_private_key"


@pytest.mark.asyncio
async def test_container_wires_signer_and_emitter(clean_env, local_account):
    clean_env.setenv("PRIVATE_KEY", TEST_PRIVATE_KEY)
    clean_env.setenv("CHAIN_ID", "1")
    c = Container(Settings(), emitter=FakeEmitter())

    assert c.signer.get_address() == local_account.address
    err, accounts = await c.wallet.handle_request({"method": "eth_accounts", "params": []}, MagicMock())
    assert err is None
    assert accounts == [local_account.address]


@pytest.mark.asyncio
async def test_container_applies_policy_from_env(clean_env, local_account):
    clean_env.setenv("SIGNER_ALLOWED_TO_ADDRESSES", "0x2222222222222222222222222222222222222222")
    emitter = FakeEmitter()
    c = Container(Settings(), emitter=emitter, hooks=WalletHooks(get_accounts=lambda: [local_account.address]))

    tx = {"from": local_account.address, "to": "0x1111111111111111111111111111111111111111"}
    err, _ = await c.wallet.handle_request({"method": "eth_sendTransaction", "params": [tx]}, MagicMock())

    assert err is not None
    assert err.code == "user_denied"
    assert emitter.requests == []


def test_container_without_signer_needs_hooks(clean_env):
    clean_env.setenv("SIGNER_TYPE", "none")
    with pytest.raises(ConfigurationError):
        Container(Settings())


def test_container_builds_web3_emitter_from_url(clean_env):
    clean_env.setenv("SIGNER_TYPE", "none")
    clean_env.setenv("EVM_RPC_URL", "http://node.invalid:8545")
    c = Container(Settings(), hooks=WalletHooks(get_accounts=lambda: []))
    assert c.emitter.url == "http://node.invalid:8545"


def test_get_container_is_cached(monkeypatch):
    import app.core.container as container_mod

    monkeypatch.setattr(container_mod, "Container", lambda: object())
    container_mod.get_container.cache_clear()
    try:
        assert container_mod.get_container() is container_mod.get_container()
    finally:
        container_mod.get_container.cache_clear()


@pytest.mark.asyncio
async def test_container_aclose_disconnects_emitter(clean_env):
    clean_env.setenv("SIGNER_TYPE", "none")
    emitter = FakeEmitter()
    emitter.disconnect = AsyncMock()
    c = Container(Settings(), emitter=emitter, hooks=WalletHooks(get_accounts=lambda: []))

    await c.aclose()

    emitter.disconnect.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_container_aclose_without_disconnect(clean_env):
    clean_env.setenv("SIGNER_TYPE", "none")
    c = Container(Settings(), emitter=FakeEmitter(), hooks=WalletHooks(get_accounts=lambda: []))
    await c.aclose()
