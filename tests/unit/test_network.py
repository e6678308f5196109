import pytest

from millionaire.errors import ConfigError
from millionaire.network import LOCAL_CHAIN_ID, NetworkContext, is_development_chain, is_local_network


@pytest.mark.parametrize("chain_id", [31337])
def test_local_chain_id(chain_id):
    assert is_local_network(chain_id) is True


@pytest.mark.parametrize("chain_id", [1, 5, 137, 1337, 11155111, 0, -31337, "31337", 31337.0, None, True])
def test_everything_else_is_not_local(chain_id):
    assert is_local_network(chain_id) is False


def test_development_names():
    assert is_development_chain("hardhat")
    assert is_development_chain("localhost")
    assert not is_development_chain("sepolia")
    assert not is_development_chain("Hardhat")
    assert not is_development_chain(None)


def test_from_name():
    ctx = NetworkContext.from_name("hardhat")
    assert ctx.chain_id == LOCAL_CHAIN_ID
    assert ctx.is_local and ctx.is_development
    sepolia = NetworkContext.from_name("sepolia")
    assert sepolia.chain_id == 11155111
    assert not sepolia.is_local and not sepolia.is_development


def test_unknown_name():
    with pytest.raises(ConfigError, match="unknown network"):
        NetworkContext.from_name("mainnet-ish")


@pytest.mark.parametrize("chain_id", [0, -1, True, "1"])
def test_invalid_chain_id(chain_id):
    with pytest.raises(ConfigError):
        NetworkContext(chain_id=chain_id, name="x")


def test_from_env(monkeypatch):
    monkeypatch.setenv("MILLIONAIRE_NETWORK", "custom")
    monkeypatch.setenv("MILLIONAIRE_CHAIN_ID", "0x7a69")
    ctx = NetworkContext.from_env()
    assert ctx == NetworkContext(chain_id=31337, name="custom")
    assert ctx.is_local and not ctx.is_development

    monkeypatch.setenv("MILLIONAIRE_CHAIN_ID", "abc")
    with pytest.raises(ConfigError):
        NetworkContext.from_env()


def test_from_env_defaults(monkeypatch):
    monkeypatch.delenv("MILLIONAIRE_NETWORK", raising=False)
    monkeypatch.delenv("MILLIONAIRE_CHAIN_ID", raising=False)
    assert NetworkContext.from_env() == NetworkContext(chain_id=31337, name="hardhat")
