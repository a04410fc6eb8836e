"""Tests for collection config and operator environment."""

from pathlib import Path

import pytest
from web3 import Web3

from mintgate.models.collection import ZERO_ROOT
from mintgate.policy.config import CollectionConfig, load_environment, validate_config

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
ENV_VARS = ("MINTGATE_OWNER", "MINTGATE_OWNER_KEY", "MINTGATE_DATA_DIR")

# Well-known development key; never holds funds
DEV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def _raw(**overrides) -> dict:
    data = {
        "name": "Name",
        "symbol": "SYM",
        "base_uri": "https://notrevealeduri.com",
        "cost_to_mint_ether": "0.1",
        "max_supply": 10,
        "max_mint_amount": 3,
        "royalties_bps": 500,
    }
    data.update(overrides)
    return data


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    # setenv first so monkeypatch restores the variables dotenv may write
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestCollectionConfig:
    def test_shipped_config_loads(self) -> None:
        config = CollectionConfig.from_config_dir(CONFIG_DIR)
        assert config.max_supply == 10
        assert config.unit_cost == Web3.to_wei("0.1", "ether")
        assert config.owner == DEV_ADDRESS
        assert config.allowlist_root == ZERO_ROOT

    def test_policy_and_initial_phase(self) -> None:
        config = CollectionConfig.from_dict(_raw())
        policy = config.policy()
        assert (policy.supply_ceiling, policy.max_per_request) == (10, 3)
        phase = config.initial_phase()
        assert phase.issuance_enabled is True
        assert phase.public_sale_open is False
        assert phase.revealed is False
        assert phase.base_uri == "https://notrevealeduri.com"

    def test_cost_in_wei(self) -> None:
        raw = _raw(cost_to_mint_wei=7)
        del raw["cost_to_mint_ether"]
        assert CollectionConfig.from_dict(raw).unit_cost == 7

    def test_root_normalised(self) -> None:
        config = CollectionConfig.from_dict(_raw(allowlist_root="0x" + "AB" * 32))
        assert config.allowlist_root == "0x" + "ab" * 32

    def test_missing_keys_listed(self) -> None:
        errors = validate_config({"name": "x"})
        assert any("symbol" in e for e in errors)
        assert any("cost" in e for e in errors)

    @pytest.mark.parametrize("overrides", [
        {"max_supply": 0},
        {"max_mint_amount": -1},
        {"max_supply": True},
        {"royalties_bps": 10_001},
        {"royalties_receiver": "nope"},
        {"owner": "0x123"},
        {"allowlist_root": "0x1234"},
        {"cost_to_mint_ether": "lots"},
        {"cost_to_mint_ether": "-1"},
    ])
    def test_invalid_values(self, overrides: dict) -> None:
        with pytest.raises(ValueError, match="Invalid collection config"):
            CollectionConfig.from_dict(_raw(**overrides))


class TestOperatorEnvironment:
    def test_defaults(self, tmp_path: Path, clean_env: pytest.MonkeyPatch) -> None:
        env = load_environment(tmp_path, tmp_path / "data")
        assert env.owner is None
        assert env.data_dir == tmp_path / "data"

    def test_owner_from_env(self, tmp_path: Path, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("MINTGATE_OWNER", DEV_ADDRESS.lower())
        assert load_environment(tmp_path, tmp_path).owner == DEV_ADDRESS

    def test_owner_derived_from_key(self, tmp_path: Path, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("MINTGATE_OWNER_KEY", DEV_KEY)
        assert load_environment(tmp_path, tmp_path).owner == DEV_ADDRESS

    def test_dotenv_file(self, tmp_path: Path, clean_env: pytest.MonkeyPatch) -> None:
        data_dir = tmp_path / "elsewhere"
        (tmp_path / ".env").write_text(
            f"MINTGATE_OWNER_KEY={DEV_KEY}\nMINTGATE_DATA_DIR={data_dir}\n"
        )
        env = load_environment(tmp_path, tmp_path / "data")
        assert env.owner == DEV_ADDRESS
        assert env.data_dir == data_dir

    def test_malformed_owner_key(self, tmp_path: Path, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("MINTGATE_OWNER_KEY", "0xnotakey")
        with pytest.raises(ValueError, match="MINTGATE_OWNER_KEY"):
            load_environment(tmp_path, tmp_path)
