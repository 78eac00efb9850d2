"""Unit tests for network profile resolution."""

import json
from pathlib import Path
from typing import Dict

import pytest

from contract_ignition.constants import NETWORK_CONFIG
from contract_ignition.exceptions import ConfigurationError
from contract_ignition.networks import (
    DeploymentConfig,
    list_networks,
    load_network_config,
    resolve_network,
)
from contract_ignition.types import CompilerSettings


class TestResolveNetwork:
    """Test the resolve_network function."""

    def test_resolves_default_network(self, config: DeploymentConfig):
        """Test resolving a network from the built-in settings."""
        profile = resolve_network("op", config)

        assert profile.name == "op"
        assert profile.chain_id == 10
        assert profile.endpoint_url == NETWORK_CONFIG["op"]["url"]
        assert profile.signer_credential_ref == "DEPLOYER_PRIVATE_KEY"
        assert profile.verification_credential_ref == "OPSCAN_API_KEY"
        assert profile.verification_credential == "op-key"

    def test_default_compilers(self, config: DeploymentConfig):
        """Test that every network gets the shared solc versions."""
        profile = resolve_network("arb", config)

        assert profile.compiler_versions == ["0.8.19", "0.8.24"]
        assert profile.compilers[0] == CompilerSettings("0.8.19", True, 200)

    def test_unknown_network_raises(self, config: DeploymentConfig):
        """Test that an unconfigured identifier is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_network("mainnet", config)

        assert "mainnet" in str(exc_info.value)

    def test_missing_signer_credential_raises(self, environ: Dict[str, str]):
        """Test that the signer secret is required."""
        del environ["DEPLOYER_PRIVATE_KEY"]
        config = DeploymentConfig.from_env(environ)

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_network("base", config)

        assert "DEPLOYER_PRIVATE_KEY" in str(exc_info.value)

    def test_missing_verification_credential_raises(self, environ: Dict[str, str]):
        """Test that a declared verification key must be present."""
        del environ["BASESCAN_API_KEY"]
        config = DeploymentConfig.from_env(environ)

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_network("base", config)

        assert "BASESCAN_API_KEY" in str(exc_info.value)

    def test_network_without_verification_key(self, config: DeploymentConfig):
        """Test that networks without a verification service need no key."""
        profile = resolve_network("polygon", config)

        assert profile.verification_credential_ref is None
        assert profile.verification_credential is None

    def test_rpc_env_overrides_url(self, environ: Dict[str, str]):
        """Test that $<NET>_RPC_URL replaces the static endpoint."""
        environ["SEP_RPC_URL"] = "http://localhost:8545"
        config = DeploymentConfig.from_env(environ)

        assert resolve_network("sepolia", config).endpoint_url == "http://localhost:8545"

    def test_missing_chain_id_raises(self, environ: Dict[str, str]):
        """Test that a network entry without chain id is rejected."""
        config = DeploymentConfig.from_env(
            environ, networks={"local": {"url": "http://localhost:8545", "signer_env": "DEPLOYER_PRIVATE_KEY"}}
        )

        with pytest.raises(ConfigurationError):
            resolve_network("local", config)

    def test_missing_url_raises(self, environ: Dict[str, str]):
        config = DeploymentConfig.from_env(
            environ, networks={"local": {"chain_id": 31337, "signer_env": "DEPLOYER_PRIVATE_KEY"}}
        )

        with pytest.raises(ConfigurationError):
            resolve_network("local", config)

    def test_custom_compilers(self, environ: Dict[str, str]):
        """Test compiler lists given as strings and as dicts."""
        config = DeploymentConfig.from_env(
            environ,
            networks={
                "local": {
                    "url": "http://localhost:8545",
                    "chain_id": 31337,
                    "signer_env": "DEPLOYER_PRIVATE_KEY",
                    "compilers": ["0.8.20", {"version": "0.8.26", "optimizer": {"runs": 1000}}],
                }
            },
        )

        profile = resolve_network("local", config)

        assert profile.compilers == (
            CompilerSettings("0.8.20"),
            CompilerSettings("0.8.26", True, 1000),
        )

    def test_secrets_not_in_repr(self, config: DeploymentConfig):
        """Test that credentials never appear in the profile repr."""
        profile = resolve_network("op", config)

        assert "11" * 32 not in repr(profile)
        assert "op-key" not in repr(profile)

    def test_profile_is_immutable(self, config: DeploymentConfig):
        profile = resolve_network("op", config)

        with pytest.raises(AttributeError):
            profile.chain_id = 1  # type: ignore[misc]


class TestDeploymentConfig:
    """Test the DeploymentConfig object."""

    def test_from_env_does_not_share_network_settings(self, environ: Dict[str, str]):
        """Test that configs copy the static settings."""
        config = DeploymentConfig.from_env(environ)
        config.networks["op"]["chain_id"] = 1

        assert NETWORK_CONFIG["op"]["chain_id"] == 10

    def test_with_networks_merges_entries(self, config: DeploymentConfig):
        """Test that overrides merge into existing entries and add new ones."""
        merged = config.with_networks(
            {
                "op": {"confirmation_timeout": 60},
                "local": {"url": "http://localhost:8545", "chain_id": 31337, "signer_env": "DEPLOYER_PRIVATE_KEY"},
            }
        )

        assert resolve_network("op", merged).confirmation_timeout == 60
        assert resolve_network("local", merged).chain_id == 31337
        assert "local" not in config.networks

    def test_list_networks_sorted(self, config: DeploymentConfig):
        assert list_networks(config) == ["arb", "base", "op", "polygon", "sepolia"]


class TestLoadNetworkConfig:
    """Test loading network settings from JSON."""

    def test_loads_wrapped_networks(self, tmp_path: Path):
        path = tmp_path / "networks.json"
        path.write_text(json.dumps({"networks": {"local": {"chain_id": 31337}}}))

        assert load_network_config(path) == {"local": {"chain_id": 31337}}

    def test_loads_bare_mapping(self, tmp_path: Path):
        path = tmp_path / "networks.json"
        path.write_text(json.dumps({"local": {"chain_id": 31337}}))

        assert load_network_config(path) == {"local": {"chain_id": 31337}}

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            load_network_config(tmp_path / "missing.json")

    def test_corrupted_file_raises(self, tmp_path: Path):
        path = tmp_path / "networks.json"
        path.write_text("{ invalid json")

        with pytest.raises(ConfigurationError):
            load_network_config(path)

    def test_non_mapping_raises(self, tmp_path: Path):
        path = tmp_path / "networks.json"
        path.write_text(json.dumps(["local"]))

        with pytest.raises(ConfigurationError):
            load_network_config(path)
