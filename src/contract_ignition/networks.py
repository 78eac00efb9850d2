"""Network profile resolution for contract-ignition library."""

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .constants import DEFAULT_CONFIRMATION_TIMEOUT, NETWORK_CONFIG, SOLIDITY_COMPILERS
from .exceptions import ConfigurationError
from .types import CompilerSettings, NetworkProfile

logger = logging.getLogger(__name__)


@dataclass
class DeploymentConfig:
    """
    Explicit configuration source for network resolution.

    Attributes:
        networks: Static per-network settings (url, chain_id, signer_env, ...)
        secrets: Secret values keyed by environment variable name
    """

    networks: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    secrets: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        networks: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> "DeploymentConfig":
        """
        Build a configuration from environment secrets and static network settings.

        Args:
            environ: Secret source (defaults to a snapshot of os.environ)
            networks: Network settings (defaults to constants.NETWORK_CONFIG)

        Returns:
            DeploymentConfig
        """
        if environ is None:
            environ = dict(os.environ)
        if networks is None:
            networks = NETWORK_CONFIG
        return cls(networks=copy.deepcopy(networks), secrets=dict(environ))

    def with_networks(self, networks: Dict[str, Dict[str, Any]]) -> "DeploymentConfig":
        """Return a copy where the given network entries override existing ones."""
        merged = copy.deepcopy(self.networks)
        for name, settings in networks.items():
            merged[name] = {**merged.get(name, {}), **settings}
        return DeploymentConfig(networks=merged, secrets=self.secrets)


def load_network_config(path: Union[Path, str]) -> Dict[str, Dict[str, Any]]:
    """
    Load per-network settings from a JSON file.

    Accepts either {"networks": {id: {...}}} or a bare {id: {...}} mapping.

    Args:
        path: Path to the JSON file

    Returns:
        Dictionary mapping network identifier -> settings

    Raises:
        ConfigurationError: If the file is missing, malformed, or not a mapping
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Network config file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Network config file is not valid JSON: {path}: {e}") from e

    if isinstance(data, dict) and "networks" in data:
        data = data["networks"]

    if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
        raise ConfigurationError(
            f"Network config file must map network names to settings objects: {path}"
        )

    return data


def list_networks(config: DeploymentConfig) -> List[str]:
    """Return configured network identifiers, sorted."""
    return sorted(config.networks.keys())


def _parse_compilers(network: str, raw: Any) -> tuple[CompilerSettings, ...]:
    if not isinstance(raw, list) or not raw:
        raise ConfigurationError(f"Network '{network}': 'compilers' must be a non-empty list")

    compilers = []
    for item in raw:
        if isinstance(item, str):
            compilers.append(CompilerSettings(version=item))
        elif isinstance(item, dict) and "version" in item:
            optimizer = item.get("optimizer", {})
            compilers.append(
                CompilerSettings(
                    version=str(item["version"]),
                    optimizer_enabled=bool(optimizer.get("enabled", True)),
                    optimizer_runs=int(optimizer.get("runs", 200)),
                )
            )
        else:
            raise ConfigurationError(
                f"Network '{network}': invalid compiler entry {item!r}"
            )
    return tuple(compilers)


def _require_secret(config: DeploymentConfig, network: str, env_name: str, what: str) -> str:
    value = config.secrets.get(env_name)
    if not value:
        raise ConfigurationError(
            f"Missing {what} for network '{network}': set ${env_name}"
        )
    return value


def resolve_network(identifier: str, config: DeploymentConfig) -> NetworkProfile:
    """
    Resolve a network identifier into a fully populated NetworkProfile.

    The endpoint URL from static settings can be overridden by the secret
    named in the network's rpc_env (e.g. $OP_RPC_URL).

    Args:
        identifier: Network name (e.g. "op", "arb", "sepolia")
        config: Configuration source

    Returns:
        NetworkProfile

    Raises:
        ConfigurationError: If the network is unknown, a required field is
            missing, or a required secret is absent
    """
    if identifier not in config.networks:
        known = ", ".join(list_networks(config)) or "none"
        raise ConfigurationError(
            f"Unknown network '{identifier}' (configured networks: {known})"
        )

    settings = config.networks[identifier]

    url = settings.get("url")
    rpc_env = settings.get("rpc_env")
    if rpc_env and config.secrets.get(rpc_env):
        url = config.secrets[rpc_env]
    if not url:
        raise ConfigurationError(f"Network '{identifier}' has no endpoint 'url'")

    chain_id = settings.get("chain_id")
    if isinstance(chain_id, bool) or not isinstance(chain_id, int):
        raise ConfigurationError(
            f"Network '{identifier}' has missing or non-integer 'chain_id': {chain_id!r}"
        )

    signer_env = settings.get("signer_env")
    if not signer_env:
        raise ConfigurationError(f"Network '{identifier}' has no 'signer_env'")
    signer_credential = _require_secret(config, identifier, signer_env, "signer credential")

    # A network without a verification key reference needs no verification secret
    verification_env = settings.get("verification_env")
    verification_credential = None
    if verification_env:
        verification_credential = _require_secret(
            config, identifier, verification_env, "verification credential"
        )

    compilers = _parse_compilers(identifier, settings.get("compilers", SOLIDITY_COMPILERS))

    try:
        timeout = float(settings.get("confirmation_timeout", DEFAULT_CONFIRMATION_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Network '{identifier}' has invalid 'confirmation_timeout'"
        ) from e

    profile = NetworkProfile(
        name=identifier,
        endpoint_url=url,
        chain_id=chain_id,
        signer_credential_ref=signer_env,
        compilers=compilers,
        verification_credential_ref=verification_env,
        block_explorer_url=settings.get("block_explorer_url"),
        confirmation_timeout=timeout,
        signer_credential=signer_credential,
        verification_credential=verification_credential,
    )
    logger.debug("Resolved network %s (chain %d) at %s", identifier, chain_id, url)
    return profile
