"""Command line interface for contract-ignition."""

import importlib
import json
import logging
import sys
from typing import Any, Callable, Dict, Optional

import click

from .constants import DEFAULT_MODULES_FILE
from .deployments import deploy, deployment_status, load_modules_file, plan
from .exceptions import (
    DeploymentError,
    ExecutionError,
    JournalError,
    ReconciliationAmbiguous,
)
from .journal import FileJournal
from .networks import DeploymentConfig, list_networks, load_network_config, resolve_network
from .paths import default_namespace
from .transport import JsonRpcTransport
from .types import FutureRef

# Exit codes
EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_AMBIGUOUS = 3


def _fail(message: str, code: int) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(code)


def _load_config(network_config: Optional[str]) -> DeploymentConfig:
    config = DeploymentConfig.from_env()
    if network_config:
        config = config.with_networks(load_network_config(network_config))
    return config


def _load_parameters(path: Optional[str]) -> Dict[str, Dict[str, Any]]:
    if path is None:
        return {}
    try:
        with open(path) as f:
            parameters = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"cannot read parameters file: {e}", param_hint="--parameters")
    if not isinstance(parameters, dict) or not all(isinstance(v, dict) for v in parameters.values()):
        raise click.BadParameter(
            "parameters must map module names to {name: value} objects",
            param_hint="--parameters",
        )
    return parameters


def _import_factory(target: str) -> Callable[..., Any]:
    """Import "package.module:attribute"."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter("expected 'module:factory'", param_hint="--sender")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot import {target}: {e}", param_hint="--sender")


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """contract-ignition: declarative, resumable contract deployments."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


modules_file_option = click.option(
    "--modules-file",
    "-f",
    default=DEFAULT_MODULES_FILE,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Python file defining the deployment modules.",
)
journal_root_option = click.option(
    "--journal-root",
    default=None,
    type=click.Path(file_okay=False),
    help="Directory holding deployment journals (default ./.contract-ignition/deployments).",
)


@cli.command(name="deploy")
@click.argument("module")
@click.option("--network", "-n", required=True, help="Network identifier (e.g. op, arb, sepolia).")
@modules_file_option
@journal_root_option
@click.option("--namespace", default=None, help="Deployment namespace (default chain-<chain id>).")
@click.option("--parameters", default=None, type=click.Path(dir_okay=False), help="JSON module parameters.")
@click.option("--network-config", default=None, type=click.Path(dir_okay=False), help="JSON network settings.")
@click.option(
    "--sender",
    envvar="CONTRACT_IGNITION_SENDER",
    default=None,
    help="Transaction sender factory 'module:callable', called with the network profile.",
)
def deploy_command(
    module: str,
    network: str,
    modules_file: str,
    journal_root: Optional[str],
    namespace: Optional[str],
    parameters: Optional[str],
    network_config: Optional[str],
    sender: Optional[str],
) -> None:
    """Deploy MODULE and every module it uses to a network."""
    try:
        config = _load_config(network_config)
        profile = resolve_network(network, config)
        registry = load_modules_file(modules_file)
    except (DeploymentError, FileNotFoundError) as e:
        _fail(str(e), EXIT_CONFIG)

    if sender is None:
        _fail("no transaction sender configured (use --sender or $CONTRACT_IGNITION_SENDER)", EXIT_CONFIG)

    factory = _import_factory(sender)
    try:
        transport = JsonRpcTransport(factory(profile))
    except Exception as e:
        _fail(f"transaction sender factory {sender} failed: {e}", EXIT_CONFIG)

    try:
        result = deploy(
            module,
            registry,
            network,
            transport,
            config=config,
            parameters=_load_parameters(parameters),
            namespace=namespace,
            journal_root=journal_root,
        )
    except ReconciliationAmbiguous as e:
        _fail(f"{e}\nFuture: {e.future_key}", EXIT_AMBIGUOUS)
    except ExecutionError as e:
        _fail(f"{e}\nFuture: {e.future_key}", EXIT_FAILED)
    except DeploymentError as e:
        _fail(str(e), EXIT_CONFIG)

    click.secho(f"Deployed {module} to {network} (namespace {result.namespace})", fg="green")
    for module_name, outputs in result.outputs.items():
        for name, value in outputs.items():
            click.echo(f"  {module_name}.{name}: {value}")
    click.echo(f"Executed {len(result.executed)}, reused {len(result.reused)}")


@cli.command(name="plan")
@click.argument("module")
@modules_file_option
@click.option("--parameters", default=None, type=click.Path(dir_okay=False), help="JSON module parameters.")
def plan_command(module: str, modules_file: str, parameters: Optional[str]) -> None:
    """Show the execution order of MODULE without deploying."""
    try:
        order = plan(module, load_modules_file(modules_file), _load_parameters(parameters))
    except (DeploymentError, FileNotFoundError) as e:
        _fail(str(e), EXIT_CONFIG)

    for position, key in enumerate(order, start=1):
        click.echo(f"{position:3d}. {key}")


@cli.command(name="status")
@click.argument("namespace")
@journal_root_option
def status_command(namespace: str, journal_root: Optional[str]) -> None:
    """Show the journal of a deployment NAMESPACE."""
    try:
        entries = deployment_status(namespace, journal_root)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="NAMESPACE")
    if not entries:
        click.echo(f"No journal entries in namespace {namespace}")
        return

    for key in sorted(entries):
        entry = entries[key]
        detail = entry.result if entry.result is not None else (entry.error or entry.operation_id or "")
        click.echo(f"{entry.status.value:10s} {key}  {detail}")


@cli.command(name="reset")
@click.argument("namespace")
@click.argument("future")
@journal_root_option
def reset_command(namespace: str, future: str, journal_root: Optional[str]) -> None:
    """Clear the failed or started entry of FUTURE (Module.future_id) in NAMESPACE."""
    try:
        ref = FutureRef.parse(future)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="FUTURE")

    try:
        journal = FileJournal(namespace, journal_root)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="NAMESPACE")

    try:
        with journal.lock():
            journal.clear(ref.module, ref.future_id)
    except JournalError as e:
        _fail(str(e), EXIT_FAILED)

    click.echo(f"Cleared {ref} in {namespace}; it will run again on the next deploy")


@cli.command(name="networks")
@click.option("--network-config", default=None, type=click.Path(dir_okay=False), help="JSON network settings.")
def networks_command(network_config: Optional[str]) -> None:
    """List configured networks."""
    try:
        config = _load_config(network_config)
    except DeploymentError as e:
        _fail(str(e), EXIT_CONFIG)

    for name in list_networks(config):
        settings = config.networks[name]
        chain_id = settings.get("chain_id")
        namespace = default_namespace(chain_id) if isinstance(chain_id, int) else "-"
        click.echo(f"{name:10s} chain {chain_id}  {settings.get('url', '')}  ({namespace})")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
