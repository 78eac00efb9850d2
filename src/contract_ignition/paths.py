"""Path management utilities for contract-ignition library."""

from pathlib import Path
from typing import Optional, Union


def get_default_journal_root() -> Path:
    """
    Get default journal root directory (current working directory).

    Returns:
        Path to ./.contract-ignition/deployments
    """
    return Path.cwd() / ".contract-ignition" / "deployments"


def default_namespace(chain_id: int) -> str:
    """
    Get the default deployment namespace for a chain.

    Args:
        chain_id: Numeric chain id

    Returns:
        Namespace string, e.g. "chain-10"
    """
    return f"chain-{chain_id}"


def get_journal_paths(
    namespace: str, journal_root: Optional[Union[Path, str]] = None
) -> tuple[Path, Path, Path]:
    """
    Get the files belonging to one deployment namespace.

    Args:
        namespace: Deployment namespace (e.g. "chain-10")
        journal_root: Custom root directory (defaults to ./.contract-ignition/deployments)

    Returns:
        Tuple of (journal_path, lock_path, addresses_path)
    """
    if not namespace or "/" in namespace or "\\" in namespace or namespace in (".", ".."):
        raise ValueError(f"Invalid deployment namespace: '{namespace}'")

    if journal_root is None:
        journal_root = get_default_journal_root()
    else:
        journal_root = Path(journal_root).absolute()

    namespace_dir = journal_root / namespace

    journal_path = namespace_dir / "journal.jsonl"
    lock_path = namespace_dir / "journal.lock"
    addresses_path = namespace_dir / "deployed_addresses.json"

    return (journal_path, lock_path, addresses_path)
