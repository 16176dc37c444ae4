import json
import os
import tempfile
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from deployment.constants import ARTIFACTS_DIR
from deployment.errors import ConfigurationError, PersistenceError
from deployment.utils import _load_json

ContractName = str
Manifest = Dict[ContractName, ChecksumAddress]

STANDARD_MANIFEST_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


def manifest_filepath(network: str, filename: str, artifacts_dir: Path = ARTIFACTS_DIR) -> Path:
    """Returns the fixed, network-scoped location of a manifest."""
    if not filename.endswith(".json"):
        filename = f"{filename}.json"
    return Path(artifacts_dir) / network / filename


def _normalize_address(name: ContractName, value) -> ChecksumAddress:
    # legacy manifests sometimes store {"address": "0x..."} instead of the address itself
    if isinstance(value, dict) and "address" in value:
        value = value["address"]
    if not isinstance(value, str) or not is_address(value):
        raise ConfigurationError(f"Manifest entry '{name}' has an invalid address: {value!r}.")
    return to_checksum_address(value)


def _parse_manifest(data, filepath: Path, strict: bool = True) -> Manifest:
    if not isinstance(data, dict):
        raise ConfigurationError(f"Manifest at {filepath} is not a JSON object.")

    manifest = OrderedDict()
    for name, value in data.items():
        if strict and not isinstance(value, str):
            raise ConfigurationError(
                f"Manifest entry '{name}' at {filepath} is not an address string. "
                "Run the normalize_manifest script to convert legacy entries."
            )
        manifest[name] = _normalize_address(name, value)
    return manifest


def read_manifest(filepath: Path) -> Optional[Manifest]:
    """
    Reads a manifest of contract names to addresses.
    Returns None if there is no manifest at the given path.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        return None
    try:
        data = _load_json(filepath)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Manifest at {filepath} is not valid JSON: {e}")
    return _parse_manifest(data, filepath)


def write_manifest(manifest: Manifest, filepath: Path, silent: bool = False) -> Path:
    """
    Writes a manifest so that readers never observe a partially written file:
    the data goes to a temporary file in the same directory, which then replaces the target.
    """
    filepath = Path(filepath)
    data = OrderedDict(
        (name, to_checksum_address(address)) for name, address in sorted(manifest.items())
    )

    temp_filepath = None
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", dir=filepath.parent, prefix=f".{filepath.stem}.", suffix=".tmp", delete=False
        ) as file:
            temp_filepath = Path(file.name)
            json.dump(data, file, **STANDARD_MANIFEST_JSON_FORMAT)
            file.flush()
            os.fsync(file.fileno())
        os.replace(temp_filepath, filepath)
    except OSError as e:
        if temp_filepath is not None and temp_filepath.exists():
            temp_filepath.unlink()
        raise PersistenceError(f"Could not write manifest to {filepath}: {e}") from e

    if not silent:
        print(f"(i) Manifest written to {filepath}!")
    return filepath


def merge_manifests(prior: Optional[Manifest], new: Manifest) -> Manifest:
    """Additive union of two manifests; entries of the new manifest win on conflict."""
    merged = OrderedDict(prior or {})
    merged.update(new)
    return merged


def merge_manifest_files(
    manifest_1_filepath: Path,
    manifest_2_filepath: Path,
    output_filepath: Path,
    deprecated_contracts: Optional[List[ContractName]] = None,
) -> Path:
    """
    Merges two manifest files, excluding deprecated contracts.
    Entries of the second manifest win on conflict.
    """
    deprecated_contracts = deprecated_contracts or []

    merged = OrderedDict()
    for filepath in (manifest_1_filepath, manifest_2_filepath):
        manifest = read_manifest(filepath)
        if manifest is None:
            raise ConfigurationError(f"No manifest found at {filepath}.")
        for name, address in manifest.items():
            if name in deprecated_contracts:
                continue
            if name in merged and merged[name] != address:
                print(
                    f"! Conflict for {name}: {merged[name]} ({manifest_1_filepath}) "
                    f"replaced by {address} ({filepath})"
                )
            merged[name] = address

    write_manifest(merged, filepath=output_filepath)
    print(f"Merged manifest output to {output_filepath}")
    return output_filepath


def normalize_manifest(filepath: Path) -> Manifest:
    """Rewrites a potentially non-standard manifest with uniform address string values."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise ConfigurationError(f"No manifest found at {filepath}.")

    try:
        manifest = _parse_manifest(_load_json(filepath), filepath, strict=False)
    except Exception:
        print(f"Error when reading manifest at {filepath}.")
        raise

    write_manifest(manifest, filepath=filepath, silent=True)
    print(f"Successfully normalized manifest at {filepath}.")
    return manifest
