"""
Proof ZIP artifacts.

A verified proof is archived as a ZIP holding proof.json, instance.json and
state_snapshot.json, possibly nested in folders. Files are located by name
only, case-insensitively, whatever their path inside the archive.
"""

import base64
import binascii
import io
import json
import zipfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from channel_toolkit.proofs.types import ProofArtifact
from channel_toolkit.shared.exceptions import ProofArtifactError
from channel_toolkit.shared.logging import get_logger

_logger = get_logger(__name__)

PROOF_FILE = "proof.json"
INSTANCE_FILE = "instance.json"
SNAPSHOT_FILE = "state_snapshot.json"

ArchiveSource = Union[bytes, bytearray, str, Path]


def _is_existing_file(text: str) -> bool:
    if len(text) >= 4096:
        return False
    try:
        return Path(text).is_file()
    except (OSError, ValueError):
        # e.g. a base64 blob longer than NAME_MAX
        return False


def _read_bytes(source: ArchiveSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, Path):
        return source.read_bytes()
    if isinstance(source, str):
        # A str is a path when it exists on disk, base64 content otherwise
        if _is_existing_file(source):
            return Path(source).read_bytes()
        try:
            return base64.b64decode(source, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ProofArtifactError(
                "Archive is neither an existing file nor base64 content"
            ) from e
    raise ProofArtifactError(
        f"Unsupported archive source type: {type(source).__name__}"
    )


def _open_zip(source: ArchiveSource) -> zipfile.ZipFile:
    data = _read_bytes(source)
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise ProofArtifactError(f"Invalid ZIP archive: {e}") from e


def _find_json(archive: zipfile.ZipFile, file_name: str) -> Optional[Any]:
    for info in archive.infolist():
        if info.is_dir():
            continue
        name = info.filename.rsplit("/", 1)[-1]
        if name.lower() == file_name.lower():
            try:
                return json.loads(archive.read(info).decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise ProofArtifactError(
                    f"{info.filename} is not valid JSON: {e}"
                ) from e
    return None


def _validate_proof(proof: Any) -> None:
    if not isinstance(proof, dict) or not all(
        isinstance(proof.get(k), list)
        for k in ("proof_entries_part1", "proof_entries_part2")
    ):
        raise ProofArtifactError("Invalid proof.json structure")


def _validate_instance(instance: Any) -> None:
    if not isinstance(instance, dict) or not all(
        isinstance(instance.get(k), list)
        for k in ("a_pub_user", "a_pub_block", "a_pub_function")
    ):
        raise ProofArtifactError("Invalid instance.json structure")


def parse_proof_archive(
    source: ArchiveSource, require_snapshot: bool = False
) -> ProofArtifact:
    """
    Parse a proof ZIP.

    Args:
        source: Raw ZIP bytes, base64 content, or a path to the ZIP
        require_snapshot: Fail when state_snapshot.json is absent

    Returns:
        ProofArtifact: proof, instance and (if present) snapshot JSON

    Raises:
        ProofArtifactError: If the archive is unreadable, a required file is
            missing, or a file has the wrong structure
    """
    with _open_zip(source) as archive:
        proof = _find_json(archive, PROOF_FILE)
        instance = _find_json(archive, INSTANCE_FILE)
        snapshot = _find_json(archive, SNAPSHOT_FILE)

    if proof is None or instance is None:
        raise ProofArtifactError(
            "ZIP file must contain proof.json and instance.json"
        )
    _validate_proof(proof)
    _validate_instance(instance)

    if snapshot is None and require_snapshot:
        raise ProofArtifactError("ZIP file must contain state_snapshot.json")

    return ProofArtifact(proof=proof, instance=instance, snapshot=snapshot)


def load_state_snapshot(source: ArchiveSource) -> Dict[str, Any]:
    """
    Read state_snapshot.json from a proof ZIP.

    Only the snapshot is required; archives from the snapshot endpoint do
    not always carry the proof files.
    """
    with _open_zip(source) as archive:
        snapshot = _find_json(archive, SNAPSHOT_FILE)

    if not isinstance(snapshot, dict):
        raise ProofArtifactError("Required files not found in ZIP")
    if not isinstance(snapshot.get("storageEntries", []), list):
        raise ProofArtifactError("Invalid state_snapshot.json structure")

    _logger.debug(
        f"Loaded snapshot with {len(snapshot.get('storageEntries', []))} entries"
    )
    return snapshot
