"""
Snapshot archive adapters.

HttpSnapshotArchive reads verified proofs from the channel API; the
LocalSnapshotArchive reads proof ZIPs from a directory (offline audits,
fixtures). Both satisfy the SnapshotArchive protocol used by the ledger
reconciler.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import quote

import httpx

from channel_toolkit.ledger.models import SnapshotRef, StateSnapshot
from channel_toolkit.proofs.artifacts import load_state_snapshot
from channel_toolkit.shared.constants import GlobalConstants
from channel_toolkit.shared.exceptions import (
    ArchiveException,
    ArchiveRequestError,
)
from channel_toolkit.shared.logging import get_logger
from channel_toolkit.shared.retry import HTTP_RETRY_CONFIG, RetryConfig
from channel_toolkit.shared.services.http_client import get_async_client

_logger = get_logger(__name__)

VERIFIED_STATUS = "verifiedProofs"


def _ref_or_none(record: Mapping[str, Any], key: Any) -> Optional[SnapshotRef]:
    try:
        return SnapshotRef.from_record(dict(record), key=key)
    except (TypeError, ValueError) as e:
        _logger.warning(f"Skipping malformed proof record {key}: {e}")
        return None


def parse_proof_listing(data: Union[List[Any], Mapping[str, Any], None]) -> List[SnapshotRef]:
    """
    Normalize the proofs endpoint's data field into SnapshotRefs.

    The archive returns either a list of records carrying their own key, or
    a mapping of proof key to record. Records whose fields cannot be parsed
    are logged and dropped. Results are sorted by sequence number.
    """
    refs: List[SnapshotRef] = []
    if isinstance(data, Mapping):
        for key, record in data.items():
            if isinstance(record, Mapping):
                ref = _ref_or_none(record, key)
                if ref is not None:
                    refs.append(ref)
    elif isinstance(data, list):
        for record in data:
            if not isinstance(record, Mapping):
                continue
            key = record.get("key") or record.get("proofId") or record.get("id")
            ref = _ref_or_none(record, key)
            if ref is not None:
                refs.append(ref)
    return sorted(refs, key=lambda r: r.sequence_number)


class HttpSnapshotArchive:
    """Channel API client for verified proofs and their state snapshots."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        retry_config: RetryConfig = HTTP_RETRY_CONFIG,
        silent: bool = False,
    ):
        self.base_url = (base_url or GlobalConstants.get_archive_url()).rstrip("/")
        self._client = client
        self.silent = silent
        self._get = retry_config.decorator()(self._request)

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else get_async_client()

    def _params(self, params: Dict[str, str]) -> Dict[str, str]:
        # silent=true keeps polling runs out of the server log
        if self.silent:
            params = {**params, "silent": "true"}
        return params

    async def _request(self, path: str, params: Dict[str, str]) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.get(url, params=self._params(params))
        except httpx.TransportError as e:
            raise ArchiveException(f"Archive request failed for {path}: {e}") from e

        if response.status_code >= 500 or response.status_code == 429:
            raise ArchiveException(
                f"Archive returned {response.status_code} for {path}"
            )
        if response.status_code >= 400:
            raise ArchiveRequestError(
                f"Archive returned {response.status_code} for {path}",
                status_code=response.status_code,
            )
        return response

    async def list_verified(self, channel_id: str) -> List[SnapshotRef]:
        """List verified proofs of a channel (ids are matched lower-cased)."""
        normalized = channel_id.lower()
        response = await self._get(
            f"/api/channels/{quote(normalized, safe='')}/proofs",
            {"type": "verified"},
        )
        try:
            payload = response.json()
        except json.JSONDecodeError as e:
            raise ArchiveException(f"Invalid JSON from proofs endpoint: {e}") from e

        if not isinstance(payload, dict):
            raise ArchiveException("Unexpected response shape from proofs endpoint")
        if not payload.get("success") or not payload.get("data"):
            return []
        refs = parse_proof_listing(payload["data"])
        _logger.debug(f"Channel {normalized} has {len(refs)} verified proofs")
        return refs

    async def fetch_archive(self, channel_id: str, proof_key: str) -> bytes:
        """Raw proof ZIP bytes of one verified proof."""
        response = await self._get(
            "/api/get-proof-zip",
            {
                "channelId": channel_id.lower(),
                "proofId": proof_key,
                "status": VERIFIED_STATUS,
                "format": "binary",
            },
        )
        return response.content

    async def fetch_snapshot(self, channel_id: str, ref: SnapshotRef) -> StateSnapshot:
        content = await self.fetch_archive(channel_id, ref.key)
        payload = load_state_snapshot(content)
        return StateSnapshot.from_payload(
            payload, sequence_number=ref.sequence_number, verified_at=ref.verified_at
        )


class LocalSnapshotArchive:
    """
    Proof ZIPs on disk, one directory per channel.

    Layout: <root>/<channel_id>/<proof_key>.zip plus an index.json holding
    the same data as the proofs endpoint (list or key->record mapping).
    Without an index, ZIPs are numbered in file-name order starting at 1.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _channel_dir(self, channel_id: str) -> Path:
        for candidate in (channel_id, channel_id.lower()):
            path = self.root / candidate
            if path.is_dir():
                return path
        raise ArchiveRequestError(f"Unknown channel: {channel_id}", status_code=404)

    async def list_verified(self, channel_id: str) -> List[SnapshotRef]:
        channel_dir = self._channel_dir(channel_id)
        index_file = channel_dir / "index.json"
        if index_file.is_file():
            with open(index_file, "r") as f:
                return parse_proof_listing(json.load(f))

        zips = sorted(channel_dir.glob("*.zip"))
        return [
            SnapshotRef(key=path.stem, sequence_number=i)
            for i, path in enumerate(zips, start=1)
        ]

    async def fetch_snapshot(self, channel_id: str, ref: SnapshotRef) -> StateSnapshot:
        path = self._channel_dir(channel_id) / f"{ref.key}.zip"
        if not path.is_file():
            raise ArchiveRequestError(f"Proof ZIP not found: {path}", status_code=404)
        payload = load_state_snapshot(path)
        return StateSnapshot.from_payload(
            payload, sequence_number=ref.sequence_number, verified_at=ref.verified_at
        )
