"""
Bridge core contract reads.

Participant deposits, MPT keys and channel membership are read in batches
through Multicall3. The bytes32 channel id is passed to the contract as its
uint256 value.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from eth_utils import is_address, to_checksum_address
from w3multicall.multicall import W3Multicall

from channel_toolkit.codec.field import parse_field_value, to_bytes32_hex
from channel_toolkit.shared.constants import GlobalConstants
from channel_toolkit.shared.exceptions import ConfigurationException
from channel_toolkit.shared.logging import get_logger
from channel_toolkit.shared.retry import RPC_RETRY_CONFIG, RetryConfig
from channel_toolkit.shared.services.web3_service import Web3Service

_logger = get_logger(__name__)

ChannelIdLike = Union[int, str]

CHANNEL_STATES = {
    0: "None",
    1: "Initialized",
    2: "Open",
    3: "Closing",
    4: "Closed",
}


@dataclass
class ChannelInfo:
    channel_id: str
    target_contract: str
    state: int
    participant_count: int
    initial_root: str

    @property
    def state_name(self) -> str:
        return CHANNEL_STATES.get(self.state, f"Unknown({self.state})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "target_contract": self.target_contract,
            "state": self.state_name,
            "participant_count": self.participant_count,
            "initial_root": self.initial_root,
        }


@dataclass
class ParticipantRecord:
    """A participant's on-chain seed for ledger reconciliation."""

    participant: str
    mpt_key: str
    initial_deposit: int


def _channel_int(channel_id: ChannelIdLike) -> int:
    return parse_field_value(channel_id)


def _bytes32(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex().rjust(64, "0")
    return to_bytes32_hex(value)


class BridgeService:
    """Read-only access to the bridge core contract."""

    def __init__(
        self,
        chain_id: Optional[int] = None,
        bridge_address: Optional[str] = None,
        web3_service: Optional[Web3Service] = None,
        retry_config: RetryConfig = RPC_RETRY_CONFIG,
    ):
        self.chain_id = chain_id or GlobalConstants.DEFAULT_CHAIN_ID
        address = bridge_address or GlobalConstants.get_bridge_core_address()
        if not address or not is_address(address):
            raise ConfigurationException(
                "Bridge core address is not set or invalid "
                "(CHANNEL_BRIDGE_CORE_ADDRESS)"
            )
        self.bridge_address = to_checksum_address(address)
        self.web3_service = web3_service or Web3Service.get_instance(self.chain_id)
        self.retry_config = retry_config

    def _call(self, calls: List[W3Multicall.Call], name: str) -> List[Any]:
        multicall = W3Multicall(self.web3_service.w3)
        for call in calls:
            multicall.add(call)
        return self.retry_config.run(multicall.call, operation_name=name)

    def _single(self, signature: str, args: List[Any], name: str) -> Any:
        return self._call(
            [W3Multicall.Call(self.bridge_address, signature, args)], name
        )[0]

    def get_participant_deposit(
        self, channel_id: ChannelIdLike, participant: str
    ) -> int:
        """Initial deposit recorded for a participant, in wei."""
        return int(
            self._single(
                "getParticipantDeposit(uint256,address)(uint256)",
                [_channel_int(channel_id), to_checksum_address(participant)],
                "get_participant_deposit",
            )
        )

    def get_l2_mpt_key(self, channel_id: ChannelIdLike, participant: str) -> str:
        """Participant's MPT key as 0x + 64 hex characters."""
        key = self._single(
            "getL2MptKey(uint256,address)(uint256)",
            [_channel_int(channel_id), to_checksum_address(participant)],
            "get_l2_mpt_key",
        )
        return to_bytes32_hex(int(key))

    def get_participant_record(
        self, channel_id: ChannelIdLike, participant: str
    ) -> ParticipantRecord:
        """MPT key and initial deposit in one multicall."""
        channel = _channel_int(channel_id)
        user = to_checksum_address(participant)
        mpt_key, deposit = self._call(
            [
                W3Multicall.Call(
                    self.bridge_address,
                    "getL2MptKey(uint256,address)(uint256)",
                    [channel, user],
                ),
                W3Multicall.Call(
                    self.bridge_address,
                    "getParticipantDeposit(uint256,address)(uint256)",
                    [channel, user],
                ),
            ],
            "get_participant_record",
        )
        return ParticipantRecord(
            participant=user,
            mpt_key=to_bytes32_hex(int(mpt_key)),
            initial_deposit=int(deposit),
        )

    def get_channel_participants(self, channel_id: ChannelIdLike) -> List[str]:
        participants = self._single(
            "getChannelParticipants(uint256)(address[])",
            [_channel_int(channel_id)],
            "get_channel_participants",
        )
        return [to_checksum_address(p) for p in participants or []]

    def get_channel_tree_size(self, channel_id: ChannelIdLike) -> int:
        return int(
            self._single(
                "getChannelTreeSize(uint256)(uint256)",
                [_channel_int(channel_id)],
                "get_channel_tree_size",
            )
        )

    def get_channel_info(self, channel_id: ChannelIdLike) -> ChannelInfo:
        target, state, count, root = self._single(
            "getChannelInfo(uint256)(address,uint8,uint256,bytes32)",
            [_channel_int(channel_id)],
            "get_channel_info",
        )
        _logger.debug(f"Channel {channel_id}: state={state}, participants={count}")
        return ChannelInfo(
            channel_id=to_bytes32_hex(_channel_int(channel_id)),
            target_contract=to_checksum_address(target),
            state=int(state),
            participant_count=int(count),
            initial_root=_bytes32(root),
        )
