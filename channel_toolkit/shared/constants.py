"""All constants for the project"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


class FieldConstants:
    """Field moduli and bit widths used by the proof codec"""

    # BN254 (alt_bn128) base field: proof point coordinates live here
    BN254_BASE_MODULUS = int(
        "0x30644e72e131a029b85045b68181585d97816a916871ca8d3c208c16d87cfd47",
        16,
    )

    # BN254 scalar field: public signals live here
    BN254_SCALAR_MODULUS = int(
        "0x30644e72e131a029b85045b68181585d2833e84879b9709143e1f593f0000001",
        16,
    )

    # R_MOD from the bridge proof manager contract, applied to every leaf
    R_MOD = int(
        "0x73eda753299d7d483339d80809a1d80553bda402fffe5bfeffffffff00000001",
        16,
    )

    MASK_128 = (1 << 128) - 1
    MAX_UINT256 = (1 << 256) - 1

    # split() pads to 96 hex chars: 32 high + 64 low
    SPLIT_HEX_WIDTH = 96
    SPLIT_LOW_WIDTH = 64
    SPLIT_HIGH_WIDTH = 32

    # combine() pads each 16-byte chunk to 32 hex chars
    CHUNK_HEX_WIDTH = 32


class CircuitConstants:
    """Global class constants for the merkle-tree circuits"""

    SUPPORTED_TREE_SIZES = (16, 32, 64, 128)
    MIN_TREE_SIZE = 16
    MAX_TREE_SIZE = 128
    LARGE_CIRCUIT_THRESHOLD = 64

    CIRCUIT_NAMES = {
        16: "circuit_N4",
        32: "circuit_N5",
        64: "circuit_N6",
        128: "circuit_N7",
    }

    MEMORY_REQUIREMENTS = {
        16: "~512MB RAM",
        32: "~1GB RAM",
        64: "~2GB RAM",
        128: "~4GB RAM",
    }

    DOWNLOAD_SIZES = {
        16: "0MB (local)",
        32: "0MB (local)",
        64: "~51MB (from R2)",
        128: "~102MB (from R2)",
    }

    LARGE_CIRCUIT_DURATION = "5-15 minutes"

    # Leaves of a default channel tree (used for participant capacity)
    DEFAULT_LEAVES = 16


class InstanceLayout:
    """Slot indices of the 16-element a_pub_user vector (low, high)"""

    LENGTH = 16

    RESULTING_ROOT = (0, 1)
    RESERVED = tuple(range(2, 8))
    INITIAL_ROOT = (8, 9)
    SIGNATURE = (10, 11)
    TARGET_CONTRACT = (12, 13)
    SELECTOR = (14, 15)


class SubmissionConstants:
    """Constants for submitProofAndSignature formatting"""

    SMAX = 256
    MAX_PROOFS = 5


class GlobalConstants:
    """Global class constants read from the environment"""

    DEFAULT_CHAIN_ID = int(os.getenv("CHANNEL_CHAIN_ID", "11155111"))  # Sepolia
    DEFAULT_POLL_INTERVAL = float(os.getenv("CHANNEL_POLL_INTERVAL", "5"))
    DEFAULT_DECIMALS = 18
    DEFAULT_TOKEN_SYMBOL = os.getenv("CHANNEL_TOKEN_SYMBOL", "TON")
    SNARKJS_BIN = os.getenv("CHANNEL_SNARKJS_BIN", "snarkjs")

    @staticmethod
    def get_rpc_url(chain_id: int) -> Optional[str]:
        """RPC URL for a chain: RPC_URL_<chain_id>, falling back to RPC_URL"""
        return os.getenv(f"RPC_URL_{chain_id}") or os.getenv("RPC_URL")

    @staticmethod
    def get_bridge_core_address() -> Optional[str]:
        return os.getenv("CHANNEL_BRIDGE_CORE_ADDRESS")

    @staticmethod
    def get_archive_url() -> str:
        return os.getenv("CHANNEL_ARCHIVE_URL", "http://localhost:3000")

    @staticmethod
    def get_zk_assets_dir() -> str:
        return os.getenv("CHANNEL_ZK_ASSETS_DIR", "zk-assets")
