"""ZK Channel Toolkit - Groth16 proof encoding and ledger reconciliation for state channels."""

__version__ = "0.1.0"

from .ledger import LedgerReconciler, derive_history
from .proofs import ChannelProofs as ProofManager

__all__ = ["ProofManager", "LedgerReconciler", "derive_history"]
