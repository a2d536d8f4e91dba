"""
Unit tests for the circuit input builder.
"""

import pytest

from channel_toolkit.proofs.circuit_input import (
    build_circuit_input,
    get_circuit_name,
    get_memory_requirement,
    resolve_tree_size,
)
from channel_toolkit.proofs.types import AdvisoryKind, StorageEntry
from channel_toolkit.shared.constants import CircuitConstants, FieldConstants
from channel_toolkit.shared.exceptions import (
    NonRetryableException,
    UnsupportedTreeSizeError,
)


def _entries(count: int):
    return [StorageEntry(key=i + 1, value=(i + 1) * 1000) for i in range(count)]


class TestResolveTreeSize:
    """Tests for tree size resolution."""

    def test_smallest_supported_size(self):
        """The smallest supported size holding every entry wins."""
        assert resolve_tree_size(1) == 16
        assert resolve_tree_size(16) == 16
        assert resolve_tree_size(17) == 32
        assert resolve_tree_size(20) == 32
        assert resolve_tree_size(65) == 128

    def test_capped_at_largest(self):
        """More entries than the largest circuit resolve to 128."""
        assert resolve_tree_size(500) == 128

    def test_explicit_size(self):
        """An explicit supported size is used as-is."""
        assert resolve_tree_size(3, 64) == 64

    def test_unsupported_size(self):
        """An explicit unsupported size is fatal."""
        with pytest.raises(UnsupportedTreeSizeError) as exc:
            resolve_tree_size(3, 48)
        assert exc.value.tree_size == 48
        assert isinstance(exc.value, NonRetryableException)


class TestBuildCircuitInput:
    """Tests for build_circuit_input()."""

    def test_length_invariant(self):
        """keys and values always hold exactly tree_size elements."""
        for size in CircuitConstants.SUPPORTED_TREE_SIZES:
            for count in (0, 1, size - 1, size, size + 5):
                circuit_input = build_circuit_input(_entries(count), size)
                assert len(circuit_input.keys) == size
                assert len(circuit_input.values) == size
                assert circuit_input.tree_size == size

    def test_twenty_entries_resolve_to_32(self):
        """20 entries use the 32-leaf circuit with 12 zero leaves."""
        circuit_input = build_circuit_input(_entries(20))
        assert circuit_input.tree_size == 32
        assert circuit_input.real_entries == 20
        assert circuit_input.padded_entries == 12
        assert circuit_input.truncated_entries == 0
        assert circuit_input.keys[20:] == (0,) * 12
        assert circuit_input.values[20:] == (0,) * 12
        assert circuit_input.advisories == ()

    def test_order_preserved(self):
        """Leaf order follows input order."""
        circuit_input = build_circuit_input(_entries(16))
        assert circuit_input.keys == tuple(range(1, 17))
        assert circuit_input.is_perfect_match

    def test_truncation_advisory(self):
        """Surplus entries are dropped with a TREE_SIZE_TRUNCATED advisory."""
        circuit_input = build_circuit_input(_entries(20), 16)
        assert circuit_input.truncated_entries == 4
        assert circuit_input.real_entries == 16
        kinds = [a.kind for a in circuit_input.advisories]
        assert kinds == [AdvisoryKind.TREE_SIZE_TRUNCATED]
        assert circuit_input.advisories[0].context["dropped"] == 4
        assert circuit_input.keys == tuple(range(1, 17))

    def test_large_circuit_advisory(self):
        """64 and 128 leaf circuits carry a LARGE_CIRCUIT advisory."""
        circuit_input = build_circuit_input(_entries(40))
        assert circuit_input.tree_size == 64
        assert circuit_input.is_large_circuit
        advisory = circuit_input.advisories[0]
        assert advisory.kind == AdvisoryKind.LARGE_CIRCUIT
        assert advisory.context["memory"] == "~2GB RAM"
        assert advisory.context["estimated_duration"] == "5-15 minutes"

    def test_small_circuit_has_no_large_advisory(self):
        """16 and 32 leaf circuits are not large."""
        assert not build_circuit_input(_entries(20)).is_large_circuit

    def test_values_reduced_modulo_r_mod(self):
        """Keys and values are reduced modulo R_MOD."""
        entry = StorageEntry(key=FieldConstants.R_MOD + 5, value=FieldConstants.R_MOD)
        circuit_input = build_circuit_input([entry])
        assert circuit_input.keys[0] == 5
        assert circuit_input.values[0] == 0

    def test_reduction_can_be_disabled(self):
        """reduce_modulo=False keeps raw values."""
        entry = StorageEntry(key=FieldConstants.R_MOD + 5, value=1)
        circuit_input = build_circuit_input([entry], reduce_modulo=False)
        assert circuit_input.keys[0] == FieldConstants.R_MOD + 5

    def test_accepts_dicts_and_pairs(self):
        """Snapshot dicts and (key, value) pairs are accepted."""
        circuit_input = build_circuit_input(
            [{"key": "0x01", "value": "0x"}, ("0x02", "0x3e8")]
        )
        assert circuit_input.keys[:2] == (1, 2)
        assert circuit_input.values[:2] == (0, 1000)

    def test_prover_input_shape(self):
        """Prover JSON holds decimal strings in leaf order."""
        prover_input = build_circuit_input(_entries(2)).to_prover_input()
        assert prover_input["storage_keys_L2MPT"][:3] == ["1", "2", "0"]
        assert prover_input["storage_values"][:3] == ["1000", "2000", "0"]
        assert len(prover_input["storage_values"]) == 16

    def test_unsupported_explicit_size(self):
        """Unsupported explicit sizes raise before building."""
        with pytest.raises(UnsupportedTreeSizeError):
            build_circuit_input(_entries(3), 20)


class TestCircuitMetadata:
    """Tests for circuit metadata lookups."""

    def test_circuit_names(self):
        """Tree sizes map to circuit_N4..N7."""
        assert get_circuit_name(16) == "circuit_N4"
        assert get_circuit_name(128) == "circuit_N7"
        with pytest.raises(UnsupportedTreeSizeError):
            get_circuit_name(8)

    def test_memory_requirement(self):
        """Memory grows with the tree size."""
        assert get_memory_requirement(16) == "~512MB RAM"
        assert get_memory_requirement(128) == "~4GB RAM"
