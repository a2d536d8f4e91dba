"""
snarkjs-backed Groth16 prover.

Circuit assets live under the zk-assets directory:

    <assets>/wasm/circuit_N4.wasm ... circuit_N7.wasm
    <assets>/zkey/circuit_final_16.zkey ... circuit_final_128.zkey

Proving runs `snarkjs groth16 fullprove` in a scratch directory and reads
back proof.json and public.json. The 64 and 128 leaf circuits need
gigabytes of memory and several minutes; there is no timeout.
"""

import json
import shlex
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from channel_toolkit.proofs.circuit_input import get_circuit_name
from channel_toolkit.proofs.types import CircuitInput, RawProof
from channel_toolkit.shared.constants import GlobalConstants
from channel_toolkit.shared.exceptions import ConfigurationException, ProverException
from channel_toolkit.shared.logging import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class CircuitArtifacts:
    circuit_name: str
    wasm_path: Path
    zkey_path: Path

    def check(self) -> None:
        for path in (self.wasm_path, self.zkey_path):
            if not path.is_file():
                raise ConfigurationException(f"Circuit file not found: {path}")


def circuit_artifacts(
    tree_size: int, assets_dir: Optional[Union[str, Path]] = None
) -> CircuitArtifacts:
    """Locate the wasm and proving key for a tree size."""
    root = Path(assets_dir or GlobalConstants.get_zk_assets_dir())
    name = get_circuit_name(tree_size)
    return CircuitArtifacts(
        circuit_name=name,
        wasm_path=root / "wasm" / f"{name}.wasm",
        zkey_path=root / "zkey" / f"circuit_final_{tree_size}.zkey",
    )


class SnarkjsProver:
    """Prover that shells out to the snarkjs CLI."""

    def __init__(
        self,
        assets_dir: Optional[Union[str, Path]] = None,
        snarkjs_bin: Optional[str] = None,
    ):
        self.assets_dir = Path(assets_dir or GlobalConstants.get_zk_assets_dir())
        self.snarkjs_cmd: List[str] = shlex.split(
            snarkjs_bin or GlobalConstants.SNARKJS_BIN
        )

    def _run(self, args: List[str], cwd: Path) -> None:
        cmd = self.snarkjs_cmd + args
        _logger.debug(f"$ {' '.join(cmd)}")
        try:
            completed = subprocess.run(
                cmd, cwd=str(cwd), capture_output=True, text=True
            )
        except OSError as e:
            raise ProverException(f"Could not start snarkjs: {e}") from e

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise ProverException(
                f"snarkjs exited with {completed.returncode}: {detail[-2000:]}"
            )

    def prove(self, circuit_input: CircuitInput) -> RawProof:
        """
        Generate a Groth16 proof for a fixed-size circuit input.

        Raises:
            ConfigurationException: If the circuit files are missing
            ProverException: If snarkjs fails or its output is unreadable
        """
        artifacts = circuit_artifacts(circuit_input.tree_size, self.assets_dir)
        artifacts.check()

        with tempfile.TemporaryDirectory(prefix="channel-proof-") as tmp:
            workdir = Path(tmp)
            with open(workdir / "input.json", "w") as f:
                json.dump(circuit_input.to_prover_input(), f)

            _logger.info(
                f"Proving with {artifacts.circuit_name} "
                f"({circuit_input.tree_size} leaves)"
            )
            self._run(
                [
                    "groth16",
                    "fullprove",
                    "input.json",
                    str(artifacts.wasm_path.resolve()),
                    str(artifacts.zkey_path.resolve()),
                    "proof.json",
                    "public.json",
                ],
                workdir,
            )

            try:
                with open(workdir / "proof.json", "r") as f:
                    proof = json.load(f)
                with open(workdir / "public.json", "r") as f:
                    public_signals = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ProverException(f"Unreadable prover output: {e}") from e

        if isinstance(public_signals, dict):
            public_signals = public_signals.get(
                "publicSignals", public_signals.get("pubSignals", [])
            )
        return RawProof.from_snarkjs(proof, public_signals)
