#!/usr/bin/env python3
"""
Unified CLI for the ZK Channel Toolkit.

Examples:
  - Proving
    channel-toolkit build-input --entries state_snapshot.json [--tree-size 32]
    channel-toolkit prove --entries state_snapshot.json [--assets-dir zk-assets]
    channel-toolkit encode-proof --proof proof.json --public public.json

  - Artifacts
    channel-toolkit decode-instance --instance instance.json
    channel-toolkit analyze --zip proof-3.zip --participants 0x...,0x...
    channel-toolkit submission --channel-id 0x... --zip proof-1.zip proof-2.zip

  - Ledger
    channel-toolkit history --channel-id 0x... --participant 0x...
    channel-toolkit history --channel-id 0x... --mpt-key 0x... --initial-deposit 1000 --local-dir ./archive

  - Channels
    channel-toolkit channel-id --leader 0x... --salt my-channel
"""

import argparse
import asyncio
import json
from typing import Any, Dict, List, Optional

from channel_toolkit.channels import (
    calculate_max_participants,
    compute_channel_id,
)
from channel_toolkit.commands.helpers import (
    handle_command_error,
    load_entries_file,
    print_result_messages,
)
from channel_toolkit.commands.validation import (
    validate_channel_id,
    validate_eth_address,
    validate_tree_size,
)
from channel_toolkit.ledger.reconciler import LedgerReconciler
from channel_toolkit.proofs.analyzer import analyze_artifact
from channel_toolkit.proofs.artifacts import parse_proof_archive
from channel_toolkit.proofs.circuit_input import build_circuit_input
from channel_toolkit.proofs.decoder import decode_instance
from channel_toolkit.proofs.encoder import encode_proof
from channel_toolkit.proofs.manager import ChannelProofs
from channel_toolkit.proofs.submission import format_verified_proofs_for_submission
from channel_toolkit.proofs.types import RawProof
from channel_toolkit.shared.constants import GlobalConstants
from channel_toolkit.shared.services.archive_service import (
    HttpSnapshotArchive,
    LocalSnapshotArchive,
)
from channel_toolkit.shared.services.http_client import aclose_async_client
from channel_toolkit.utils.formatters import (
    console,
    create_balances_table,
    create_history_table,
    format_address,
    generate_timestamped_filename,
    load_json,
    save_json_output,
    summary_rows,
)


def _tree_size(args: argparse.Namespace) -> Optional[int]:
    if args.tree_size is None:
        return None
    return validate_tree_size(args.tree_size)


def _output(args: argparse.Namespace, data: Any, prefix: str) -> None:
    if getattr(args, "json", False):
        console.print_json(json.dumps(data))
        return
    save_json_output(data, args.output or generate_timestamped_filename(prefix))


def cmd_build_input(args: argparse.Namespace) -> None:
    entries = load_entries_file(args.entries)
    circuit_input = build_circuit_input(entries, _tree_size(args))

    for advisory in circuit_input.advisories:
        console.print(f"[yellow]{advisory.message}[/yellow]")
    console.print(
        summary_rows(
            {
                "Tree size": circuit_input.tree_size,
                "Real entries": circuit_input.real_entries,
                "Zero leaves": circuit_input.padded_entries,
                "Dropped": circuit_input.truncated_entries,
            }
        )
    )
    _output(args, circuit_input.to_prover_input(), "circuit_input")


def cmd_prove(args: argparse.Namespace) -> None:
    from channel_toolkit.proofs.prover import SnarkjsProver

    entries = load_entries_file(args.entries)
    manager = ChannelProofs(SnarkjsProver(assets_dir=args.assets_dir))
    result = manager.generate_proof(
        entries,
        _tree_size(args),
        on_progress=lambda msg: console.print(f"[cyan]{msg}[/cyan]"),
    )
    print_result_messages(result)
    bundle = result.unwrap()

    _output(
        args,
        {
            "tree_size": bundle.circuit_input.tree_size,
            "encoded": bundle.encoded.to_dict(),
            "publicSignals": list(bundle.public_signals),
        },
        "proof_bundle",
    )


def cmd_encode_proof(args: argparse.Namespace) -> None:
    proof = load_json(args.proof)
    public_signals = load_json(args.public)
    encoded = encode_proof(RawProof.from_snarkjs(proof, public_signals))
    _output(args, encoded.to_dict(), "encoded_proof")


def cmd_decode_instance(args: argparse.Namespace) -> None:
    if args.zip:
        instance = parse_proof_archive(args.zip).instance
    elif args.instance:
        instance = load_json(args.instance)
    else:
        raise ValueError("Provide --instance or --zip")

    decoded = decode_instance(instance).to_dict()
    console.print(summary_rows(decoded))
    if args.json or args.output:
        _output(args, decoded, "decoded_instance")


def _participants(args: argparse.Namespace) -> List[str]:
    if args.participants:
        return [
            validate_eth_address(p.strip(), "participant")
            for p in args.participants.split(",")
            if p.strip()
        ]
    if args.channel_id:
        from channel_toolkit.shared.services.bridge_service import BridgeService

        bridge = BridgeService(chain_id=args.chain_id)
        return bridge.get_channel_participants(validate_channel_id(args.channel_id))
    return []


def cmd_analyze(args: argparse.Namespace) -> None:
    artifact = parse_proof_archive(args.zip, require_snapshot=True)
    analysis = analyze_artifact(artifact, _participants(args), args.decimals)

    console.print(
        summary_rows(
            {
                "Initial root": analysis.initial_root,
                "Resulting root": analysis.resulting_root,
                "Contract": analysis.contract_address or "N/A",
            }
        )
    )
    console.print(create_balances_table(analysis.balances, args.token))
    if args.json or args.output:
        _output(args, analysis.to_dict(), "proof_analysis")


def cmd_submission(args: argparse.Namespace) -> None:
    channel_id = validate_channel_id(args.channel_id)
    formatted = format_verified_proofs_for_submission(args.zip, channel_id)

    data: Dict[str, Any] = {
        "proofData": [
            {
                "proofPart1": [str(v) for v in p.proof_part1],
                "proofPart2": [str(v) for v in p.proof_part2],
                "publicInputs": [str(v) for v in p.public_inputs],
                "smax": str(p.smax),
            }
            for p in formatted.proof_data
        ],
        "finalStateRoot": formatted.final_state_root,
        "messageHash": formatted.message_hash,
    }
    console.print(
        summary_rows(
            {
                "Proofs": len(formatted.proof_data),
                "Final state root": formatted.final_state_root,
                "Message hash": formatted.message_hash,
            }
        )
    )
    _output(args, data, f"submission_{channel_id[:10]}")


def cmd_history(args: argparse.Namespace) -> None:
    channel_id = validate_channel_id(args.channel_id)

    if args.mpt_key is not None and args.initial_deposit is not None:
        mpt_key, initial_deposit = args.mpt_key, args.initial_deposit
    elif args.participant:
        from channel_toolkit.shared.services.bridge_service import BridgeService

        record = BridgeService(chain_id=args.chain_id).get_participant_record(
            channel_id, validate_eth_address(args.participant, "participant")
        )
        mpt_key, initial_deposit = record.mpt_key, record.initial_deposit
    else:
        raise ValueError(
            "Provide --participant, or both --mpt-key and --initial-deposit"
        )

    if args.local_dir:
        archive = LocalSnapshotArchive(args.local_dir)
    else:
        archive = HttpSnapshotArchive(args.archive_url, silent=args.watch)
    reconciler = LedgerReconciler(archive)

    def show(result) -> None:
        print_result_messages(result)
        items = result.data or []
        console.print(
            f"\n[bold]History for {format_address(mpt_key)}[/bold] "
            f"({len(items)} changes)"
        )
        console.print(create_history_table(items, token_symbol=args.token))

    async def run() -> None:
        try:
            if args.watch:
                async for result in reconciler.poll(
                    channel_id, mpt_key, initial_deposit, interval=args.interval
                ):
                    console.clear()
                    show(result)
                return

            result, summary = await reconciler.reconcile_with_summary(
                channel_id, mpt_key, initial_deposit
            )
            show(result)
            if args.json or args.output:
                _output(
                    args,
                    {
                        "transactions": [i.to_dict() for i in result.data or []],
                        "summary": summary.to_dict(),
                    },
                    f"history_{channel_id[:10]}",
                )
        finally:
            await aclose_async_client()

    asyncio.run(run())


def cmd_channel_id(args: argparse.Namespace) -> None:
    leader = validate_eth_address(args.leader, "leader")
    rows = {
        "Leader": leader,
        "Salt": args.salt,
        "Channel id": compute_channel_id(leader, args.salt),
    }
    if args.pre_allocated is not None:
        rows["Max participants"] = calculate_max_participants(
            args.pre_allocated, args.tokens
        )
    console.print(summary_rows(rows))


def _add_output_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("--output", type=str, help="Output filename")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="channel-toolkit", description="ZK Channel Toolkit CLI"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # build-input
    p_bi = sub.add_parser("build-input", help="Build a fixed-size circuit input")
    p_bi.add_argument("--entries", type=str, required=True)
    p_bi.add_argument("--tree-size", type=int)
    _add_output_args(p_bi)
    p_bi.set_defaults(func=cmd_build_input)

    # prove
    p_pr = sub.add_parser("prove", help="Generate and encode a Groth16 proof")
    p_pr.add_argument("--entries", type=str, required=True)
    p_pr.add_argument("--tree-size", type=int)
    p_pr.add_argument("--assets-dir", type=str, help="zk-assets directory")
    _add_output_args(p_pr)
    p_pr.set_defaults(func=cmd_prove)

    # encode-proof
    p_ep = sub.add_parser("encode-proof", help="Encode snarkjs output for the verifier")
    p_ep.add_argument("--proof", type=str, required=True)
    p_ep.add_argument("--public", type=str, required=True)
    _add_output_args(p_ep)
    p_ep.set_defaults(func=cmd_encode_proof)

    # decode-instance
    p_di = sub.add_parser("decode-instance", help="Decode a_pub_user public inputs")
    p_di.add_argument("--instance", type=str, help="instance.json path")
    p_di.add_argument("--zip", type=str, help="Proof ZIP path")
    _add_output_args(p_di)
    p_di.set_defaults(func=cmd_decode_instance)

    # analyze
    p_an = sub.add_parser("analyze", help="Merkle roots and balances of a proof ZIP")
    p_an.add_argument("--zip", type=str, required=True)
    p_an.add_argument("--participants", type=str, help="Comma-separated addresses")
    p_an.add_argument("--channel-id", type=str, help="Read participants on-chain")
    p_an.add_argument("--chain-id", type=int, default=GlobalConstants.DEFAULT_CHAIN_ID)
    p_an.add_argument("--decimals", type=int, default=GlobalConstants.DEFAULT_DECIMALS)
    p_an.add_argument("--token", type=str, default=GlobalConstants.DEFAULT_TOKEN_SYMBOL)
    _add_output_args(p_an)
    p_an.set_defaults(func=cmd_analyze)

    # submission
    p_sb = sub.add_parser("submission", help="Format verified proofs for submission")
    p_sb.add_argument("--channel-id", type=str, required=True)
    p_sb.add_argument("--zip", type=str, nargs="+", required=True, help="Oldest first")
    _add_output_args(p_sb)
    p_sb.set_defaults(func=cmd_submission)

    # history
    p_hi = sub.add_parser("history", help="Participant transaction history")
    p_hi.add_argument("--channel-id", type=str, required=True)
    p_hi.add_argument("--participant", type=str, help="Participant address")
    p_hi.add_argument("--mpt-key", type=str)
    p_hi.add_argument("--initial-deposit", type=int, help="Initial deposit in wei")
    p_hi.add_argument("--chain-id", type=int, default=GlobalConstants.DEFAULT_CHAIN_ID)
    p_hi.add_argument("--archive-url", type=str)
    p_hi.add_argument("--local-dir", type=str, help="Directory of proof ZIPs")
    p_hi.add_argument("--watch", action="store_true", help="Poll for new proofs")
    p_hi.add_argument(
        "--interval", type=float, default=GlobalConstants.DEFAULT_POLL_INTERVAL
    )
    p_hi.add_argument("--token", type=str, default=GlobalConstants.DEFAULT_TOKEN_SYMBOL)
    _add_output_args(p_hi)
    p_hi.set_defaults(func=cmd_history)

    # channel-id
    p_ci = sub.add_parser("channel-id", help="Compute a channel id")
    p_ci.add_argument("--leader", type=str, required=True)
    p_ci.add_argument("--salt", type=str, required=True)
    p_ci.add_argument("--pre-allocated", type=int, help="Pre-allocated leaves (P)")
    p_ci.add_argument("--tokens", type=int, default=1, help="Selected tokens (S)")
    p_ci.set_defaults(func=cmd_channel_id)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except KeyboardInterrupt:
        console.print("[dim]Interrupted[/dim]")
    except Exception as e:
        handle_command_error(e)


if __name__ == "__main__":
    main()
