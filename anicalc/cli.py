"""Command-line parsing into run parameters."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from typing import NoReturn, Optional

from anicalc.stats import recommended_window_size
from anicalc.types import Parameters

VERSION_TEXT = "version 1.33"

_DESCRIPTION = (
    "Fast alignment-free computation of whole-genome Average Nucleotide "
    "Identity (ANI) between genomes.\n"
    "Example usage:\n"
    "  %(prog)s -q genome1.fa -r genome2.fa -o output.txt\n"
    "  %(prog)s -q genome1.fa --rl genome_list.txt -o output.txt"
)


class UsageError(Exception):
    """Raised when the command line or the files it names cannot be used."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    defaults = Parameters()
    parser = _Parser(
        prog="anicalc",
        description=_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument("-r", "--ref", metavar="value", default="",
                        help="reference genome (fasta/fastq)[.gz]")
    parser.add_argument("--rl", "--refList", dest="ref_list", metavar="value", default="",
                        help="a file containing list of reference genome files, one genome per line")
    parser.add_argument("-q", "--query", metavar="value", default="",
                        help="query genome (fasta/fastq)[.gz]")
    parser.add_argument("--ql", "--queryList", dest="query_list", metavar="value", default="",
                        help="a file containing list of query genome files, one genome per line")
    parser.add_argument("-k", "--kmer", type=int, metavar="value", default=defaults.kmer_size,
                        help="kmer size <= 16 [default : 16]")
    parser.add_argument("-t", "--threads", type=int, metavar="value", default=defaults.threads,
                        help="thread count for parallel execution [default : 1]")
    parser.add_argument("--fragLen", dest="frag_len", type=int, metavar="value",
                        default=defaults.min_read_length,
                        help="fragment length [default : 3,000]")
    parser.add_argument("--minFraction", dest="min_fraction", type=float, metavar="value",
                        default=defaults.min_fraction,
                        help="minimum fraction of genome that must be shared for trusting ANI; "
                             "the smaller of the two genomes is considered [default : 0.2]")
    parser.add_argument("--maxRatioDiff", dest="max_ratio_diff", type=float, metavar="value",
                        default=defaults.max_ratio_diff,
                        help="maximum difference between (Total Ref. Length/Total Occ. Hashes) "
                             "and (Total Ref. Length/Total No. Hashes) [default : 100.0]")
    parser.add_argument("--visualize", action="store_true",
                        help="output mappings for visualization [disabled by default]")
    parser.add_argument("--matrix", action="store_true",
                        help="also output ANI values as lower triangular matrix, "
                             "written with a .matrix extension [disabled by default]")
    parser.add_argument("-o", "--output", metavar="value", default="",
                        help="output file name")
    parser.add_argument("-s", "--sanityCheck", dest="sanity_check", action="store_true",
                        help="run sanity check")
    parser.add_argument("-v", "--version", action="store_true", help="show version")
    return parser


def parse_file_list(path: str) -> list[str]:
    """Read a list of file names, one per line, trimmed, skipping blank lines."""
    try:
        with open(path) as handle:
            lines = handle.read().splitlines()
    except OSError as exc:
        raise UsageError(f"could not open {path}") from exc
    return [name for line in lines if (name := line.strip())]


def validate_input_files(query_sequences: Sequence[str], ref_sequences: Sequence[str]) -> None:
    """Check that both lists are non-empty and every file can be opened."""
    if not query_sequences or not ref_sequences:
        raise UsageError("count of query and ref genomes should be non-zero")
    for path in [*query_sequences, *ref_sequences]:
        try:
            with open(path, "rb"):
                pass
        except OSError as exc:
            raise UsageError(f"could not open {path}") from exc


def _print_options(parameters: Parameters) -> None:
    def listing(items: list[str]) -> str:
        return "[" + ", ".join(items) + "]"

    rule = ">" * 18
    lines = [
        rule,
        f"Reference = {listing(parameters.ref_sequences)}",
        f"Query = {listing(parameters.query_sequences)}",
        f"Kmer size = {parameters.kmer_size}",
        f"Fragment length = {parameters.min_read_length}",
        f"Threads = {parameters.threads}",
        f"ANI output file = {parameters.out_file_name}",
        f"Sanity Check  = {int(parameters.sanity_check)}",
        rule,
    ]
    print("\n".join(lines), file=sys.stderr)


def parse_arguments(argv: Optional[Sequence[str]] = None) -> Parameters:
    """Parse command-line arguments into validated parameters.

    Raises UsageError on bad input; ``-h`` and ``-v`` print and exit with status 0.
    """
    args = _build_parser().parse_args(argv)

    if args.version:
        sys.stderr.write(VERSION_TEXT + "\n\n")
        raise SystemExit(0)
    if not args.ref and not args.ref_list:
        raise UsageError("Provide reference file (s)")
    if not args.query and not args.query_list:
        raise UsageError("Provide query file (s)")

    ref_sequences = [args.ref] if args.ref else parse_file_list(args.ref_list)
    query_sequences = [args.query] if args.query else parse_file_list(args.query_list)

    if not 0.0 <= args.min_fraction <= 1.0:
        raise UsageError("minimum fraction must lie in [0, 1]")
    if args.threads < 1:
        raise UsageError("thread count must be at least 1")
    if args.kmer < 1:
        raise UsageError("kmer size must be positive")
    if args.frag_len < 1:
        raise UsageError("fragment length must be positive")

    parameters = Parameters(
        kmer_size=args.kmer,
        min_read_length=args.frag_len,
        min_fraction=args.min_fraction,
        threads=args.threads,
        max_ratio_diff=args.max_ratio_diff,
        ref_sequences=ref_sequences,
        query_sequences=query_sequences,
        out_file_name=args.output,
        visualize=args.visualize,
        matrix_output=args.matrix,
        sanity_check=args.sanity_check,
    )
    try:
        parameters.window_size = recommended_window_size(
            parameters.p_value,
            parameters.kmer_size,
            parameters.alphabet_size,
            parameters.percentage_identity,
            parameters.min_read_length,
            parameters.reference_size,
        )
    except ValueError as exc:
        raise UsageError(str(exc)) from exc

    _print_options(parameters)
    validate_input_files(parameters.query_sequences, parameters.ref_sequences)
    return parameters