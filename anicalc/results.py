"""Average nucleotide identity from fragment mappings, and its reports."""

from __future__ import annotations

import struct
from bisect import bisect_right
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from itertools import accumulate, groupby
from typing import Any

from anicalc.fasta import read_sequences
from anicalc.types import ContigInfo, MappingResult, Parameters

_F32 = struct.Struct("f")

# Fragments are binned on the reference in steps of this much less than their length.
_BIN_SHRINK = 20


def _f32(value: float) -> float:
    return _F32.unpack(_F32.pack(value))[0]


@dataclass(frozen=True)
class CgiMapping:
    """The fields of a fragment mapping that the identity estimate needs."""

    ref_sequence_id: int
    genome_id: int
    query_seq_id: int
    ref_start_pos: int
    query_start_pos: int
    map_ref_pos_bin: int
    nuc_identity: float


@dataclass(frozen=True)
class CgiResult:
    """Identity of one query genome against one reference genome."""

    ref_genome_id: int
    qry_genome_id: int
    count_seq: int
    total_query_fragments: int
    identity: float


def _report_key(result: CgiResult) -> tuple[int, float]:
    """Report order: query genome ascending, then identity descending."""
    return (result.qry_genome_id, -result.identity)


def revise_ref_ids_to_genome_ids(
    mappings: Iterable[CgiMapping], sequences_by_file: Sequence[int]
) -> list[CgiMapping]:
    """Set each mapping's genome id from its reference contig id.

    ``sequences_by_file`` holds the running contig count after each file.
    """
    return [
        replace(m, genome_id=bisect_right(sequences_by_file, m.ref_sequence_id))
        for m in mappings
    ]


def _genome_length(path: str, fragment_length: int) -> int:
    return sum(
        (len(record) // fragment_length) * fragment_length
        for record in read_sequences(path)
        if len(record) >= fragment_length
    )


def compute_genome_lengths(parameters: Parameters) -> dict[str, int]:
    """Length of every query and reference genome, counted in whole fragments."""
    lengths: dict[str, int] = {}
    for path in [*parameters.query_sequences, *parameters.ref_sequences]:
        if path not in lengths:
            lengths[path] = _genome_length(path, parameters.min_read_length)
    return lengths


def write_visualization(
    parameters: Parameters,
    mappings: Iterable[CgiMapping],
    query_metadata: Sequence[ContigInfo],
    ref_metadata: Sequence[ContigInfo],
    query_index: int,
    path: str,
) -> None:
    """Append the contributing mappings to ``path`` in BLAST tabular layout.

    Positions are shifted from contig-local to genome-global coordinates.
    """
    query_offsets = list(accumulate((c.length for c in query_metadata), initial=0))
    ref_offsets = list(accumulate((c.length for c in ref_metadata), initial=0))
    span = parameters.min_read_length - 1
    query_name = parameters.query_sequences[query_index]

    with open(path, "a") as out:
        for m in mappings:
            q_start = m.query_start_pos + query_offsets[m.query_seq_id]
            r_start = m.ref_start_pos + ref_offsets[m.ref_sequence_id]
            out.write(
                f"{query_name}\t{parameters.ref_sequences[m.genome_id]}\t"
                f"{m.nuc_identity:g}\tNA\tNA\tNA\t"
                f"{q_start}\t{q_start + span}\t{r_start}\t{r_start + span}\tNA\tNA\n"
            )


def _keep_last(
    mappings: Iterable[CgiMapping], bucket: Any
) -> list[CgiMapping]:
    """Last mapping of every run of consecutive mappings sharing a bucket."""
    return [list(group)[-1] for _, group in groupby(mappings, key=bucket)]


def compute_cgi(
    parameters: Parameters,
    results: Iterable[MappingResult],
    mapper: Any,
    ref_sketch: Any,
    total_query_fragments: int,
    query_index: int,
    file_name: str,
) -> list[CgiResult]:
    """Identity of one query genome against each reference genome it maps to.

    Keeps, per genome and query fragment, the best mapping; then, per
    reference bin, the best of those; and averages identities per genome.
    """
    bin_size = parameters.min_read_length - _BIN_SHRINK
    short = [
        CgiMapping(
            ref_sequence_id=r.ref_seq_id,
            genome_id=0,
            query_seq_id=r.query_seq_id,
            ref_start_pos=r.ref_start_pos,
            query_start_pos=r.query_start_pos,
            map_ref_pos_bin=int(r.ref_start_pos / bin_size),
            nuc_identity=r.nuc_identity,
        )
        for r in results
    ]
    short = revise_ref_ids_to_genome_ids(short, ref_sketch.sequences_by_file)

    short.sort(
        key=lambda m: (
            m.genome_id,
            m.query_seq_id,
            m.nuc_identity,
            m.ref_sequence_id,
            m.ref_start_pos,
        )
    )
    one_way = _keep_last(short, lambda m: (m.genome_id, m.query_seq_id))

    one_way.sort(key=lambda m: (m.ref_sequence_id, m.map_ref_pos_bin, m.nuc_identity))
    two_way = _keep_last(one_way, lambda m: (m.ref_sequence_id, m.map_ref_pos_bin))

    if parameters.visualize:
        write_visualization(
            parameters,
            two_way,
            mapper.metadata,
            ref_sketch.metadata,
            query_index,
            file_name + ".visual",
        )

    estimates: list[CgiResult] = []
    for genome_id, group in groupby(two_way, key=lambda m: m.genome_id):
        members = list(group)
        total = 0.0
        for m in members:
            total = _f32(total + m.nuc_identity)
        estimates.append(
            CgiResult(
                ref_genome_id=genome_id,
                qry_genome_id=query_index,
                count_seq=len(members),
                total_query_fragments=total_query_fragments,
                identity=_f32(total / len(members)),
            )
        )
    return estimates


def _shared_enough(
    parameters: Parameters,
    genome_lengths: Mapping[str, int],
    result: CgiResult,
    query: str,
    ref: str,
) -> bool:
    """Whether the shared length reaches the minimum fraction of the smaller genome."""
    min_length = min(genome_lengths[query], genome_lengths[ref])
    shared = result.count_seq * parameters.min_read_length
    threshold = _f32(_f32(min_length) * _f32(parameters.min_fraction))
    return _f32(shared) >= threshold


def write_cgi(
    parameters: Parameters,
    genome_lengths: Mapping[str, int],
    results: Iterable[CgiResult],
    file_name: str,
) -> None:
    """Write the identity table, ordered by query and descending identity."""
    with open(file_name, "w") as out:
        for e in sorted(results, key=_report_key):
            query = parameters.query_sequences[e.qry_genome_id]
            ref = parameters.ref_sequences[e.ref_genome_id]
            if _shared_enough(parameters, genome_lengths, e, query, ref):
                out.write(
                    f"{query}\t{ref}\t{e.identity:g}\t{e.count_seq}\t"
                    f"{e.total_query_fragments}\n"
                )


def write_phylip(
    parameters: Parameters,
    genome_lengths: Mapping[str, int],
    results: Iterable[CgiResult],
    file_name: str,
) -> None:
    """Write identities as a lower triangular matrix to ``file_name + '.matrix'``.

    Values computed in both directions are averaged; missing ones read NA.
    """
    genome_ids: dict[str, int] = {}
    for path in [*parameters.query_sequences, *parameters.ref_sequences]:
        genome_ids.setdefault(path, len(genome_ids))
    names = list(genome_ids)
    matrix = [[0.0] * len(names) for _ in names]

    for e in results:
        query = parameters.query_sequences[e.qry_genome_id]
        ref = parameters.ref_sequences[e.ref_genome_id]
        if not _shared_enough(parameters, genome_lengths, e, query, ref):
            continue
        q_id, r_id = genome_ids[query], genome_ids[ref]
        if q_id == r_id:
            continue
        row, col = max(q_id, r_id), min(q_id, r_id)
        current = matrix[row][col]
        matrix[row][col] = _f32((current + e.identity) / 2) if current > 0 else e.identity

    with open(file_name + ".matrix", "w") as out:
        out.write(f"{len(names)}\n")
        for i, name in enumerate(names):
            values = "".join(
                f"\t{v:.6f}" if v > 0.0 else "\tNA" for v in matrix[i][:i]
            )
            out.write(f"{name}{values}\n")


def split_reference_genomes(parameters: Parameters, threads: int) -> list[Parameters]:
    """One copy of the parameters per worker, references dealt out round robin."""
    if threads < 1:
        raise ValueError("thread count must be at least 1")
    return [
        parameters.copy_with(ref_sequences=list(parameters.ref_sequences[i::threads]))
        for i in range(threads)
    ]


def correct_ref_genome_ids(
    results: Iterable[CgiResult], thread_id: int, thread_count: int
) -> list[CgiResult]:
    """Turn a worker's local reference genome ids into global ones."""
    return [
        replace(e, ref_genome_id=e.ref_genome_id * thread_count + thread_id)
        for e in results
    ]