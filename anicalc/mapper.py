"""L1 and L2 mapping of query fragments onto a reference sketch."""

from __future__ import annotations

import struct
from collections.abc import Callable
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import IO, Optional

from anicalc.fasta import read_sequences
from anicalc.sequtil import add_minimizers
from anicalc.sketch import Sketch
from anicalc.sliding_map import SlideMapper
from anicalc.stats import estimate_minimum_hits_relaxed, j2md, md_lower_bound
from anicalc.types import ContigInfo, MappingResult, MinimizerInfo, MinimizerMetaData, Parameters
from anicalc.window_iter import SuperWindowIterator

_F32 = struct.Struct("f")

ResultCallback = Callable[[MappingResult], None]


def _f32(value: float) -> float:
    return _F32.unpack(_F32.pack(value))[0]


@dataclass
class L1Candidate:
    """Reference region where a fragment may begin: ``[range_start, range_end]``."""

    seq_id: int
    range_start: int
    range_end: int


@dataclass
class L2Locus:
    """Best mapping found inside an L1 candidate."""

    seq_id: int = 0
    mean_optimal_pos: int = 0
    optimal_start: int = 0
    optimal_end: int = 0
    shared_sketch_size: int = 0


@dataclass
class _Query:
    fragment: str
    seq_counter: int
    minimizers: list[MinimizerInfo] = field(default_factory=list)
    sketch_size: int = 0


class Mapper:
    """Maps every fragment of one query genome onto a reference sketch.

    The query is ``parameters.query_sequences[query_index]``.  Each reported
    mapping is written to ``parameters.out_file_name`` (when set) and passed to
    ``on_result``.  After construction ``total_query_fragments`` holds the
    number of fragments considered, and ``metadata`` the per-fragment lengths
    when visualisation is enabled.
    """

    def __init__(
        self,
        parameters: Parameters,
        ref_sketch: Sketch,
        query_index: int,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        self.parameters = parameters
        self.ref_sketch = ref_sketch
        self.on_result = on_result
        self.metadata: list[ContigInfo] = []
        self.total_query_fragments = 0
        self._map_query(parameters.query_sequences[query_index])

    def _map_query(self, query_file: str) -> None:
        params = self.parameters
        frag_len = params.min_read_length
        seq_counter = 0
        sink = open(params.out_file_name, "w") if params.out_file_name else nullcontext(None)
        with sink as out:
            for record in read_sequences(query_file):
                length = len(record)
                if length < params.window_size or length < params.kmer_size or length < frag_len:
                    fragment_count = 0
                    if params.visualize:
                        self.metadata.append(ContigInfo(record.name, length))
                else:
                    fragment_count = length // frag_len
                    for i in range(fragment_count):
                        if params.visualize:
                            covered = frag_len if i != fragment_count - 1 else frag_len + length % frag_len
                            self.metadata.append(ContigInfo(record.name, covered))
                        query = _Query(
                            record.sequence[i * frag_len : (i + 1) * frag_len],
                            seq_counter + i,
                        )
                        self._report(self._map_single(query), out)
                seq_counter += fragment_count
                self.total_query_fragments += fragment_count

    def _map_single(self, query: _Query) -> list[MappingResult]:
        candidates = self._l1_mapping(query)
        return self._l2_mapping(query, candidates)

    def _l1_mapping(self, query: _Query) -> list[L1Candidate]:
        params = self.parameters
        add_minimizers(
            query.minimizers,
            query.fragment,
            params.kmer_size,
            params.window_size,
            params.alphabet_size,
        )
        query.minimizers.sort(key=lambda m: m.hash)
        unique: list[MinimizerInfo] = []
        for m in query.minimizers:
            if not unique or unique[-1].hash != m.hash:
                unique.append(m)
        query.minimizers = unique
        query.sketch_size = len(unique)
        if query.sketch_size == 0:
            return []

        lookup = self.ref_sketch.minimizer_pos_lookup_index
        threshold = self.ref_sketch.freq_threshold
        hits: list[MinimizerMetaData] = []
        for m in unique:
            positions = lookup.get(m.hash)
            if positions is not None and len(positions) < threshold:
                hits.extend(positions)

        minimum_hits = estimate_minimum_hits_relaxed(
            query.sketch_size, params.kmer_size, params.percentage_identity
        )
        return self._l1_candidates(query, hits, minimum_hits)

    @staticmethod
    def _l1_candidates(
        query: _Query, hits: list[MinimizerMetaData], minimum_hits: int
    ) -> list[L1Candidate]:
        minimum_hits = max(minimum_hits, 1)
        hits.sort()
        frag_len = len(query.fragment)
        candidates: list[L1Candidate] = []
        for first, last in zip(hits, hits[minimum_hits - 1 :]):
            if last.seq_id != first.seq_id or last.wpos - first.wpos >= frag_len:
                continue
            candidate = L1Candidate(first.seq_id, max(0, last.wpos - frag_len + 1), first.wpos)
            previous = candidates[-1] if candidates else None
            if (
                previous is not None
                and previous.seq_id == candidate.seq_id
                and previous.range_end >= candidate.range_start
            ):
                previous.range_end = max(candidate.range_end, previous.range_end)
            else:
                candidates.append(candidate)
        return candidates

    def _l2_mapping(self, query: _Query, candidates: list[L1Candidate]) -> list[MappingResult]:
        params = self.parameters
        frag_len = len(query.fragment)
        results: list[MappingResult] = []
        for candidate in candidates:
            locus = self._l2_region(query, candidate)
            mash_dist = j2md(1.0 * locus.shared_sketch_size / query.sketch_size, params.kmer_size)
            lower = md_lower_bound(mash_dist, query.sketch_size, params.kmer_size, 0.9)
            identity = _f32(100 * (1 - mash_dist))
            upper = _f32(100 * (1 - lower))
            if upper >= params.percentage_identity:
                results.append(
                    MappingResult(
                        query_len=frag_len,
                        ref_start_pos=locus.mean_optimal_pos,
                        ref_end_pos=locus.mean_optimal_pos + frag_len - 1,
                        query_start_pos=0,
                        query_end_pos=frag_len - 1,
                        ref_seq_id=locus.seq_id,
                        query_seq_id=query.seq_counter,
                        nuc_identity=identity,
                        nuc_identity_upper_bound=upper,
                        sketch_size=query.sketch_size,
                        conserved_sketches=locus.shared_sketch_size,
                    )
                )
        return results

    def _l2_region(self, query: _Query, candidate: L1Candidate) -> L2Locus:
        params = self.parameters
        sketch = self.ref_sketch
        index = sketch.minimizer_index
        frag_len = len(query.fragment)

        first_start = sketch.search_index(candidate.seq_id, candidate.range_start)
        count_windows = frag_len - (params.window_size - 1) - (params.kmer_size - 1)
        first_end = sketch.search_index(candidate.seq_id, index[first_start].wpos + count_windows)
        last_end = sketch.search_index(candidate.seq_id, candidate.range_end + frag_len)

        slide = SlideMapper(query.minimizers, query.sketch_size)
        window = SuperWindowIterator(index, first_start, first_end, count_windows)
        slide.insert_range(index[window.begin : window.end])

        locus = L2Locus()
        prev_begin, prev_end = window.begin, window.end
        begin_optimal = last_optimal = 0

        while last_end - window.end > 0:
            if prev_begin != window.begin:
                slide.delete_ref(index[prev_begin])
            if prev_end != window.end:
                slide.insert_ref(index[prev_end])

            shared = slide.shared_sketch_elements
            if shared > locus.shared_sketch_size:
                locus.shared_sketch_size = shared
                locus.optimal_start = window.begin
                locus.optimal_end = window.end
                begin_optimal = last_optimal = index[window.begin].wpos
            elif shared == locus.shared_sketch_size:
                last_optimal = index[window.begin].wpos

            prev_begin, prev_end = window.begin, window.end
            window.advance()

        locus.seq_id = candidate.seq_id
        locus.mean_optimal_pos = (begin_optimal + last_optimal) // 2
        return locus

    def _report(self, mappings: list[MappingResult], out: Optional[IO[str]]) -> None:
        best = 0.0
        for m in mappings:
            if m.nuc_identity > best:
                best = m.nuc_identity
        contigs = self.ref_sketch.metadata
        for m in mappings:
            if not (self.parameters.report_all or m.nuc_identity >= best - 1.0):
                continue
            if out is not None:
                contig = contigs[m.ref_seq_id]
                out.write(
                    f"{m.query_seq_id} {m.query_len} {m.query_start_pos} {m.query_end_pos} +/- "
                    f"{contig.name} {contig.length} {m.ref_start_pos} {m.ref_end_pos} "
                    f"{m.nuc_identity:g} {m.conserved_sketches} {m.sketch_size} "
                    f"{m.nuc_identity_upper_bound:g}\n"
                )
            if self.on_result is not None:
                self.on_result(m)