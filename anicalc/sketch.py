"""Sketching and indexing of reference genomes."""

from __future__ import annotations

import logging
import math
from bisect import bisect_left
from collections import Counter

from anicalc.fasta import read_sequences
from anicalc.sequtil import add_minimizers
from anicalc.types import ContigInfo, MinimizerInfo, MinimizerMetaData, Parameters

logger = logging.getLogger(__name__)

INT_MAX = 2**31 - 1

# Share (in percent) of the most frequent minimizers ignored during lookups.
PERCENTAGE_THRESHOLD = 0.0


def _ratio(numerator: int, denominator: int) -> float:
    """Floating-point ratio that yields inf or nan instead of raising on zero."""
    if denominator:
        return numerator / denominator
    return math.nan if numerator == 0 else math.inf


class Sketch:
    """Winnowed minimizer sketch of the reference genomes, with lookup indexes.

    ``minimizer_index`` lists minimizers in reference order, which is also
    ascending (contig id, window position) order.  ``sequences_by_file`` holds,
    for each reference file, the running count of contigs read so far.
    """

    def __init__(self, parameters: Parameters) -> None:
        self.parameters = parameters
        self.metadata: list[ContigInfo] = []
        self.sequences_by_file: list[int] = []
        self.minimizer_index: list[MinimizerInfo] = []
        self.minimizer_pos_lookup_index: dict[int, list[MinimizerMetaData]] = {}
        self.frequency_histogram: dict[int, int] = {}
        self.freq_threshold = INT_MAX
        self.hash_ratio = 0.0
        self.uniq_hash_ratio = 0.0
        self.ratio_difference = 0.0

        self._build()
        self._index()
        self._compute_freq_hist()

    def _build(self) -> None:
        params = self.parameters
        logger.info("window size for minimizer sampling = %d", params.window_size)
        seq_counter = 0
        for file_name in params.ref_sequences:
            for record in read_sequences(file_name):
                length = len(record)
                self.metadata.append(ContigInfo(record.name, length))
                if length >= params.window_size and length >= params.kmer_size:
                    add_minimizers(
                        self.minimizer_index,
                        record.sequence,
                        params.kmer_size,
                        params.window_size,
                        params.alphabet_size,
                        seq_counter,
                    )
                else:
                    logger.debug("skipping short sequence %s", record.name)
                seq_counter += 1
            self.sequences_by_file.append(seq_counter)
        logger.info("minimizers picked from reference = %d", len(self.minimizer_index))

    def _index(self) -> None:
        lookup = self.minimizer_pos_lookup_index
        for m in self.minimizer_index:
            lookup.setdefault(m.hash, []).append(MinimizerMetaData(m.seq_id, m.wpos))
        logger.info("unique minimizers = %d", len(lookup))

    def _compute_freq_hist(self) -> None:
        counts = Counter(len(v) for v in self.minimizer_pos_lookup_index.values())
        self.frequency_histogram = dict(sorted(counts.items()))
        if self.frequency_histogram:
            lowest = next(iter(self.frequency_histogram.items()))
            highest = next(reversed(self.frequency_histogram.items()))
            logger.info("frequency histogram of minimizers = %s ... %s", lowest, highest)

        to_ignore = int(len(self.minimizer_pos_lookup_index) * PERCENTAGE_THRESHOLD / 100)
        running = 0
        for freq, count in reversed(self.frequency_histogram.items()):
            running += count
            if running < to_ignore:
                self.freq_threshold = freq
            elif running == to_ignore:
                self.freq_threshold = freq
                break
            else:
                break

        if self.freq_threshold != INT_MAX:
            logger.info(
                "with threshold %s%%, ignore minimizers occurring >= %d times during lookup",
                PERCENTAGE_THRESHOLD,
                self.freq_threshold,
            )
        else:
            logger.info("consider all minimizers during lookup")

    def search_index(self, seq_id: int, winpos: int) -> int:
        """Index of the first minimizer at or after ``(seq_id, winpos)``."""
        return bisect_left(
            self.minimizer_index, (seq_id, winpos), key=MinimizerInfo.position_key
        )

    def sanity_check(self, max_ratio_diff: float) -> bool:
        """Flag highly repetitive references; always passes when checking is off."""
        if not self.parameters.sanity_check:
            return True
        total_size = sum(len(v) for v in self.minimizer_pos_lookup_index.values())
        total_length = sum(contig.length for contig in self.metadata)
        self.hash_ratio = _ratio(total_length, total_size)
        self.uniq_hash_ratio = _ratio(total_length, len(self.minimizer_pos_lookup_index))
        self.ratio_difference = abs(self.hash_ratio - self.uniq_hash_ratio)
        return not self.ratio_difference > max_ratio_diff