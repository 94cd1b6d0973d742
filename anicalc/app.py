"""Whole-genome average nucleotide identity between query and reference genomes."""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Sequence
from typing import Optional

from anicalc.cli import UsageError, parse_arguments
from anicalc.mapper import Mapper
from anicalc.results import (
    CgiResult,
    compute_cgi,
    compute_genome_lengths,
    correct_ref_genome_ids,
    split_reference_genomes,
    write_cgi,
    write_phylip,
)
from anicalc.sketch import Sketch
from anicalc.types import MappingResult, Parameters

logger = logging.getLogger(__name__)


def _process_split(
    parameters: Parameters, max_ratio_diff: float, file_name: str
) -> tuple[list[CgiResult], bool, float]:
    """Sketch one share of the references and map every query genome onto it."""
    started = time.perf_counter()
    sketch = Sketch(parameters)
    logger.info("time spent sketching the reference : %g sec", time.perf_counter() - started)

    passed = sketch.sanity_check(max_ratio_diff)
    results: list[CgiResult] = []
    if passed:
        for query_index in range(len(parameters.query_sequences)):
            started = time.perf_counter()
            mappings: list[MappingResult] = []
            logger.info("start map %d", query_index + 1)
            mapper = Mapper(parameters, sketch, query_index, mappings.append)
            logger.info(
                "time spent mapping fragments in query #%d : %g sec",
                query_index + 1,
                time.perf_counter() - started,
            )

            started = time.perf_counter()
            results.extend(
                compute_cgi(
                    parameters,
                    mappings,
                    mapper,
                    sketch,
                    mapper.total_query_fragments,
                    query_index,
                    file_name,
                )
            )
            logger.info("time spent post mapping : %g sec", time.perf_counter() - started)
    return results, passed, sketch.ratio_difference


def core_genome_identity(argv: Optional[Sequence[str]] = None) -> list[CgiResult]:
    """Run the whole computation for a command line and write its reports.

    Returns every identity estimate, before the shared-fraction filter.
    """
    parameters = parse_arguments(argv)
    file_name = parameters.out_file_name
    threads = parameters.threads

    # Mapping-level output is not wanted; the file name is kept for the reports.
    splits = split_reference_genomes(parameters.copy_with(out_file_name=""), threads)

    if parameters.visualize and threads > 1:
        open(file_name + ".visual", "w").close()

    final_results: list[CgiResult] = []
    failed: list[tuple[int, float]] = []
    for split_id, split in enumerate(splits):
        local, passed, ratio = _process_split(split, parameters.max_ratio_diff, file_name)
        if not passed:
            failed.append((split_id, ratio))
        final_results.extend(correct_ref_genome_ids(local, split_id, threads))
    logger.info("execution over all reference splits finished")

    for split_id, ratio in failed:
        logger.error(
            "SPLIT %d's ratio difference %g exceeds maximum thresholds.", split_id, ratio
        )

    if not file_name:
        logger.warning("no output file given; nothing is written")
        return final_results

    genome_lengths = compute_genome_lengths(parameters)
    write_cgi(parameters, genome_lengths, final_results, file_name)
    if parameters.matrix_output:
        write_phylip(parameters, genome_lengths, final_results, file_name)
    return final_results


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command entry point; returns the process exit status."""
    logging.basicConfig(
        level=logging.INFO, format="%(levelname)s, %(name)s, %(message)s", stream=sys.stderr
    )
    if argv is None:
        argv = sys.argv[1:]
    try:
        core_genome_identity(argv)
    except UsageError as exc:
        print(f"ERROR, {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())