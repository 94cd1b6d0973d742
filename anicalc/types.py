"""Core record types and run parameters for sketching and mapping."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(order=True, slots=True)
class MinimizerInfo:
    """A minimizer: its hash, contig id and first window position."""

    hash: int
    seq_id: int
    wpos: int

    def position_key(self) -> tuple[int, int]:
        """Key used to locate the minimizer by (contig, window position)."""
        return (self.seq_id, self.wpos)


@dataclass(order=True, frozen=True, slots=True)
class MinimizerMetaData:
    """Position of a minimizer occurrence in the reference."""

    seq_id: int
    wpos: int


@dataclass(frozen=True, slots=True)
class ContigInfo:
    """Name and length of a sequence."""

    name: str
    length: int


@dataclass(slots=True)
class MappingResult:
    """A fragment mapping reported by the L2 stage."""

    query_len: int
    ref_start_pos: int
    ref_end_pos: int
    query_start_pos: int
    query_end_pos: int
    ref_seq_id: int
    query_seq_id: int
    nuc_identity: float
    nuc_identity_upper_bound: float
    sketch_size: int
    conserved_sketches: int


@dataclass
class Parameters:
    """Sketching and mapping settings, with the command-line defaults."""

    kmer_size: int = 16
    window_size: int = 0
    min_read_length: int = 3000
    min_fraction: float = 0.2
    threads: int = 1
    alphabet_size: int = 4
    reference_size: int = 5_000_000
    percentage_identity: float = 80.0
    p_value: float = 1e-03
    ref_sequences: list[str] = field(default_factory=list)
    query_sequences: list[str] = field(default_factory=list)
    out_file_name: str = ""
    report_all: bool = True
    visualize: bool = False
    matrix_output: bool = False
    max_ratio_diff: float = 100.0
    sanity_check: bool = False

    def copy_with(self, **kwargs: Any) -> "Parameters":
        """Return an independent copy with the given fields replaced."""
        changes: dict[str, Any] = {
            "ref_sequences": list(self.ref_sequences),
            "query_sequences": list(self.query_sequences),
        }
        changes.update(kwargs)
        return replace(self, **changes)