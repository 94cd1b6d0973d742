"""Sequence helpers: reverse complement, k-mer hashing and minimizer sampling."""

from __future__ import annotations

import os
import string
from collections import deque
from collections.abc import Iterable, MutableSequence
from typing import Union

from anicalc.murmur import murmurhash3_x64_128
from anicalc.types import MinimizerInfo

SEED = 42
HASH_MAX = 0xFFFFFFFF

_COMPLEMENT = str.maketrans("ACGT", "TGCA")
_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)


def reverse_complement(seq: str) -> str:
    """Reverse complement of upper-case nucleotides; other symbols are kept."""
    return seq.translate(_COMPLEMENT)[::-1]


def make_upper_case(seq: str) -> str:
    """Upper-case ASCII letters only, leaving every other character unchanged."""
    return seq.translate(_UPPER)


def get_hash(kmer: Union[str, bytes]) -> int:
    """32-bit hash of a k-mer: the low word of MurmurHash3 x64-128 with seed 42."""
    if isinstance(kmer, str):
        kmer = kmer.encode("latin-1")
    return murmurhash3_x64_128(kmer, SEED)[0] & HASH_MAX


def add_minimizers(
    index: MutableSequence[MinimizerInfo],
    sequence: str,
    kmer_size: int,
    window_size: int,
    alphabet_size: int,
    seq_counter: int = 0,
) -> None:
    """Append the winnowed minimizers of ``sequence`` to ``index``.

    Each minimizer is recorded once, with the first window in which it is the
    minimum. For nucleotides the canonical (strand-independent) hash is used,
    and k-mers equal to their own reverse complement are skipped.
    """
    seq = make_upper_case(sequence)
    length = len(seq)
    nucleotide = alphabet_size == 4
    forward = seq.encode("latin-1")
    backward = reverse_complement(seq).encode("latin-1") if nucleotide else b""

    window: deque[tuple[MinimizerInfo, int]] = deque()

    for i in range(length - kmer_size + 1):
        window_id = i - window_size + 1
        hash_fwd = get_hash(forward[i : i + kmer_size])
        if nucleotide:
            start = length - i - kmer_size
            hash_bwd = get_hash(backward[start : start + kmer_size])
        else:
            hash_bwd = HASH_MAX

        if hash_bwd == hash_fwd:
            continue

        current = min(hash_fwd, hash_bwd)

        while window and window[0][1] <= i - window_size:
            window.popleft()
        while window and window[-1][0].hash >= current:
            window.pop()
        window.append((MinimizerInfo(current, seq_counter, -1), i))

        if window_id >= 0:
            front = window[0][0]
            if not index or index[-1] != front:
                front.wpos = window_id
                index.append(MinimizerInfo(front.hash, front.seq_id, front.wpos))


def reference_size(paths: Iterable[Union[str, os.PathLike]]) -> int:
    """Total size in bytes of the given files."""
    return sum(os.path.getsize(path) for path in paths)