import random

import pytest

from anicalc.mapper import L1Candidate, Mapper
from anicalc.sketch import Sketch
from anicalc.types import Parameters

FRAG = 1000


def _random_dna(length, seed):
    rng = random.Random(seed)
    return "".join(rng.choice("ACGT") for _ in range(length))


def _revcomp(seq):
    return seq.translate(str.maketrans("ACGT", "TGCA"))[::-1]


def _write(path, name, seq):
    path.write_text(f">{name}\n" + "\n".join(seq[i : i + 70] for i in range(0, len(seq), 70)) + "\n")
    return str(path)


@pytest.fixture(scope="module")
def genome():
    return _random_dna(3000, 7)


def _params(tmp_path, ref, query, **kwargs):
    base = dict(
        kmer_size=16,
        window_size=50,
        min_read_length=FRAG,
        ref_sequences=[ref],
        query_sequences=[query],
    )
    base.update(kwargs)
    return Parameters(**base)


def _run(params, query_index=0):
    sketch = Sketch(params)
    found = []
    mapper = Mapper(params, sketch, query_index, found.append)
    return mapper, found


def test_identical_query_maps_every_fragment(tmp_path, genome):
    ref = _write(tmp_path / "ref.fa", "chr", genome)
    qry = _write(tmp_path / "qry.fa", "q", genome)
    mapper, found = _run(_params(tmp_path, ref, qry))
    assert mapper.total_query_fragments == 3
    assert {m.query_seq_id for m in found} == {0, 1, 2}
    for m in found:
        assert m.ref_seq_id == 0
        assert m.query_len == FRAG
        assert m.ref_end_pos - m.ref_start_pos == FRAG - 1
        assert m.query_start_pos == 0 and m.query_end_pos == FRAG - 1
        assert m.conserved_sketches <= m.sketch_size
        assert 95.0 < m.nuc_identity <= 100.0
        assert m.nuc_identity_upper_bound >= m.nuc_identity


def test_identical_query_positions_are_close(tmp_path, genome):
    ref = _write(tmp_path / "ref.fa", "chr", genome)
    qry = _write(tmp_path / "qry.fa", "q", genome)
    _, found = _run(_params(tmp_path, ref, qry))
    best = {}
    for m in found:
        if m.query_seq_id not in best or m.nuc_identity > best[m.query_seq_id].nuc_identity:
            best[m.query_seq_id] = m
    for qid, m in best.items():
        assert abs(m.ref_start_pos - qid * FRAG) <= 200


def test_unrelated_query_has_no_mappings(tmp_path, genome):
    ref = _write(tmp_path / "ref.fa", "chr", genome)
    qry = _write(tmp_path / "qry.fa", "q", _random_dna(3000, 99))
    mapper, found = _run(_params(tmp_path, ref, qry))
    assert found == []
    assert mapper.total_query_fragments == 3


def test_reverse_complement_query_maps(tmp_path, genome):
    ref = _write(tmp_path / "ref.fa", "chr", genome)
    qry = _write(tmp_path / "qry.fa", "q", _revcomp(genome))
    _, found = _run(_params(tmp_path, ref, qry))
    assert any(m.nuc_identity > 95.0 for m in found)


def test_short_query_is_skipped_but_recorded(tmp_path, genome):
    ref = _write(tmp_path / "ref.fa", "chr", genome)
    qry = _write(tmp_path / "qry.fa", "short", genome[:500])
    mapper, found = _run(_params(tmp_path, ref, qry, visualize=True))
    assert found == []
    assert mapper.total_query_fragments == 0
    assert [(c.name, c.length) for c in mapper.metadata] == [("short", 500)]


def test_visual_metadata_covers_whole_contig(tmp_path, genome):
    ref = _write(tmp_path / "ref.fa", "chr", genome)
    qry = _write(tmp_path / "qry.fa", "q", genome + genome[:500])
    mapper, _ = _run(_params(tmp_path, ref, qry, visualize=True))
    assert mapper.total_query_fragments == 3
    assert [c.length for c in mapper.metadata] == [FRAG, FRAG, FRAG + 500]
    assert sum(c.length for c in mapper.metadata) == 3500


def test_output_file_lines_match_results(tmp_path, genome):
    ref = _write(tmp_path / "ref.fa", "chr", genome)
    qry = _write(tmp_path / "qry.fa", "q", genome)
    out = tmp_path / "map.out"
    _, found = _run(_params(tmp_path, ref, qry, out_file_name=str(out)))
    lines = out.read_text().splitlines()
    assert len(lines) == len(found) > 0
    for line, m in zip(lines, found):
        fields = line.split(" ")
        assert len(fields) == 13
        assert fields[4] == "+/-"
        assert fields[5] == "chr"
        assert int(fields[6]) == len(genome)
        assert int(fields[0]) == m.query_seq_id
        assert int(fields[7]) == m.ref_start_pos


def test_report_best_only_keeps_top_percent(tmp_path, genome):
    ref = _write(tmp_path / "ref.fa", "chr", genome + _random_dna(1000, 3) + genome)
    qry = _write(tmp_path / "qry.fa", "q", genome)
    _, found = _run(_params(tmp_path, ref, qry, report_all=False))
    assert found
    by_query = {}
    for m in found:
        by_query.setdefault(m.query_seq_id, []).append(m.nuc_identity)
    for values in by_query.values():
        assert max(values) - min(values) <= 1.0


def test_l1_candidates_merge_overlapping_regions():
    from anicalc.mapper import _Query
    from anicalc.types import MinimizerMetaData

    query = _Query("A" * 100, 0)
    hits = [MinimizerMetaData(0, p) for p in (10, 20, 30, 500)] + [MinimizerMetaData(1, 5)]
    candidates = Mapper._l1_candidates(query, hits, 2)
    assert candidates == [L1Candidate(0, 0, 20)]


def test_l1_candidates_with_single_hit_threshold():
    from anicalc.mapper import _Query
    from anicalc.types import MinimizerMetaData

    query = _Query("A" * 100, 0)
    hits = [MinimizerMetaData(1, 400), MinimizerMetaData(0, 50)]
    candidates = Mapper._l1_candidates(query, hits, 0)
    assert candidates == [L1Candidate(0, 0, 50), L1Candidate(1, 301, 400)]


def test_missing_query_file_raises(tmp_path, genome):
    ref = _write(tmp_path / "ref.fa", "chr", genome)
    params = _params(tmp_path, ref, str(tmp_path / "absent.fa"))
    sketch = Sketch(params)
    with pytest.raises(FileNotFoundError):
        Mapper(params, sketch, 0)