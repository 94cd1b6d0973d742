import pytest

from anicalc.types import (
    ContigInfo,
    MappingResult,
    MinimizerInfo,
    MinimizerMetaData,
    Parameters,
)


def test_minimizer_ordering_is_lexicographic():
    items = [
        MinimizerInfo(5, 1, 3),
        MinimizerInfo(5, 0, 9),
        MinimizerInfo(2, 7, 7),
        MinimizerInfo(5, 0, 2),
    ]
    assert sorted(items) == [
        MinimizerInfo(2, 7, 7),
        MinimizerInfo(5, 0, 2),
        MinimizerInfo(5, 0, 9),
        MinimizerInfo(5, 1, 3),
    ]


def test_minimizer_equality_uses_all_fields():
    assert MinimizerInfo(1, 2, 3) == MinimizerInfo(1, 2, 3)
    assert MinimizerInfo(1, 2, 3) != MinimizerInfo(1, 2, 4)


def test_minimizer_window_is_mutable_and_keyed():
    m = MinimizerInfo(10, 4, -1)
    m.wpos = 17
    assert m.position_key() == (4, 17)


def test_metadata_orders_by_sequence_then_window():
    hits = [MinimizerMetaData(1, 0), MinimizerMetaData(0, 50), MinimizerMetaData(0, 3)]
    assert sorted(hits) == [
        MinimizerMetaData(0, 3),
        MinimizerMetaData(0, 50),
        MinimizerMetaData(1, 0),
    ]


def test_contig_info_is_frozen():
    contig = ContigInfo("chr1", 1000)
    with pytest.raises(AttributeError):
        contig.length = 5
    assert contig == ContigInfo("chr1", 1000)


def test_mapping_result_compares_by_value():
    a = MappingResult(3000, 10, 3009, 0, 2999, 1, 2, 99.5, 99.8, 100, 95)
    b = MappingResult(3000, 10, 3009, 0, 2999, 1, 2, 99.5, 99.8, 100, 95)
    assert a == b
    b.nuc_identity = 98.0
    assert a != b


def test_parameters_defaults_follow_command_line_defaults():
    p = Parameters()
    assert (p.kmer_size, p.min_read_length, p.threads, p.alphabet_size) == (16, 3000, 1, 4)
    assert p.min_fraction == pytest.approx(0.2)
    assert p.report_all is True
    assert p.ref_sequences == [] and p.query_sequences == []


def test_copy_with_overrides_and_does_not_share_lists():
    p = Parameters(ref_sequences=["a.fa", "b.fa"], query_sequences=["q.fa"])
    q = p.copy_with(threads=2)
    assert q.threads == 2
    assert p.threads == 1
    q.ref_sequences.clear()
    assert p.ref_sequences == ["a.fa", "b.fa"]
    assert q.query_sequences == ["q.fa"]


def test_copy_with_replaces_list_fields():
    p = Parameters(ref_sequences=["a.fa", "b.fa"])
    q = p.copy_with(ref_sequences=["b.fa"])
    assert q.ref_sequences == ["b.fa"]
    assert p.ref_sequences == ["a.fa", "b.fa"]


def test_copy_with_rejects_unknown_field():
    with pytest.raises(TypeError):
        Parameters().copy_with(no_such_field=1)