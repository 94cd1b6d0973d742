import gzip
import io

import pytest

from anicalc.fasta import (
    SequenceFormatError,
    SequenceRecord,
    parse_sequences,
    read_sequences,
)


def _parse(text):
    return list(parse_sequences(io.StringIO(text)))


def test_multiline_fasta_with_comment_and_blank_lines():
    records = _parse(">seq1 first sequence\nACGT\nTT\n\n>seq2\nggcc\n")
    assert records == [
        SequenceRecord("seq1", "first sequence", "ACGTTT"),
        SequenceRecord("seq2", "", "ggcc"),
    ]
    assert records[0].quality is None
    assert len(records[0]) == 6


def test_windows_line_endings_are_stripped():
    records = _parse(">a x\r\nAC\r\nGT\r\n")
    assert records == [SequenceRecord("a", "x", "ACGT")]


def test_text_before_first_header_is_skipped():
    records = _parse("junk line\n>r1\nAAA\n")
    assert [r.name for r in records] == ["r1"]
    assert records[0].sequence == "AAA"


def test_last_line_without_newline():
    records = _parse(">r\nACG\nTA")
    assert records[0].sequence == "ACGTA"


def test_fastq_records():
    records = _parse("@r1 desc\nACGT\n+\nIIII\n@r2\nGG\n+r2\n!!\n")
    assert records == [
        SequenceRecord("r1", "desc", "ACGT", "IIII"),
        SequenceRecord("r2", "", "GG", "!!"),
    ]


def test_fastq_multiline_quality():
    records = _parse("@r\nACGT\n+\nII\nII\n")
    assert records[0].quality == "IIII"


def test_mixed_fastq_then_fasta():
    records = _parse("@q\nAC\n+\nII\n>f\nTTT\n")
    assert [(r.name, r.sequence, r.quality) for r in records] == [
        ("q", "AC", "II"),
        ("f", "TTT", None),
    ]


def test_truncated_quality_raises():
    with pytest.raises(SequenceFormatError):
        _parse("@r\nACGT\n+")


def test_short_quality_raises():
    with pytest.raises(SequenceFormatError):
        _parse("@r\nACGT\n+\nII\n")


def test_empty_input_yields_nothing():
    assert _parse("") == []
    assert _parse("no headers here\n") == []


def test_binary_stream_is_decoded():
    records = list(parse_sequences(io.BytesIO(b">b\nNNAC\n")))
    assert records == [SequenceRecord("b", "", "NNAC")]


def test_read_plain_and_gzip_files_agree(tmp_path):
    text = b">c1 one\nACGTACGT\n>c2\nTTTT\n"
    plain = tmp_path / "genome.fa"
    plain.write_bytes(text)
    packed = tmp_path / "genome.fa.gz"
    packed.write_bytes(gzip.compress(text))
    from_plain = list(read_sequences(plain))
    from_gzip = list(read_sequences(str(packed)))
    assert from_plain == from_gzip
    assert [r.sequence for r in from_plain] == ["ACGTACGT", "TTTT"]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(read_sequences(tmp_path / "absent.fa"))