import pytest

from anicalc.cli import (
    UsageError,
    parse_arguments,
    parse_file_list,
    validate_input_files,
)


@pytest.fixture
def genomes(tmp_path):
    query = tmp_path / "query.fa"
    ref = tmp_path / "ref.fa"
    query.write_text(">q\nACGTACGTAC\n")
    ref.write_text(">r\nTTGACCAGTA\n")
    return str(query), str(ref)


def test_parse_file_list_trims_and_skips_blank(tmp_path):
    listing = tmp_path / "list.txt"
    listing.write_text("  a.fa  \n\n\tb.fa\n   \nc.fa")
    assert parse_file_list(str(listing)) == ["a.fa", "b.fa", "c.fa"]


def test_parse_file_list_missing_file(tmp_path):
    with pytest.raises(UsageError):
        parse_file_list(str(tmp_path / "absent.txt"))


def test_validate_input_files_requires_both(genomes):
    query, ref = genomes
    with pytest.raises(UsageError):
        validate_input_files([], [ref])
    with pytest.raises(UsageError):
        validate_input_files([query], [])


def test_validate_input_files_missing_file(genomes, tmp_path):
    query, _ = genomes
    with pytest.raises(UsageError):
        validate_input_files([query], [str(tmp_path / "absent.fa")])


def test_parse_arguments_defaults(genomes):
    query, ref = genomes
    params = parse_arguments(["-q", query, "-r", ref, "-o", "out.txt"])
    assert params.query_sequences == [query]
    assert params.ref_sequences == [ref]
    assert params.kmer_size == 16
    assert params.threads == 1
    assert params.min_read_length == 3000
    assert params.min_fraction == pytest.approx(0.2)
    assert params.report_all is True
    assert params.visualize is False
    assert params.matrix_output is False
    assert params.sanity_check is False
    assert params.out_file_name == "out.txt"
    assert 1 <= params.window_size <= params.min_read_length


def test_parse_arguments_lists(genomes, tmp_path):
    query, ref = genomes
    qlist = tmp_path / "q.txt"
    rlist = tmp_path / "r.txt"
    qlist.write_text(f"{query}\n\n{ref}\n")
    rlist.write_text(f" {ref} \n")
    params = parse_arguments(["--ql", str(qlist), "--rl", str(rlist), "-o", "x"])
    assert params.query_sequences == [query, ref]
    assert params.ref_sequences == [ref]


def test_parse_arguments_flags(genomes):
    query, ref = genomes
    params = parse_arguments(
        ["-q", query, "-r", ref, "-t", "2", "-k", "14", "--fragLen", "1000",
         "--minFraction", "0.5", "--maxRatioDiff", "10", "--visualize", "--matrix",
         "-s", "-o", "res.txt"]
    )
    assert params.threads == 2
    assert params.kmer_size == 14
    assert params.min_read_length == 1000
    assert params.min_fraction == pytest.approx(0.5)
    assert params.max_ratio_diff == pytest.approx(10.0)
    assert params.visualize and params.matrix_output and params.sanity_check
    assert 1 <= params.window_size <= 1000


def test_missing_reference(genomes):
    query, _ = genomes
    with pytest.raises(UsageError, match="reference"):
        parse_arguments(["-q", query, "-o", "x"])


def test_missing_query(genomes):
    _, ref = genomes
    with pytest.raises(UsageError, match="query"):
        parse_arguments(["-r", ref, "-o", "x"])


def test_unknown_option(genomes):
    query, ref = genomes
    with pytest.raises(UsageError):
        parse_arguments(["-q", query, "-r", ref, "--bogus"])


def test_non_integer_kmer(genomes):
    query, ref = genomes
    with pytest.raises(UsageError):
        parse_arguments(["-q", query, "-r", ref, "-k", "abc"])


def test_bad_min_fraction(genomes):
    query, ref = genomes
    with pytest.raises(UsageError):
        parse_arguments(["-q", query, "-r", ref, "--minFraction", "1.5"])


def test_zero_threads(genomes):
    query, ref = genomes
    with pytest.raises(UsageError):
        parse_arguments(["-q", query, "-r", ref, "-t", "0"])


def test_missing_input_file(genomes, tmp_path):
    query, _ = genomes
    with pytest.raises(UsageError):
        parse_arguments(["-q", query, "-r", str(tmp_path / "none.fa")])


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        parse_arguments(["-v"])
    assert exc.value.code == 0
    assert "version 1.33" in capsys.readouterr().err


def test_help(capsys):
    with pytest.raises(SystemExit) as exc:
        parse_arguments(["-h"])
    assert exc.value.code == 0
    assert "--fragLen" in capsys.readouterr().out