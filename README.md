# anicalc

`anicalc` estimates whole-genome Average Nucleotide Identity (ANI) between
microbial genomes without computing alignments. Each query genome is cut into
fixed-length fragments; every fragment is mapped onto the reference genomes
using winnowed minimizer sketches, and the identity of each mapping is
estimated from the Mash distance of the shared sketch. The ANI of a
query/reference pair is the mean identity over reciprocal best mappings.

Input genomes are FASTA or FASTQ files, plain or gzip-compressed, with one
genome per file.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Usage

Compare one query genome against one reference genome:

```
anicalc -q genome1.fa -r genome2.fa -o output.txt
```

Compare one query genome against a list of reference genomes (one file path per
line in `genome_list.txt`; lines are trimmed and blank lines skipped):

```
anicalc -q genome1.fa --rl genome_list.txt -o output.txt
```

Many-to-many comparisons combine `--ql` and `--rl`.

### Options

| Option | Meaning | Default |
| --- | --- | --- |
| `-q`, `--query` | query genome (fasta/fastq)[.gz] | |
| `--ql`, `--queryList` | file listing query genome files, one per line | |
| `-r`, `--ref` | reference genome (fasta/fastq)[.gz] | |
| `--rl`, `--refList` | file listing reference genome files, one per line | |
| `-o`, `--output` | output file name | |
| `-k`, `--kmer` | k-mer size (16 or less) | 16 |
| `-t`, `--threads` | number of splits the reference genomes are dealt into, round robin | 1 |
| `--fragLen` | fragment length | 3000 |
| `--minFraction` | minimum fraction of the smaller genome that must be shared for the ANI value to be reported; must lie in [0, 1] | 0.2 |
| `--maxRatioDiff` | maximum allowed difference between (total reference length / total hash occurrences) and (total reference length / distinct hashes) in the sanity check | 100.0 |
| `-s`, `--sanityCheck` | run the repeat sanity check on each reference split | off |
| `--visualize` | also write the mappings behind each estimate to `<output>.visual` | off |
| `--matrix` | also write a lower-triangular ANI matrix to `<output>.matrix` | off |
| `-v`, `--version` | print the version text and exit | |
| `-h`, `--help` | print the help page and exit | |

A reference or query must be given, and every named file must open; otherwise
the command prints `ERROR, ...` to standard error and exits with status 1.
The sketching window size is chosen from the fragment length and k-mer size so
that a random match reaches 80% identity with a p-value of at most 0.001.

When `--sanityCheck` is on, a reference split whose ratio difference exceeds
`--maxRatioDiff` is not mapped against; an error naming the split is logged
and its pairs are missing from the output. Progress is logged to standard
error.

### Output

The main output file has one tab-separated line per query/reference pair whose
shared length passes `--minFraction`:

```
query_genome  reference_genome  ANI  mapped_fragments  total_query_fragments
```

Lines are ordered by query genome, and within a query by decreasing ANI.
Without `-o` no files are written.

With `--matrix`, `<output>.matrix` holds the number of genomes on its first
line followed by a lower-triangular matrix in a PHYLIP-like layout; cells
without a value are `NA`, and pairs computed in both directions are averaged.

With `--visualize`, `<output>.visual` lists the fragment mappings in BLAST
tabular (outfmt 6) layout, with genome-wide coordinates, suitable for plotting
conserved regions between two genomes. Mappings are appended to the file; it is
emptied first only when `--threads` is greater than 1.

## Using it from Python

The command is also available as a function, which returns every estimate
(as `anicalc.results.CgiResult` objects) before the `--minFraction` filter:

```python
from anicalc.app import core_genome_identity

results = core_genome_identity(["-q", "genome1.fa", "-r", "genome2.fa", "-o", "output.txt"])
for r in results:
    print(r.qry_genome_id, r.ref_genome_id, r.identity, r.count_seq)
```

The building blocks live in their own modules:

- `anicalc.fasta` — `read_sequences` and `parse_sequences` yield
  `SequenceRecord` objects; malformed FASTQ raises `SequenceFormatError`.
- `anicalc.cli` — `parse_arguments` turns a command line into
  `anicalc.types.Parameters`, raising `UsageError` on bad input.
- `anicalc.sketch.Sketch` — sketches and indexes the reference genomes.
- `anicalc.mapper.Mapper` — maps the fragments of one query genome onto a
  sketch, passing each `MappingResult` to a callback.
- `anicalc.stats` — Mash distance, Jaccard and binomial statistics, and
  `recommended_window_size`.
- `anicalc.results` — `compute_cgi` aggregates mappings into ANI estimates;
  `write_cgi`, `write_phylip` and `write_visualization` write the reports.
- `anicalc.murmur` — MurmurHash3 (x86-32, x86-128, x64-128).

## What it does not do

The reference splits set by `--threads` are processed one after another in a
single process; there is no parallel execution. The per-fragment mapping lines
are not written by the command, only the ANI reports above.