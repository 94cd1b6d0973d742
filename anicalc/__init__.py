"""Alignment-free whole-genome Average Nucleotide Identity estimation from minimizer sketches."""

__version__ = "1.34"