"""
This package contains the run pipeline of DV7toDV8.

The pipeline checks the prerequisites of a run, builds the list of files to
convert (by scanning or by globbing the target directory), converts them one
after another and finally hands the converted files to the run ledger.
"""
