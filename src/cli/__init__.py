"""Command-line tools for the DEC Learning document service.

- ``python -m src.cli`` -- ingest, list, search, reprocess and inspect the
  reference-document collection (see :mod:`src.cli.documents`).
"""
