"""Detect linear barcodes in the page images of scanned PDF documents."""

__version__ = "0.1.0"
