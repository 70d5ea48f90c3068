"""
File Ingestion Processors

- extraction.py - Extractor port, subprocess adapter and store reload
"""
