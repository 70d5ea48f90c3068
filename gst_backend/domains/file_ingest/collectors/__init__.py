"""
File Ingestion Collectors

- multipart.py - PDF part extraction from multipart/form-data bodies
"""
