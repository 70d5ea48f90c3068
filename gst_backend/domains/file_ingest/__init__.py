"""
File Ingestion Domain

Accepts uploaded documents and routes them through extraction:
- collectors: pull the uploaded file out of the request body
- uploads: save under a collision-resistant name
- processors: run the external extraction tool and reload the store
"""

__all__ = ["collectors", "processors", "uploads"]
