"""
Backend domains

- document_store: snapshot + user registry backed by JSON files, and the
  watcher that reloads them on external change
- file_ingest: upload collection, naming and extraction hand-off
"""
