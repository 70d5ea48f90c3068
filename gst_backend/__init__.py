"""GST dashboard backend: file-backed document store, uploads and extraction."""
