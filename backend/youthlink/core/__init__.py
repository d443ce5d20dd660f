"""Cross-cutting pieces: authentication helpers and domain exceptions."""
