"""Cross-cutting infrastructure: config helpers, errors, logging, storage, session."""
