"""Output layer — Rich tables, plain text and JSON for ServiceResult."""
