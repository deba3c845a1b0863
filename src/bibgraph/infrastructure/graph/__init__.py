"""Persisted property-graph mirror: store backends, client, row normalization."""
