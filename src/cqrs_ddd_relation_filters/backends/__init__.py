"""Predicate backends. Each backend is an optional extra."""
