"""Parsing, aggregation and session services."""
