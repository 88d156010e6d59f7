"""Stateless text, number and configuration helpers."""
