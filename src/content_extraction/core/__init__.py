"""Shared data model, errors, logging and text helpers."""
