"""Batch ingestion pipeline.

This module materializes untyped records against translated schemas
and commits them to entity tables in ordered, accounted chunks.
"""
