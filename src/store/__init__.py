"""Table storage layer.

This module commits typed record chunks to versioned Lance tables
and exposes table inspection for the SDK.
"""
