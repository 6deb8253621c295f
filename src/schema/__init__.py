"""Schema model and translation layer.

This module describes self-describing source schemas and translates
them into the flat column schemas accepted by the table store.
"""
