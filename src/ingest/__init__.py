"""Price transparency ingest pipeline.

This package reads wide charge files, stages normalized rows, and
drives the transform into the long-form serving table.
"""
