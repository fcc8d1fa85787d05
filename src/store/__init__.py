"""Relational store layer.

This package defines the reference, ingest, and serving tables and
the SQLAlchemy Core operations the ingest phases run against them.
"""
