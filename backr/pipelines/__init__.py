"""Pipelines for text normalization and collaboration matching.

Each step is callable on its own so the scorer can be exercised without a
database and the loader without scoring.
"""
