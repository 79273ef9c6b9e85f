"""Backend package: DB models, collaboration pipeline, APIs.

This package loads entities and their backers, scores collaboration
candidates with the rule engine, and serves suggestions over HTTP.
"""
