"""History import pipeline.

This package reads history exports and drives their application
to the destination places database in committed batches.
"""
