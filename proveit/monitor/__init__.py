"""Proveit terminal output.

Modules
-------
renderer
    ``ProofRenderer`` prints per-item progress, the final two-proof
    verdict, and aborting errors as Rich renderables.
"""
