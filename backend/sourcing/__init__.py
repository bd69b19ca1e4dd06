"""
Job Sourcing Module

Normalized job schema plus the runner that fetches from every enabled
source adapter concurrently.
"""
