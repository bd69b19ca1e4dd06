"""
Job enrichment pipeline.

Modules:
- parser: structured data from free-text descriptions
- logos / photos / headshots / emails / people: fallback resolution chains
- rate_limiter: per-service token buckets with 429 backoff
- context: per-invocation client, caches, limiters and storage
- orchestrator: enrich_job / enrich_jobs / build_minimal_card
"""
