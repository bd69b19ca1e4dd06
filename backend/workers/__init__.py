"""
Worker Lambda handlers for the pipeline.

Workers:
- scrape_worker: runs every enabled source adapter and persists new postings
- enrichment_worker: claims a batch from the enrichment queue and enriches it
"""
