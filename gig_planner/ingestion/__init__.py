"""
Ingestion layer — producers that feed gig records into storage.

Submodules:
  gig_csv   — CSV import parser for gig records
  importer  — dedup, score and persist a parsed batch
"""
