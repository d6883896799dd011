"""
File index and ranking engine package.

This package provides the indexing + storage + ranking core:
- models: Indexed entries, summaries, and search results
- sqlite_pragmas: Shared SQLite tuning
- sqlite_storage: SQLite-backed entry store with usage statistics
- classifier: Deterministic file-type classification
- indexer: Bounded, fault-tolerant filesystem crawler
- fuzzy: Subsequence fuzzy matcher
- ranking: Composite scoring and relevance boosts
- searcher: Two-phase search over the store
"""
