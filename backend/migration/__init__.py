"""
Legacy image migration engine.

Modules:
- classifier / extractor / keys: pure decisions (what to migrate, where to store it)
- fetcher / uploader: legacy host download and object store upload
- cache: one migration attempt per source URL per run
- field_migrator: new value of a single URL field or an HTML field
- orchestrator: table/row/field loop, persistence, limit and summary
- cli: command line entry point
"""
