"""Book Manager -- watch an inbox and file ebooks as "Title - Author (Year)".

Core modules:
    config     -- Configuration via pydantic-settings (WATCH_PATH, OUT_PATH,
                  PUID/PGID, PIPELINE_LLM_* env vars) and loguru setup
    cli        -- Click CLI entry point. CLI flags passed as kwargs to
                  ManagerConfig (no env pollution).
    extractor  -- Filename -> BookMetadata via a bounded OpenAI tool-calling
                  loop; the model may call searchBook (Open Library) when the
                  filename alone is ambiguous. Output is strictly validated.
    dispatcher -- Per-event fan-out: concurrent extraction, barrier, then
                  concurrent relocation. All-or-nothing by default.
    models     -- Event kinds, metadata/search models, filename template
    errors     -- Exception hierarchy (lookup, extraction, relocation)

Subpackages:
    api        -- External API clients (Open Library search)
    ops        -- File operations (template naming, move, chown)
    automation -- watchdog inbox watcher and the sequential worker loop
"""
