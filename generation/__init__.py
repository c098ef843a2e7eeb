"""
MCQ Generation Pipeline
generation/

Steps:
1. Chunker              — split source text into sentence-aligned windows
2. Chunk Generator      — one schema-constrained LLM call per chunk, retried with backoff
3. Question Normalizer  — validate items, resolve answers to letters A–D
4. Job Orchestrator     — sequential chunk loop, progress, pacing, finalize job

Study tools (theory notes, mentor chat, article analysis, essay outline) are single calls.
"""
