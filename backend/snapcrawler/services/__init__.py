"""
Services package - pipeline logic and integrations

Pipeline (candidate video to short-form clip):
    - pipeline/discovery: query generation, search, pre-screening, job creation
    - pipeline/stages: crawl, transcribe, analyze, edit, review, rework
    - pipeline/runner: bounded concurrent stage runs with retry accounting
    - pipeline/quality: quality score and review routing
    - pipeline/review: human review decisions and the review queue

Infrastructure (technical concerns):
    - infrastructure/clients: interfaces of external systems
    - infrastructure/llm: Gemini client, prompts, LLM orchestrator
    - infrastructure/parsing: response extraction and typed decoding
    - infrastructure/storage: job persistence
    - infrastructure/orchestration: scheduler and application lifecycle
"""
