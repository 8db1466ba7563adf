# -*- coding: utf-8 -*-
"""
Application Metrics
===================
Custom Prometheus metrics exposed next to the HTTP metrics on ``/metrics``.
"""

from prometheus_client import Counter, Histogram

# ==============================================================================
# 1. AI PROVIDERS
# ==============================================================================
# Labels:
# - provider: gateway, openai, anthropic, google, claude-code, codex, gemini-cli
# - operation: chat, summarize, models
# - status: success, error
LLM_CALLS_TOTAL = Counter(
    'annotator_llm_calls_total',
    'AI provider calls by provider, operation and outcome',
    labelnames=['provider', 'operation', 'status']
)

AI_SERVICE_LATENCY = Histogram(
    'annotator_ai_latency_seconds',
    'Time until an AI provider call completes (first chunk for streams)',
    labelnames=['provider', 'operation'],
    buckets=(0.25, 0.5, 1, 2, 5, 10, 30, 60, 120)
)

# ==============================================================================
# 2. UPSTREAM FETCHES
# ==============================================================================
# Labels:
# - kind: proxy, snapshot
# - status: success, rejected, upstream_error
UPSTREAM_FETCH_TOTAL = Counter(
    'annotator_upstream_fetch_total',
    'Server-side page fetches by kind and outcome',
    labelnames=['kind', 'status']
)

# ==============================================================================
# 3. STORAGE
# ==============================================================================
PDF_UPLOAD_BYTES = Histogram(
    'annotator_pdf_upload_bytes',
    'Size of accepted PDF uploads',
    buckets=(64_000, 256_000, 1_000_000, 2_500_000, 5_000_000, 10_000_000)
)

CASCADE_DOCUMENTS_TOTAL = Counter(
    'annotator_cascade_documents_total',
    'Articles rewritten by list or project deletion',
    labelnames=['operation']
)
