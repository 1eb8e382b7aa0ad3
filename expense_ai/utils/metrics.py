"""
Prometheus metrics definitions for AI providers and config persistence.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# AI provider metrics
ai_provider_requests_total = Counter(
    'ai_provider_requests_total',
    'Total AI provider requests',
    ['provider', 'operation']
)

ai_provider_failures_total = Counter(
    'ai_provider_failures_total',
    'Total AI provider failures',
    ['provider', 'operation']
)

ai_provider_latency_seconds = Histogram(
    'ai_provider_latency_seconds',
    'AI provider request latency in seconds',
    ['provider', 'operation'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0]
)

ai_provider_tokens_total = Counter(
    'ai_provider_tokens_total',
    'Total AI provider tokens used',
    ['provider', 'operation', 'token_type']
)

# Capability calls refused because no provider is configured
ai_unconfigured_calls_total = Counter(
    'ai_unconfigured_calls_total',
    'Capability calls made while no AI provider was configured',
    ['operation']
)

# Config persistence metrics
config_loads_total = Counter(
    'ai_config_loads_total',
    'AI config load attempts',
    ['source', 'outcome']  # outcome: hit, miss, error
)

config_saves_total = Counter(
    'ai_config_saves_total',
    'AI config save attempts',
    ['target', 'outcome']  # outcome: saved, failed, skipped
)

config_save_latency_seconds = Histogram(
    'ai_config_save_latency_seconds',
    'Remote AI config save latency in seconds',
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)
