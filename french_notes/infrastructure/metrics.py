from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# outcome: approved, pending, denied, quota_exceeded, invalid_credentials
device_login_attempts_total = Counter(
    'device_login_attempts_total',
    'Student login attempts by device approval outcome',
    ['outcome']
)

device_decisions_total = Counter(
    'device_decisions_total',
    'Admin approve/deny actions on device login logs',
    ['decision', 'result']
)

media_operations_total = Counter(
    'media_operations_total',
    'Calls to the media object store',
    ['operation', 'result']
)

content_cache_total = Counter('content_cache_total', 'Content list cache lookups', ['result'])

emails_sent_total = Counter('emails_sent_total', 'Outgoing emails', ['result'])


def metrics_endpoint():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
