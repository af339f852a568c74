# salah_times/metrics.py

from prometheus_client import Counter, Histogram

# Define Prometheus metrics

# Upstream API Metrics
API_REQUESTS_TOTAL = Counter('salah_times_api_requests_total', 'Total upstream API requests', ['adapter_name', 'endpoint', 'status'])
API_REQUEST_DURATION_SECONDS = Histogram('salah_times_api_request_duration_seconds', 'Upstream API request duration in seconds', ['adapter_name', 'endpoint'])

# Geocoding Cache Metrics
GEOCODING_CACHE_HITS = Counter('salah_times_geocoding_cache_hits_total', 'Total reverse geocoding cache hits')
GEOCODING_CACHE_MISSES = Counter('salah_times_geocoding_cache_misses_total', 'Total reverse geocoding cache misses')

# Location Acquisition Metrics
LOCATION_FALLBACKS_TOTAL = Counter('salah_times_location_fallbacks_total', 'Times the default location was substituted', ['reason'])

# Resolver Metrics
RESOLVER_CYCLES_TOTAL = Counter('salah_times_resolver_cycles_total', 'Resolver fetch cycles by outcome', ['outcome'])
