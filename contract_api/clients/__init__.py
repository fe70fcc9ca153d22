"""
Request execution.

- http_executor.py: httpx-backed executor for method + path endpoints
- cancellation.py: caller-owned tokens that abort in-flight work
"""
