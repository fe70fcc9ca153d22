"""
Contracts (endpoint descriptors and error shapes).

- registry.py: the static endpoint map and its registration-time checks
- errors.py: ValidationException and the normalized ErrorVariant models

Both the HTTP executor and resolver-based endpoints go through these.
"""
