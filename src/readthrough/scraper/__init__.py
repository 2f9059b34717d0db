"""Page retrieval and rewriting.

Fetches the raw HTML of a requested article through a fallback chain of
fetchers and rewrites it with per-domain rules so the full text is readable.

Sub-modules:
- ``analyzer``           - orchestrates policy, cache, fetchers and rewriting
- ``cache``              - raw-HTML cache backends (disk, MinIO, memory)
- ``config``             - constants and tuning parameters
- ``content_processor``  - BeautifulSoup-based rule engine
- ``domains``            - host extraction and domain matching
- ``error_classifier``   - maps failure messages and status codes to errors
- ``http_fetcher``       - async httpx fetcher and shared fetch result types
- ``paywall``            - hard-paywall detection
- ``playwright_fetcher`` - headless browser fetcher
- ``policy``             - blocklist, DMCA list and restricted keywords
- ``rules``              - RuleSet and rule providers
- ``status_checker``     - HEAD probe run before fetching unruled hosts
- ``wayback_fetcher``    - Internet Archive snapshot fetcher
"""
