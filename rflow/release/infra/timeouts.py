from __future__ import annotations

# gh CLI / release-hosting API calls
GH_TIMEOUT_SECONDS = 60.0

# Idempotent gh read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

# Release listing page size (API maximum)
GH_RELEASES_PAGE_SIZE = 100
GH_RELEASES_MAX_PAGES = 20
