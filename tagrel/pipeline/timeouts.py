from __future__ import annotations

# Build steps
COMPILE_TIMEOUT_SECONDS = 60 * 60.0
STRIP_TIMEOUT_SECONDS = 5 * 60.0

# GH / API operations
GH_TIMEOUT_SECONDS = 60.0
GH_UPLOAD_TIMEOUT_SECONDS = 30 * 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
