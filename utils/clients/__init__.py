# Clients subpackage - External API clients
from .gemini import extract_text, generate_content, upstream_error_message
from .pagespeed import run_pagespeed
from .retry import fetch_with_retry, is_transient_status

__all__ = [
    "extract_text",
    "generate_content",
    "upstream_error_message",
    "run_pagespeed",
    "fetch_with_retry",
    "is_transient_status",
]
