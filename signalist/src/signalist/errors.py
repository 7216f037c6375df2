import json
import traceback
from typing import Optional

class SignalistError(Exception):
    """Base exception for signalist"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

class ConfigurationError(SignalistError):
    """Missing or invalid configuration (e.g. API credentials)"""
    pass

class ValidationError(SignalistError):
    """Malformed input: article payloads, import files, CLI values"""
    pass

class HttpError(SignalistError):
    """Non-success HTTP response or transport failure"""
    def __init__(self, status_code: Optional[int], status_text: str, details: dict = None):
        prefix = f"HTTP {status_code}" if status_code is not None else "HTTP error"
        super().__init__(f"{prefix}: {status_text}", details)
        self.status_code = status_code
        self.status_text = status_text

class NewsFetchError(SignalistError):
    """News aggregation failed as a whole"""
    pass

class UnknownError(SignalistError):
    """Unexpected errors"""
    pass

def format_error(e: Exception) -> str:
    """Format exception as the JSON error envelope."""

    if isinstance(e, SignalistError):
        error_type = e.__class__.__name__
        message = e.message
        details = dict(e.details)
        if isinstance(e, HttpError):
            details.setdefault("status_code", e.status_code)
    else:
        error_type = "UnknownError"
        message = str(e)
        details = {
            "traceback": traceback.format_exc().splitlines()
        }

    payload = {
        "ok": False,
        "error": {
            "type": error_type,
            "message": message,
            "details": details
        },
        "meta": {
            "version": 1
        }
    }

    return json.dumps(payload, indent=2)
