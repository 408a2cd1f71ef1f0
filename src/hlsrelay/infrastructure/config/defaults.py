"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "hlsrelay",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": "hlsrelay/0.1.0",
        "max_concurrent": 50,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "store": {
        "backend": "memory",
        "ttl_seconds": 3600,
        "max_entries": 10_000,
    },
    "relay": {
        "mode": "direct",
        "public_base_url": "",
        "forward_origin": True,
    },
}
