"""Core package — settings, exceptions, response envelopes, pagination, security helpers."""
