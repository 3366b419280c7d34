"""Core domain package for govbell.

Core contains mute parsing, matching and dispatch logic without any Telegram,
HTTP or storage-specific code, keeping the business logic portable.
"""
