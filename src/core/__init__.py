"""Core domain package for telewatch.

Core contains link attribution, chat session state, and command logic without
any Telegram, HTTP, or storage-specific code, keeping the business logic
portable.
"""
