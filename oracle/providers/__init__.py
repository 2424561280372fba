"""
Pluggable providers: LLM backends and session storage.
"""
