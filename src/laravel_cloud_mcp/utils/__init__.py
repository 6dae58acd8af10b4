# ABOUTME: Utilities package initialization for the Laravel Cloud MCP server
# ABOUTME: Contains the API client and structured logging helpers

"""
Laravel Cloud Utilities Package

Shared utilities:
    - client.py: Laravel Cloud API client with retry logic and error mapping
    - logging.py: Structured logging with correlation IDs and audit trail
"""
