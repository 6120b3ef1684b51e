"""
Tests for the Chain History package.

This package contains tests for:
- Address validation and network detection
- Rate limiting, retry and caching primitives
- Etherscan and Solana RPC providers
- Adapters and the unified client
"""
