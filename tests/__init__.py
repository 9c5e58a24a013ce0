"""
Quote Sync Test Suite
=====================

This package contains tests for the Quote Sync System including:
- Unit tests for individual components
- Integration tests for the storage, remote gateway and sync layers working together
"""
