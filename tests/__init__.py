"""
Translation Assistant - Test Suite
==================================
Unit and integration tests for the Translation Assistant API.
Run with: pytest tests/ -v
"""
