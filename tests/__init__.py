"""
Test suite for NFT Settlement Core

Contains:
- tests/unit/          : Unit tests for individual modules
"""
