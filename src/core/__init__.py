"""Core domain package for zepwatch.

Core contains classification, identity, gating and deduplication logic without
any browser or storage-specific code, keeping the detection pipeline portable.
"""
