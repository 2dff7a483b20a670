"""
Position Analytics Test Suite

Unit tests for trade ingestion, aggregation, classification and
concentration risk.
"""
