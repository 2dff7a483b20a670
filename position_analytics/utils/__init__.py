"""
Utility Components

Value parsing, validation and configuration.
"""
