"""
Tidewatch - Core data model and hourly grid normalization.
"""
