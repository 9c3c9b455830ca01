"""
Core — domain models, config loading, services, and the extraction use case.
"""
