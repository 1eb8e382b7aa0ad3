"""
expense-ai: interchangeable AI providers with durable, offline-tolerant
configuration for report generation and receipt extraction.
"""
__version__ = "0.1.0"
