"""
HTTP API for marketplace listings.
"""
