"""
Common utilities shared across the gateway
"""
