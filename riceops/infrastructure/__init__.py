"""
Infrastructure - adapters for the back-office API.
"""
