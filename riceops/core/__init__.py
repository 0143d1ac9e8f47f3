"""
Core - events, permissions and models shared by every layer.
"""
