"""
Domain - entity stores and form wizards.
"""
