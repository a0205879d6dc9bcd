"""
UniShare - university study resource sharing backend.
"""
