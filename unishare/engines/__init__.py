"""
Domain engines built on top of the kernel.
"""
