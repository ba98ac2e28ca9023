"""
Core document lifecycle, access policy and signing protocol.
"""
