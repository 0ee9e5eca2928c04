"""
Root module for the identity provider package.
"""
