"""
Root module for the discovery provider package.
"""
