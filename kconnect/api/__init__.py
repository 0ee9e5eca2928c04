"""
Root module for the kconnect API package.
"""
