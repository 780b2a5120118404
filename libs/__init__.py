"""Licita shared libraries.

- common: configuration shared by the API and its tooling
"""
