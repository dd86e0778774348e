"""
FastAPI Application Package

This package contains the FastAPI application, its dependency providers and
routing logic. It serves the coins table and cached coin prices over REST.
"""
