"""
Backend package for the caucus site API.

This package provides a FastAPI application for the caucus website: admin
authentication with signed session cookies, per-client rate limiting, and the
events, resources, tech list and contact form endpoints backed by a SQL
database abstraction.
"""
