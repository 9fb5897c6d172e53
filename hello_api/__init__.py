"""
Hello API package.

A FastAPI service exposing user and todo endpoints over a relational
store, with a SQLAlchemy gateway and an in-memory double for tests.
"""
