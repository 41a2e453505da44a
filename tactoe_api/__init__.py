"""
Backend package for the tic-tac-toe front end.

Provides a FastAPI application with login-attempt logging and GridFS-backed
file storage on MongoDB, plus the demo endpoints used in class.
"""
