"""
Integration tests for the recruit interview lifecycle.

These tests drive the HTTP surface end to end against mocked AWS
services and the in-memory Zoom API.
"""
