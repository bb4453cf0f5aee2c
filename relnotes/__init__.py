"""
Release notes tooling for Jira issue exports.
"""

__version__ = "0.1.0"
