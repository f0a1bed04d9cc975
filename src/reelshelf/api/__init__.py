"""API module for Reelshelf.

HTTP boundary over the record store:
- Parses query strings and bodies, runs validation
- Maps catalog errors to status codes and JSON envelopes
- Forbidden: SQL, transaction handling
"""
