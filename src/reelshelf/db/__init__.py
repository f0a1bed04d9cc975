"""Database layer: schema, sessions and the search query builder."""
