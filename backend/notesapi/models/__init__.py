"""ORM models for the relational backend."""
