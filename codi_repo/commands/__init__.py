"""Commands behind the codi-repo CLI."""
