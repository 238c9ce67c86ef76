"""Core services: git, state store, branch sync, PR links, readiness, merge."""
