"""Constrained invite-route search over a private-tracker network."""
