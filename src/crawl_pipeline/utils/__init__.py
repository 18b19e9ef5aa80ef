"""Pipeline stages: pure document transforms plus the outbound fetch gateway."""
