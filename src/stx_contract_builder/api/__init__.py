"""HTTP API for the STX Contract Builder."""
