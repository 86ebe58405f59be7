"""User interfaces for pdfsig."""
