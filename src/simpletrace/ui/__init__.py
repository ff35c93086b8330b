"""User interfaces (command line)."""
