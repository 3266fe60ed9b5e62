"""Command line interface for the contact window engine."""
