"""Command line interface for ticketsync."""
