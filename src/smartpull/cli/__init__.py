"""Command line interface for smartpull."""
