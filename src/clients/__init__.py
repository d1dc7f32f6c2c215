"""Command line clients for the tomato-notify daemon."""
