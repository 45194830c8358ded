"""Command modules for Sprint Tracker CLI."""
