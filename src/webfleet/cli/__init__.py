"""Command line interface for webfleet."""
