"""Adapters binding the core pipeline to the browser, storage and notification sinks."""
