"""Core building blocks: configuration, logging, records, store, security and policy."""
