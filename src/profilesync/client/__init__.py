"""Client module - remote fetcher, local store, sync engine and CLI."""
