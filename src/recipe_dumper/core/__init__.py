"""Core dump machinery: item codec, interning, querying, progress and config."""
