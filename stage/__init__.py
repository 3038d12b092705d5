"""Stage host glue: config, persistence and the per-session adapter."""
